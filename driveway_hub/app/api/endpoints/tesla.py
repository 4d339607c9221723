"""
Tesla Fleet API proxy endpoints.

All calls use the caller's stored Tesla token, refreshed when expired.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from driveway_hub.app.db.session import get_db
from driveway_hub.app.schemas.tesla import TeslaWakeResponse, TeslaCommandRequest
from driveway_hub.app.core.dependencies import get_current_user
from driveway_hub.app.services.tesla.service import TeslaService, get_tesla_service

router = APIRouter(prefix="/tesla", tags=["Tesla"])


@router.get("/vehicles", response_model=List[Dict[str, Any]])
async def list_tesla_vehicles(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    tesla: TeslaService = Depends(get_tesla_service),
):
    return await tesla.list_vehicles(db, current_user["user_id"])


@router.get("/vehicles/{vehicle_id}", response_model=Dict[str, Any])
async def get_tesla_vehicle(
    vehicle_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    tesla: TeslaService = Depends(get_tesla_service),
):
    """Live vehicle data; also updates the stored battery level and location."""
    return await tesla.get_vehicle_data(db, current_user["user_id"], vehicle_id)


@router.post("/vehicles/{vehicle_id}/wake", response_model=TeslaWakeResponse)
async def wake_tesla_vehicle(
    vehicle_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    tesla: TeslaService = Depends(get_tesla_service),
):
    online = await tesla.wake_up_vehicle(db, current_user["user_id"], vehicle_id)
    return TeslaWakeResponse(vehicle_id=vehicle_id, online=online)


@router.post("/vehicles/{vehicle_id}/command/{command}", response_model=Dict[str, Any])
async def send_tesla_command(
    vehicle_id: str,
    command: str,
    payload: Optional[TeslaCommandRequest] = Body(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    tesla: TeslaService = Depends(get_tesla_service),
):
    parameters = payload.parameters if payload else None
    return await tesla.send_command(db, current_user["user_id"], vehicle_id, command, parameters)
