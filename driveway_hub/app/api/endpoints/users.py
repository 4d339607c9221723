"""
User vehicle endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from driveway_hub.app.db.session import get_db
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.schemas.vehicle import VehicleCreate, VehicleResponse
from driveway_hub.app.core.dependencies import get_current_user
from driveway_hub.app.core.time import utcnow
from driveway_hub.app.services.tesla.vin import decode_model, decode_year, dimensions_for

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/vehicles", response_model=List[VehicleResponse])
async def list_my_vehicles(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active vehicles of the caller, with last known battery and location."""
    result = await db.execute(
        select(Vehicle)
        .where(Vehicle.user_id == current_user["user_id"], Vehicle.is_active.is_(True))
        .order_by(Vehicle.id)
    )
    return result.scalars().all()


@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def register_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a vehicle by hand.

    Model and year default to what the VIN decodes to. Dimensions left out
    are filled from the model table when a model is known.
    """
    vehicle = Vehicle(user_id=current_user["user_id"], **vehicle_data.model_dump())
    if vehicle.vin:
        vehicle.vin = vehicle.vin.upper()
        if not vehicle.model:
            vehicle.model = decode_model(vehicle.vin)
        if not vehicle.year:
            vehicle.year = decode_year(vehicle.vin, utcnow().year)

    if vehicle.model:
        dims = dimensions_for(vehicle.model)
        if vehicle.length_inches is None:
            vehicle.length_inches = dims.length_inches
        if vehicle.width_inches is None:
            vehicle.width_inches = dims.width_inches
        if vehicle.height_inches is None:
            vehicle.height_inches = dims.height_inches

    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle
