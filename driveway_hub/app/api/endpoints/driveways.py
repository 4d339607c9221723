"""
Driveway API endpoints.

Listing search, host listing creation and availability toggling.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from driveway_hub.app.db.session import get_db
from driveway_hub.app.models.driveway import Driveway
from driveway_hub.app.models.enums import ListingStatus
from driveway_hub.app.schemas.driveway import DrivewayCreate, DrivewayResponse, AvailabilityUpdate
from driveway_hub.app.core.dependencies import get_current_user
from driveway_hub.app.core.exceptions import ResourceNotFoundError
from driveway_hub.app.core.guards import require_host, ownership_guard
from driveway_hub.app.services.geo import bounding_box, haversine_distance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/driveways", tags=["Driveways"])


@router.get("", response_model=List[DrivewayResponse])
async def list_driveways(
    has_ev_charging: Optional[bool] = Query(None),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radius_km: float = Query(10.0, gt=0, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Active, available driveways.

    When ``latitude`` and ``longitude`` are both given, results are limited
    to ``radius_km`` and sorted nearest first with ``distance_km`` set.
    """
    query = select(Driveway).where(
        Driveway.listing_status == ListingStatus.ACTIVE,
        Driveway.is_available.is_(True),
    )
    if has_ev_charging is not None:
        query = query.where(Driveway.has_ev_charging.is_(has_ev_charging))

    near = latitude is not None and longitude is not None
    if near:
        min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, radius_km)
        query = query.where(
            Driveway.latitude.between(min_lat, max_lat),
            Driveway.longitude.between(min_lon, max_lon),
        )

    result = await db.execute(query.order_by(Driveway.id))
    driveways = result.scalars().all()

    if not near:
        return [DrivewayResponse.model_validate(d) for d in driveways]

    nearby = []
    for d in driveways:
        distance = haversine_distance(latitude, longitude, d.latitude, d.longitude)
        if distance <= radius_km:
            item = DrivewayResponse.model_validate(d)
            item.distance_km = round(distance, 2)
            nearby.append(item)
    nearby.sort(key=lambda item: item.distance_km)
    return nearby


@router.post("", response_model=DrivewayResponse, status_code=status.HTTP_201_CREATED)
async def create_driveway(
    driveway_data: DrivewayCreate,
    current_user: dict = Depends(require_host),
    db: AsyncSession = Depends(get_db)
):
    """Create a listing owned by the calling host."""
    driveway = Driveway(host_id=current_user["user_id"], **driveway_data.model_dump())
    db.add(driveway)
    await db.commit()
    await db.refresh(driveway)
    logger.info("Host %s listed driveway %s", current_user["user_id"], driveway.id)
    return driveway


@router.get("/{driveway_id}", response_model=DrivewayResponse)
async def get_driveway(
    driveway_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    driveway = await db.get(Driveway, driveway_id)
    if not driveway:
        raise ResourceNotFoundError("Driveway", driveway_id)
    return driveway


@router.patch("/{driveway_id}/availability", response_model=DrivewayResponse)
async def update_availability(
    driveway_id: int,
    payload: AvailabilityUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Open or close a listing for new bookings (owner only)."""
    driveway = await db.get(Driveway, driveway_id)
    if not driveway:
        raise ResourceNotFoundError("Driveway", driveway_id)
    ownership_guard.enforce(driveway.host_id, current_user, "driveway")

    driveway.is_available = payload.is_available
    await db.commit()
    await db.refresh(driveway)
    return driveway
