"""
Booking API endpoints.

Creation, queries, host analytics and the status transitions. Tesla
navigation and confirmation notifications run after the response as
background tasks.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from driveway_hub.app.db.session import get_db, get_session_factory
from driveway_hub.app.models.enums import BookingStatus
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.schemas.booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    BookingListItem,
    ArrivalRequest,
    HostAnalytics,
)
from driveway_hub.app.core.dependencies import get_current_user
from driveway_hub.app.core.guards import require_host
from driveway_hub.app.domain.booking.booking_service import BookingService
from driveway_hub.app.domain.booking.state_machine import ensure_transition
from driveway_hub.app.services.analytics import AnalyticsService
from driveway_hub.app.services.booking_side_effects import run_post_booking_side_effects
from driveway_hub.app.services.tesla.service import TeslaService, get_tesla_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/create", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    tesla: TeslaService = Depends(get_tesla_service),
):
    """
    Book a driveway for one of the caller's vehicles.

    Steps:
    1. Validate the window, driveway, vehicle size and conflicts
    2. Price and insert the booking in one transaction
    3. Queue Tesla navigation and confirmation notifications
    """
    booking, driveway = await BookingService.create_booking(
        db,
        driver_id=current_user["user_id"],
        vehicle_id=booking_data.vehicle_id,
        driveway_id=booking_data.driveway_id,
        start_time=booking_data.start_time,
        end_time=booking_data.end_time,
        driver_notes=booking_data.driver_notes,
    )
    background_tasks.add_task(run_post_booking_side_effects, session_factory, tesla, booking.id)

    return BookingCreateResponse(
        booking_id=booking.id,
        booking_reference=booking.booking_reference,
        status=booking.status,
        total_amount=booking.total_amount,
        platform_fee=booking.platform_fee,
        host_payout=booking.host_earnings,
        subtotal=booking.subtotal,
        total_hours=booking.total_hours,
        host_id=driveway.host_id,
    )


@router.get("", response_model=List[BookingListItem])
async def list_bookings(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Bookings where the caller is driver or host, newest start first."""
    rows = await BookingService.list_for_user(db, current_user["user_id"])
    return [
        BookingListItem(**BookingResponse.model_validate(booking).model_dump(), user_role=role)
        for booking, role in rows
    ]


@router.get("/analytics/host", response_model=HostAnalytics)
async def host_analytics(
    days: int = Query(30, ge=1, le=365),
    current_user: dict = Depends(require_host),
    db: AsyncSession = Depends(get_db)
):
    return await AnalyticsService.get_host_analytics(db, current_user["user_id"], days)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await BookingService.get_for_party(db, booking_id, current_user["user_id"])


# --- Status transitions ---

@router.put("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Host accepts a pending booking."""
    return await BookingService.confirm(db, booking_id, current_user["user_id"])


@router.put("/{booking_id}/arrive", response_model=BookingResponse)
async def arrive(
    booking_id: int,
    position: Optional[ArrivalRequest] = Body(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    tesla: TeslaService = Depends(get_tesla_service),
):
    """
    Driver check-in at the driveway.

    Without coordinates in the body the vehicle's live position is read
    from Tesla.
    """
    user_id = current_user["user_id"]
    if position is not None and position.latitude is not None:
        latitude, longitude = position.latitude, position.longitude
    else:
        booking = await BookingService.get_for_party(db, booking_id, user_id)
        BookingService.require_party(booking, user_id, "driver")
        ensure_transition(booking.status, BookingStatus.ACTIVE)
        vehicle = await db.get(Vehicle, booking.vehicle_id)
        latitude, longitude = await tesla.get_vehicle_location(db, user_id, vehicle)

    return await BookingService.arrive(db, booking_id, user_id, latitude, longitude)


@router.put("/{booking_id}/depart", response_model=BookingResponse)
async def depart(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await BookingService.depart(db, booking_id, current_user["user_id"])


@router.put("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await BookingService.complete(db, booking_id, current_user["user_id"])


@router.put("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Driver cancellation, allowed up to the cancellation window before start."""
    return await BookingService.cancel(db, booking_id, current_user["user_id"])


@router.put("/{booking_id}/no-show", response_model=BookingResponse)
async def mark_no_show(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await BookingService.mark_no_show(db, booking_id, current_user["user_id"])
