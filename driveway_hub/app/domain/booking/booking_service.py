"""
Booking Service (Domain Logic).

Validates and writes bookings, and applies lifecycle transitions.
Creation runs in one transaction with the driveway row locked, so two
competing requests for the same driveway are serialized.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from driveway_hub.app.core.config import settings
from driveway_hub.app.core.exceptions import (
    BookingConflictError,
    CancellationTooLateError,
    DrivewayNotAvailableError,
    InsufficientPermissionsError,
    InvalidTimeRangeError,
    NoShowTooEarlyError,
    NotAtDrivewayError,
    ResourceNotFoundError,
    StartTimeInPastError,
    VehicleTooLargeError,
    classify_integrity_error,
)
from driveway_hub.app.core.time import ensure_utc, utcnow
from driveway_hub.app.domain.booking.pricing import calculate_booking_price
from driveway_hub.app.domain.booking.state_machine import ensure_transition
from driveway_hub.app.models.booking import Booking
from driveway_hub.app.models.driveway import Driveway
from driveway_hub.app.models.enums import BookingStatus, ListingStatus, OCCUPYING_STATUSES
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.services.geo import haversine_meters
from driveway_hub.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "DH-"
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 8


def generate_booking_reference() -> str:
    """``DH-`` followed by 8 random uppercase alphanumerics."""
    return REFERENCE_PREFIX + "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))


def vehicle_size_violations(vehicle: Vehicle, driveway: Driveway) -> List[str]:
    """
    Names of the dimensions where ``vehicle`` exceeds the driveway limits.

    Height is only checked when the driveway sets a maximum height.
    Dimensions unknown on the vehicle are not checked.
    """
    exceeded = []
    if vehicle.length_inches is not None and vehicle.length_inches > driveway.max_vehicle_length:
        exceeded.append("length")
    if vehicle.width_inches is not None and vehicle.width_inches > driveway.max_vehicle_width:
        exceeded.append("width")
    if (
        driveway.max_vehicle_height is not None
        and vehicle.height_inches is not None
        and vehicle.height_inches > driveway.max_vehicle_height
    ):
        exceeded.append("height")
    return exceeded


class BookingService:

    @staticmethod
    async def find_conflicts(
        db: AsyncSession,
        driveway_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[int] = None,
    ) -> List[int]:
        """
        IDs of occupying bookings overlapping ``[start_time, end_time)``.

        Back-to-back windows (one ends exactly when the next starts) do not
        overlap.
        """
        query = select(Booking.id).where(
            Booking.driveway_id == driveway_id,
            Booking.status.in_(OCCUPYING_STATUSES),
            Booking.start_time < ensure_utc(end_time),
            Booking.end_time > ensure_utc(start_time),
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def create_booking(
        db: AsyncSession,
        driver_id: int,
        vehicle_id: int,
        driveway_id: int,
        start_time: datetime,
        end_time: datetime,
        driver_notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Booking, Driveway]:
        """
        Validate and persist a booking.

        Flow:
        1. Time range shape check
        2. Lock the driveway row; it must be available and listed
        3. Vehicle must belong to the driver and fit the driveway
        4. No overlapping occupying booking
        5. Start must not be in the past
        6. Price, insert and commit

        Nothing is written unless every check passes.

        Returns:
            (booking, driveway); the driveway is returned for side effects
        """
        start_time, end_time = ensure_utc(start_time), ensure_utc(end_time)
        now = ensure_utc(now) if now else utcnow()

        # 1. Shape
        if end_time <= start_time:
            raise InvalidTimeRangeError()

        try:
            # 2. Driveway (row lock serializes competing creations)
            result = await db.execute(
                select(Driveway).where(Driveway.id == driveway_id).with_for_update()
            )
            driveway = result.scalar_one_or_none()
            if (
                driveway is None
                or not driveway.is_available
                or driveway.listing_status != ListingStatus.ACTIVE
            ):
                raise DrivewayNotAvailableError(driveway_id)

            # 3. Vehicle ownership and fit
            result = await db.execute(
                select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.user_id == driver_id)
            )
            vehicle = result.scalar_one_or_none()
            if vehicle is None:
                raise ResourceNotFoundError("Vehicle", vehicle_id)

            exceeded = vehicle_size_violations(vehicle, driveway)
            if exceeded:
                raise VehicleTooLargeError(exceeded)

            # 4. Overlap
            conflicts = await BookingService.find_conflicts(db, driveway_id, start_time, end_time)
            if conflicts:
                raise BookingConflictError(conflicts)

            # 5. Start in the past
            if start_time < now:
                raise StartTimeInPastError()

            # 6. Price and write
            price = calculate_booking_price(
                driveway.hourly_rate, start_time, end_time, settings.platform_fee_rate
            )
            status = BookingStatus.CONFIRMED if settings.auto_confirm_bookings else BookingStatus.PENDING

            booking = Booking(
                booking_reference=generate_booking_reference(),
                driver_id=driver_id,
                host_id=driveway.host_id,
                vehicle_id=vehicle.id,
                driveway_id=driveway.id,
                start_time=start_time,
                end_time=end_time,
                hourly_rate=price.hourly_rate,
                total_hours=price.total_hours,
                subtotal=price.subtotal,
                platform_fee=price.platform_fee,
                total_amount=price.total_amount,
                host_earnings=price.host_earnings,
                status=status,
                driver_notes=driver_notes,
                confirmed_at=now if status == BookingStatus.CONFIRMED else None,
            )
            db.add(booking)
            await db.flush()
            await db.commit()
            await db.refresh(booking)
        except IntegrityError as e:
            await db.rollback()
            mapped = classify_integrity_error(e)
            logger.warning(
                "Booking insert rejected for driveway %s: %s", driveway_id, mapped.error_code
            )
            raise mapped from e
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Booking %s created: driveway=%s driver=%s status=%s total=%s",
            booking.booking_reference, driveway.id, driver_id, booking.status.value, booking.total_amount,
        )
        return booking, driveway

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    async def get_for_party(
        db: AsyncSession,
        booking_id: int,
        user_id: int,
        for_update: bool = False,
    ) -> Booking:
        """
        Load a booking visible to ``user_id`` (its driver or host).

        Raises:
            ResourceNotFoundError: BOOKING_NOT_FOUND
            InsufficientPermissionsError: user is neither driver nor host
        """
        query = select(Booking).where(Booking.id == booking_id)
        if for_update:
            query = query.with_for_update()
        booking = (await db.execute(query)).scalar_one_or_none()
        if booking is None:
            raise ResourceNotFoundError("Booking", booking_id)
        if user_id not in (booking.driver_id, booking.host_id):
            raise InsufficientPermissionsError("You are not a party to this booking")
        return booking

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: int) -> List[Tuple[Booking, str]]:
        """
        Bookings where the user is driver or host, newest start first,
        each paired with the user's role on it.
        """
        result = await db.execute(
            select(Booking)
            .where(or_(Booking.driver_id == user_id, Booking.host_id == user_id))
            .order_by(Booking.start_time.desc())
        )
        return [
            (booking, "driver" if booking.driver_id == user_id else "host")
            for booking in result.scalars().all()
        ]

    @staticmethod
    async def find_bookings_needing_navigation(
        db: AsyncSession,
        within_hours: int = 2,
        now: Optional[datetime] = None,
    ) -> List[Booking]:
        """Pending/confirmed bookings starting soon whose navigation was never sent."""
        now = ensure_utc(now) if now else utcnow()
        result = await db.execute(
            select(Booking)
            .where(
                Booking.status.in_((BookingStatus.PENDING, BookingStatus.CONFIRMED)),
                Booking.tesla_navigation_sent.is_(False),
                Booking.start_time >= now,
                Booking.start_time <= now + timedelta(hours=within_hours),
            )
            .order_by(Booking.start_time)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @staticmethod
    def require_party(booking: Booking, user_id: int, *roles: str) -> None:
        allowed = set()
        if "driver" in roles:
            allowed.add(booking.driver_id)
        if "host" in roles:
            allowed.add(booking.host_id)
        if user_id not in allowed:
            raise InsufficientPermissionsError(
                f"Only the booking's {' or '.join(roles)} can perform this action"
            )

    @staticmethod
    async def _finish_transition(db: AsyncSession, booking: Booking, actor_id: int) -> Booking:
        counterparty = booking.host_id if actor_id == booking.driver_id else booking.driver_id
        await NotificationService.notify_status_change(db, booking, counterparty)
        await db.commit()
        await db.refresh(booking)
        logger.info("Booking %s -> %s by user %s", booking.booking_reference, booking.status.value, actor_id)
        return booking

    @staticmethod
    async def confirm(db: AsyncSession, booking_id: int, user_id: int, now: Optional[datetime] = None) -> Booking:
        """Host confirms a pending booking."""
        booking = await BookingService.get_for_party(db, booking_id, user_id, for_update=True)
        BookingService.require_party(booking, user_id, "host")
        ensure_transition(booking.status, BookingStatus.CONFIRMED)
        booking.status = BookingStatus.CONFIRMED
        booking.confirmed_at = ensure_utc(now) if now else utcnow()
        return await BookingService._finish_transition(db, booking, user_id)

    @staticmethod
    async def arrive(
        db: AsyncSession,
        booking_id: int,
        user_id: int,
        latitude: float,
        longitude: float,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Driver arrival: confirmed -> active, only within the arrival radius
        of the driveway.
        """
        booking = await BookingService.get_for_party(db, booking_id, user_id, for_update=True)
        BookingService.require_party(booking, user_id, "driver")
        ensure_transition(booking.status, BookingStatus.ACTIVE)

        driveway = await db.get(Driveway, booking.driveway_id)
        distance = haversine_meters(latitude, longitude, driveway.latitude, driveway.longitude)
        if distance > settings.arrival_radius_meters:
            raise NotAtDrivewayError(distance, settings.arrival_radius_meters)

        booking.status = BookingStatus.ACTIVE
        booking.arrival_detected_at = ensure_utc(now) if now else utcnow()
        return await BookingService._finish_transition(db, booking, user_id)

    @staticmethod
    async def depart(db: AsyncSession, booking_id: int, user_id: int, now: Optional[datetime] = None) -> Booking:
        """Driver leaves the driveway: active -> completed."""
        booking = await BookingService.get_for_party(db, booking_id, user_id, for_update=True)
        BookingService.require_party(booking, user_id, "driver")
        ensure_transition(booking.status, BookingStatus.COMPLETED)
        now = ensure_utc(now) if now else utcnow()
        booking.status = BookingStatus.COMPLETED
        booking.departure_detected_at = now
        booking.completed_at = now
        return await BookingService._finish_transition(db, booking, user_id)

    @staticmethod
    async def complete(db: AsyncSession, booking_id: int, user_id: int, now: Optional[datetime] = None) -> Booking:
        """Driver or host closes an active booking."""
        booking = await BookingService.get_for_party(db, booking_id, user_id, for_update=True)
        ensure_transition(booking.status, BookingStatus.COMPLETED)
        booking.status = BookingStatus.COMPLETED
        booking.completed_at = ensure_utc(now) if now else utcnow()
        return await BookingService._finish_transition(db, booking, user_id)

    @staticmethod
    async def cancel(db: AsyncSession, booking_id: int, user_id: int, now: Optional[datetime] = None) -> Booking:
        """
        Driver cancels a pending or confirmed booking.

        Allowed only while at least ``cancellation_window_hours`` remain
        before the start.
        """
        booking = await BookingService.get_for_party(db, booking_id, user_id, for_update=True)
        BookingService.require_party(booking, user_id, "driver")
        ensure_transition(booking.status, BookingStatus.CANCELLED)

        now = ensure_utc(now) if now else utcnow()
        window = timedelta(hours=settings.cancellation_window_hours)
        if ensure_utc(booking.start_time) - now < window:
            raise CancellationTooLateError(settings.cancellation_window_hours)

        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = now
        return await BookingService._finish_transition(db, booking, user_id)

    @staticmethod
    async def mark_no_show(db: AsyncSession, booking_id: int, user_id: int, now: Optional[datetime] = None) -> Booking:
        """Host marks a confirmed booking as no-show once its start has passed."""
        booking = await BookingService.get_for_party(db, booking_id, user_id, for_update=True)
        BookingService.require_party(booking, user_id, "host")
        ensure_transition(booking.status, BookingStatus.NO_SHOW)

        now = ensure_utc(now) if now else utcnow()
        if now < ensure_utc(booking.start_time):
            raise NoShowTooEarlyError()

        booking.status = BookingStatus.NO_SHOW
        return await BookingService._finish_transition(db, booking, user_id)
