"""
Post-booking side effects.

Runs after the booking response has been sent (FastAPI ``BackgroundTasks``)
with its own session. Each step is best effort: failures are logged and
recorded in the dead-letter queue, never raised, and never retried.
"""

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from driveway_hub.app.models.booking import Booking
from driveway_hub.app.models.dlq import DeadLetterQueue
from driveway_hub.app.models.driveway import Driveway
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.services.notification_service import NotificationService
from driveway_hub.app.services.tesla.service import TeslaService

logger = logging.getLogger(__name__)

TASK_NAVIGATION = "booking.tesla_navigation"
TASK_NOTIFICATIONS = "booking.confirmation_notifications"


async def record_failure(
    session_factory: async_sessionmaker,
    task_name: str,
    error: Exception,
    payload: Dict[str, Any],
) -> None:
    """Write a dead-letter entry in a fresh session."""
    try:
        async with session_factory() as db:
            db.add(DeadLetterQueue(
                task_name=task_name,
                error_message=f"{type(error).__name__}: {error}",
                payload=payload,
            ))
            await db.commit()
    except Exception:
        logger.exception("Could not record dead-letter entry for %s", task_name)


async def push_navigation(db: AsyncSession, tesla: TeslaService, booking_id: int) -> bool:
    """
    Send the driveway as a navigation destination to the booked vehicle.

    Marks ``tesla_navigation_sent`` on success.
    """
    booking = await db.get(Booking, booking_id)
    if booking is None:
        logger.warning("Navigation push skipped: booking %s no longer exists", booking_id)
        return False
    driveway = await db.get(Driveway, booking.driveway_id)
    vehicle = await db.get(Vehicle, booking.vehicle_id)

    sent = await tesla.send_navigation(db, booking.driver_id, vehicle, driveway.latitude, driveway.longitude)
    if sent:
        booking.tesla_navigation_sent = True
        await db.commit()
        logger.info("Navigation sent for booking %s", booking.booking_reference)
    return sent


async def send_confirmation_notifications(db: AsyncSession, booking_id: int) -> None:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        logger.warning("Notifications skipped: booking %s no longer exists", booking_id)
        return
    driveway = await db.get(Driveway, booking.driveway_id)
    await NotificationService.notify_booking_created(db, booking, driveway)
    await db.commit()


async def run_post_booking_side_effects(
    session_factory: async_sessionmaker,
    tesla: TeslaService,
    booking_id: int,
) -> None:
    """Background task entry point for a newly created booking."""
    payload = {"booking_id": booking_id}

    try:
        async with session_factory() as db:
            await push_navigation(db, tesla, booking_id)
    except Exception as e:
        logger.warning("Tesla navigation push failed for booking %s: %s", booking_id, e)
        await record_failure(session_factory, TASK_NAVIGATION, e, payload)

    try:
        async with session_factory() as db:
            await send_confirmation_notifications(db, booking_id)
    except Exception as e:
        logger.warning("Confirmation notifications failed for booking %s: %s", booking_id, e)
        await record_failure(session_factory, TASK_NOTIFICATIONS, e, payload)
