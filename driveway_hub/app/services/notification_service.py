"""
Notification Service.

Handles creation and state management of in-app notifications.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update
from typing import Optional, Dict, Any, List

from driveway_hub.app.core.time import utcnow
from driveway_hub.app.models.booking import Booking
from driveway_hub.app.models.driveway import Driveway
from driveway_hub.app.models.notification import Notification, NotificationType


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            metadata_payload=metadata
        )
        db.add(notif)
        await db.flush()  # Caller commits
        return notif

    @staticmethod
    async def notify_booking_created(
        db: AsyncSession,
        booking: Booking,
        driveway: Driveway,
    ) -> List[Notification]:
        """
        Confirmation notice to the driver and new-booking notice to the host.
        """
        window = f"{booking.start_time:%Y-%m-%d %H:%M} - {booking.end_time:%H:%M} UTC"
        metadata = {
            "booking_id": booking.id,
            "booking_reference": booking.booking_reference,
            "driveway_id": driveway.id,
        }
        driver_notice = await NotificationService.create_notification(
            db,
            user_id=booking.driver_id,
            title=f"Booking {booking.booking_reference} {booking.status.value}",
            message=f"Your spot at {driveway.address} is reserved for {window}. Total ${booking.total_amount}.",
            type=NotificationType.BOOKING_CONFIRMED,
            metadata=metadata,
        )
        host_notice = await NotificationService.create_notification(
            db,
            user_id=booking.host_id,
            title="New booking",
            message=f"{driveway.title} was booked for {window}. You earn ${booking.host_earnings}.",
            type=NotificationType.NEW_BOOKING,
            metadata=metadata,
        )
        return [driver_notice, host_notice]

    @staticmethod
    async def notify_status_change(db: AsyncSession, booking: Booking, recipient_id: int) -> Notification:
        return await NotificationService.create_notification(
            db,
            user_id=recipient_id,
            title=f"Booking {booking.booking_reference} is now {booking.status.value}",
            message=f"Booking {booking.booking_reference} changed status to {booking.status.value}.",
            type=NotificationType.BOOKING_UPDATE,
            metadata={"booking_id": booking.id, "status": booking.status.value},
        )

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).values(
            is_read=True,
            read_at=utcnow()
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        ).values(
            is_read=True,
            read_at=utcnow()
        )
        result = await db.execute(stmt)
        return result.rowcount
