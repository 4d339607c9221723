"""
Analytics Service.

Read-only aggregate queries for host dashboards.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from driveway_hub.app.core.time import ensure_utc, utcnow
from driveway_hub.app.domain.booking.pricing import to_money
from driveway_hub.app.models.booking import Booking
from driveway_hub.app.models.enums import BookingStatus
from driveway_hub.app.schemas.booking import HostAnalytics


class AnalyticsService:

    @staticmethod
    async def get_host_analytics(
        db: AsyncSession,
        host_id: int,
        days: int = 30,
        now: Optional[datetime] = None,
    ) -> HostAnalytics:
        """
        Booking totals for one host over the last ``days`` days (by creation time).

        Earnings are host earnings (subtotal minus platform fee). Cancelled and
        no-show bookings are counted but still contribute their earnings,
        matching what was quoted at booking time.
        """
        now = ensure_utc(now) if now else utcnow()
        since = now - timedelta(days=days)

        query = select(
            func.count(Booking.id),
            func.sum(Booking.host_earnings),
            func.avg(Booking.host_earnings),
            func.sum(case((Booking.status == BookingStatus.COMPLETED, 1), else_=0)),
            func.sum(case((Booking.status == BookingStatus.CANCELLED, 1), else_=0)),
        ).where(
            Booking.host_id == host_id,
            Booking.created_at >= since,
        )
        total, earnings, average, completed, cancelled = (await db.execute(query)).one()

        return HostAnalytics(
            period_days=days,
            total_bookings=total or 0,
            total_earnings=float(to_money(earnings or Decimal("0"))),
            avg_booking_value=float(to_money(average or Decimal("0"))),
            completed_bookings=int(completed or 0),
            cancelled_bookings=int(cancelled or 0),
        )
