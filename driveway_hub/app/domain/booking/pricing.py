"""
Booking pricing (pure domain logic).

One formula for every booking: bill whole hours, add a flat platform fee
on top, and pay the host the subtotal minus the same fee.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from driveway_hub.app.core.exceptions import InvalidTimeRangeError, InvalidPricingError
from driveway_hub.app.core.time import ensure_utc

CENT = Decimal("0.01")

Number = Union[Decimal, float, int, str]


def to_money(value: Number) -> Decimal:
    """Round to cents, half-up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    hourly_rate: Decimal
    total_hours: int
    subtotal: Decimal
    platform_fee: Decimal
    total_amount: Decimal
    host_earnings: Decimal


def billable_hours(start_time: datetime, end_time: datetime) -> int:
    """
    Whole hours billed for a window, rounded up.

    Raises:
        InvalidTimeRangeError: if ``end_time`` is not after ``start_time``
    """
    start_time, end_time = ensure_utc(start_time), ensure_utc(end_time)
    if end_time <= start_time:
        raise InvalidTimeRangeError()
    return math.ceil((end_time - start_time).total_seconds() / 3600)


def calculate_booking_price(
    hourly_rate: Number,
    start_time: datetime,
    end_time: datetime,
    fee_rate: Number,
) -> PriceBreakdown:
    """
    Price a booking window.

    Example: rate 15.00 for 10:00-14:00 with a 15% fee gives subtotal 60.00,
    fee 9.00, total 69.00 and host earnings 51.00.
    """
    rate = to_money(hourly_rate)
    if rate <= 0:
        raise InvalidPricingError()

    hours = billable_hours(start_time, end_time)
    subtotal = to_money(rate * hours)
    platform_fee = to_money(subtotal * Decimal(str(fee_rate)))

    return PriceBreakdown(
        hourly_rate=rate,
        total_hours=hours,
        subtotal=subtotal,
        platform_fee=platform_fee,
        total_amount=to_money(subtotal + platform_fee),
        host_earnings=to_money(subtotal - platform_fee),
    )
