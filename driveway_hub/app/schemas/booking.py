"""
Booking schemas.

Money is stored as Decimal and rendered as JSON numbers.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from driveway_hub.app.models.enums import BookingStatus


class BookingCreate(BaseModel):
    """Request body for POST /api/bookings/create."""
    vehicle_id: int
    driveway_id: int
    start_time: datetime
    end_time: datetime
    driver_notes: Optional[str] = Field(None, max_length=1000)


class BookingCreateResponse(BaseModel):
    booking_id: int
    booking_reference: str
    status: BookingStatus
    total_amount: float
    platform_fee: float
    host_payout: float
    subtotal: float
    total_hours: int
    host_id: int


class BookingResponse(BaseModel):
    """Schema for booking response."""
    id: int
    booking_reference: str
    driver_id: int
    host_id: int
    vehicle_id: int
    driveway_id: int
    start_time: datetime
    end_time: datetime
    hourly_rate: float
    total_hours: int
    subtotal: float
    platform_fee: float
    total_amount: float
    host_earnings: float
    status: BookingStatus
    driver_notes: Optional[str]
    tesla_navigation_sent: bool
    confirmed_at: Optional[datetime]
    arrival_detected_at: Optional[datetime]
    departure_detected_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class BookingListItem(BookingResponse):
    user_role: str


class ArrivalRequest(BaseModel):
    """Current vehicle position; omit both to read it from Tesla."""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def both_or_neither(self) -> "ArrivalRequest":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class HostAnalytics(BaseModel):
    period_days: int
    total_bookings: int
    total_earnings: float
    avg_booking_value: float
    completed_bookings: int
    cancelled_bookings: int
