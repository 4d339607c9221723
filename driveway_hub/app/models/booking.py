"""
Booking database model.

A booking reserves one driveway for one vehicle over a half-open time
window ``[start_time, end_time)``. Pricing is frozen on the row at
creation time.
"""

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Numeric, ForeignKey,
    Enum, CheckConstraint, Index, DDL, event,
)
from sqlalchemy.sql import func
from driveway_hub.app.db.session import Base
from driveway_hub.app.models.enums import BookingStatus


class Booking(Base):
    """
    Booking model.

    Lifecycle: pending -> confirmed -> active -> completed, with cancelled
    and no_show as terminal side exits. See
    ``driveway_hub.app.domain.booking.state_machine``.
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    booking_reference = Column(String(20), unique=True, nullable=False, index=True)

    # Parties
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    host_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False)
    driveway_id = Column(Integer, ForeignKey('driveways.id'), nullable=False, index=True)

    # Window (UTC)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)

    # Pricing snapshot
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    total_hours = Column(Integer, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    host_earnings = Column(Numeric(10, 2), nullable=False)

    status = Column(
        Enum(BookingStatus, values_callable=lambda e: [m.value for m in e]),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    driver_notes = Column(Text, nullable=True)

    # Side effects and lifecycle timestamps
    tesla_navigation_sent = Column(Boolean, default=False, nullable=False)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    arrival_detected_at = Column(DateTime(timezone=True), nullable=True)
    departure_detected_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint('end_time > start_time', name='ck_bookings_time_range'),
        CheckConstraint('total_hours > 0', name='ck_bookings_total_hours_positive'),
        CheckConstraint(
            'subtotal >= 0 AND platform_fee >= 0 AND total_amount >= 0 AND host_earnings >= 0',
            name='ck_bookings_amounts_non_negative',
        ),
        Index('ix_bookings_driveway_window', 'driveway_id', 'start_time', 'end_time'),
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, ref='{self.booking_reference}', driveway_id={self.driveway_id}, status='{self.status.value}')>"


# PostgreSQL backstop for overlapping occupying bookings on one driveway.
# tstzrange defaults to '[)' bounds, so back-to-back windows do not overlap.
event.listen(
    Booking.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
NO_OVERLAP_CONSTRAINT = DDL(
    "ALTER TABLE bookings ADD CONSTRAINT ex_bookings_no_overlap "
    "EXCLUDE USING gist (driveway_id WITH =, tstzrange(start_time, end_time) WITH &&) "
    "WHERE (status IN ('pending', 'confirmed', 'active'))"
).execute_if(dialect="postgresql")
event.listen(Booking.__table__, "after_create", NO_OVERLAP_CONSTRAINT)
