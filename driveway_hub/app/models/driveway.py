"""
Driveway database model.

Hosts list driveways with location, pricing and vehicle size limits.
"""

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Float, Numeric,
    ForeignKey, Enum, CheckConstraint,
)
from sqlalchemy.sql import func
from driveway_hub.app.db.session import Base
from driveway_hub.app.models.enums import ListingStatus


class Driveway(Base):
    """
    Driveway listing.

    Availability is the ``is_available`` flag plus the absence of an
    overlapping booking for the requested window.
    """
    __tablename__ = "driveways"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Driveway belongs to one host
    host_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Listing details
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(500), nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)

    # Geolocation
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    # Pricing
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    daily_rate = Column(Numeric(10, 2), nullable=True)

    # Capacity limits (inches); height is optional
    max_vehicle_length = Column(Float, nullable=False)
    max_vehicle_width = Column(Float, nullable=False)
    max_vehicle_height = Column(Float, nullable=True)

    # Features
    has_ev_charging = Column(Boolean, default=False, nullable=False)
    charging_connector_type = Column(String(50), nullable=True)
    is_covered = Column(Boolean, default=False, nullable=False)
    has_security_camera = Column(Boolean, default=False, nullable=False)

    # Status
    listing_status = Column(
        Enum(ListingStatus, values_callable=lambda e: [m.value for m in e]),
        default=ListingStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    is_available = Column(Boolean, default=True, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint('hourly_rate > 0', name='ck_driveways_hourly_rate_positive'),
    )

    def __repr__(self):
        return f"<Driveway(id={self.id}, title='{self.title}', host_id={self.host_id}, available={self.is_available})>"
