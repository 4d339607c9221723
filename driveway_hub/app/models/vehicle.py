"""
Vehicle database model.

Vehicles are owned by a driver and are either registered by hand or synced
from the Tesla Fleet API.
"""

from sqlalchemy import Column, Integer, BigInteger, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from driveway_hub.app.db.session import Base


class Vehicle(Base):
    """
    Vehicle model.

    Dimensions are in inches and are compared against driveway limits
    when a booking is created.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Tesla identification
    tesla_vehicle_id = Column(BigInteger, unique=True, nullable=True, index=True)
    tesla_id = Column(String(50), nullable=True)  # id used in Fleet API URLs
    vin = Column(String(17), nullable=True)

    display_name = Column(String(100), nullable=True)
    model = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)
    color = Column(String(50), nullable=True)

    # Physical dimensions (inches)
    length_inches = Column(Float, nullable=True)
    width_inches = Column(Float, nullable=True)
    height_inches = Column(Float, nullable=True)

    # Last known telemetry
    battery_level = Column(Integer, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_seen_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, model='{self.model}', owner_id={self.user_id})>"
