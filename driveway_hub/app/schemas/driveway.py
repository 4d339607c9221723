"""
Driveway Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from driveway_hub.app.models.enums import ListingStatus


class DrivewayCreate(BaseModel):
    """Schema for creating a new driveway listing."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    address: str = Field(..., min_length=1, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    hourly_rate: float = Field(..., gt=0, description="Price per hour")
    daily_rate: Optional[float] = Field(None, gt=0)
    max_vehicle_length: float = Field(..., gt=0, description="Inches")
    max_vehicle_width: float = Field(..., gt=0, description="Inches")
    max_vehicle_height: Optional[float] = Field(None, gt=0, description="Inches; omit for no limit")
    has_ev_charging: bool = False
    charging_connector_type: Optional[str] = Field(None, max_length=50)
    is_covered: bool = False
    has_security_camera: bool = False


class AvailabilityUpdate(BaseModel):
    is_available: bool


class DrivewayResponse(BaseModel):
    """Schema for driveway response."""
    id: int
    host_id: int
    title: str
    description: Optional[str]
    address: str
    city: Optional[str]
    state: Optional[str]
    zip_code: Optional[str]
    latitude: float
    longitude: float
    hourly_rate: float
    daily_rate: Optional[float]
    max_vehicle_length: float
    max_vehicle_width: float
    max_vehicle_height: Optional[float]
    has_ev_charging: bool
    charging_connector_type: Optional[str]
    is_covered: bool
    has_security_camera: bool
    listing_status: ListingStatus
    is_available: bool
    distance_km: Optional[float] = None

    class Config:
        from_attributes = True
