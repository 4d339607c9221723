"""
Vehicle Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class VehicleCreate(BaseModel):
    """Manual vehicle registration (vehicles not linked to Tesla)."""
    display_name: Optional[str] = Field(None, max_length=100)
    vin: Optional[str] = Field(None, min_length=17, max_length=17)
    model: Optional[str] = Field(None, max_length=50)
    year: Optional[int] = Field(None, ge=1990, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    length_inches: Optional[float] = Field(None, gt=0)
    width_inches: Optional[float] = Field(None, gt=0)
    height_inches: Optional[float] = Field(None, gt=0)


class VehicleResponse(BaseModel):
    id: int
    user_id: int
    tesla_vehicle_id: Optional[int]
    tesla_id: Optional[str]
    vin: Optional[str]
    display_name: Optional[str]
    model: Optional[str]
    year: Optional[int]
    color: Optional[str]
    length_inches: Optional[float]
    width_inches: Optional[float]
    height_inches: Optional[float]
    battery_level: Optional[int]
    latitude: Optional[float]
    longitude: Optional[float]
    is_active: bool
    last_seen_at: Optional[datetime]

    class Config:
        from_attributes = True
