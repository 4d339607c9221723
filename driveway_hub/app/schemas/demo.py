"""
Demo simulation schemas.
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class DemoPosition(BaseModel):
    time: float
    lat: float
    lng: float
    speed: int
    battery: int
    distance: int


class DemoEventResponse(BaseModel):
    elapsed_seconds: float
    category: str
    level: str
    message: str
    details: Optional[Dict[str, Any]] = None


class DemoStateResponse(BaseModel):
    running: bool
    started: bool
    phase: Optional[str]
    elapsed_seconds: float
    booking_reference: Optional[str]
    position: Optional[DemoPosition]
    events: List[DemoEventResponse]
