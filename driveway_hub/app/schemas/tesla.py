"""
Tesla integration schemas.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class TeslaAuthUrlResponse(BaseModel):
    auth_url: str


class TeslaCallbackRequest(BaseModel):
    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)


class TeslaCallbackResponse(BaseModel):
    connected: bool
    vehicles_synced: int


class TeslaWakeResponse(BaseModel):
    vehicle_id: str
    online: bool


class TeslaCommandRequest(BaseModel):
    """Optional JSON body forwarded to the Fleet API command endpoint."""
    parameters: Optional[Dict[str, Any]] = None
