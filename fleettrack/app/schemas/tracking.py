"""
Tracking schemas.

Incoming tracker payloads and the immutable location samples derived from them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fleettrack.app.core.timeutils import ensure_utc
from fleettrack.app.models.enums import IgnitionStatus, VehicleStatus
from fleettrack.app.schemas.vehicle import VehicleResponse


class PositionFix(BaseModel):
    """A validated position fix. Heading is wrapped into [0, 360)."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    speed: float = Field(..., ge=0)
    heading: Optional[float] = None
    accuracy: Optional[float] = Field(None, ge=0)

    class Config:
        allow_inf_nan = False

    @field_validator("heading")
    @classmethod
    def wrap_heading(cls, value: Optional[float]) -> Optional[float]:
        return None if value is None else value % 360


class TrackingData(BaseModel):
    """
    Position report sent by a tracker device.

    Only the shape is checked here; ranges are enforced by ``PositionFix``
    during ingestion.
    """
    license_plate: str = Field(..., min_length=1)
    latitude: float
    longitude: float
    speed: float
    heading: Optional[float] = None
    accuracy: Optional[float] = None


class TrackingResponse(BaseModel):
    """Response after a position report is accepted."""
    success: bool
    message: str
    vehicle: VehicleResponse


class LocationSample(BaseModel):
    """One observed fix. Immutable once written."""
    vehicle_id: str
    latitude: float
    longitude: float
    speed: float
    heading: float = 0
    status: VehicleStatus
    ignition: IgnitionStatus
    accuracy: Optional[float] = None
    recorded_at: datetime

    class Config:
        frozen = True
        from_attributes = True

    @field_validator("recorded_at")
    @classmethod
    def normalize_recorded_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)
