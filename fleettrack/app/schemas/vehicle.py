"""
Vehicle Pydantic schemas.

Defines request and response models for the vehicle roster.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fleettrack.app.core.timeutils import ensure_utc
from fleettrack.app.models.enums import IgnitionStatus, VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=1, max_length=200)
    license_plate: str = Field(..., min_length=1, max_length=20, description="Unique licence plate")
    model: Optional[str] = Field(None, max_length=100)

    status: VehicleStatus = VehicleStatus.OFFLINE
    ignition: IgnitionStatus = IgnitionStatus.OFF
    current_speed: float = Field(0, ge=0)
    speed_limit: float = Field(80, gt=0, description="Speed limit in km/h")
    heading: float = Field(0, ge=0, lt=360)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: float = Field(5, ge=0)
    battery_level: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("license_plate")
    @classmethod
    def strip_plate(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("license_plate must not be blank")
        return value


class VehicleUpdate(BaseModel):
    """Schema for a partial vehicle update."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    model: Optional[str] = Field(None, max_length=100)
    status: Optional[VehicleStatus] = None
    ignition: Optional[IgnitionStatus] = None
    current_speed: Optional[float] = Field(None, ge=0)
    speed_limit: Optional[float] = Field(None, gt=0)
    heading: Optional[float] = Field(None, ge=0, lt=360)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    battery_level: Optional[int] = Field(None, ge=0, le=100)


class VehicleResponse(BaseModel):
    """Current-state snapshot of a vehicle."""
    id: str
    name: str
    license_plate: str
    model: Optional[str] = None
    status: VehicleStatus
    ignition: IgnitionStatus
    current_speed: float
    speed_limit: float
    heading: float
    latitude: float
    longitude: float
    accuracy: float
    last_update: datetime
    battery_level: Optional[int] = None

    class Config:
        from_attributes = True

    @field_validator("last_update")
    @classmethod
    def normalize_last_update(cls, value: datetime) -> datetime:
        return ensure_utc(value)
