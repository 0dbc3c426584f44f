"""
Reporting schemas.

Speed violations and the computed fleet/violation statistics. Statistics are
pure views and are never persisted.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from fleettrack.app.core.timeutils import ensure_utc


class SpeedViolationCreate(BaseModel):
    """Violation emitted by the detector, before persistence."""
    vehicle_id: str
    vehicle_name: str
    speed: float
    speed_limit: float
    excess_speed: float = Field(..., gt=0)
    timestamp: datetime
    latitude: float
    longitude: float
    duration: int = 0  # seconds

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class SpeedViolationResponse(SpeedViolationCreate):
    """Persisted violation."""
    id: str

    class Config:
        from_attributes = True


class DailyViolationCount(BaseModel):
    date: str  # YYYY-MM-DD (UTC)
    count: int


class TopViolator(BaseModel):
    vehicle_id: str
    vehicle_name: str
    total_violations: int
    average_excess_speed: float
    last_violation: datetime


class ViolationStats(BaseModel):
    """Violation leaderboard and totals for a time window."""
    total_violations: int = 0
    vehicles_with_violations: int = 0
    average_excess_speed: float = 0
    violations_by_day: List[DailyViolationCount] = []
    top_violators: List[TopViolator] = []


class MostActiveVehicle(BaseModel):
    id: str
    name: str
    distance: int  # meters
    avg_speed: int


class FleetStats(BaseModel):
    """Fleet-wide activity for a time window."""
    total_vehicles: int
    average_speed: int
    total_distance: int  # meters
    most_active_vehicle: Optional[MostActiveVehicle] = None
