"""
Trip schemas.

Trips are materialized on query from location history; they are never stored.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from fleettrack.app.models.enums import RouteEventType


class LocationPoint(BaseModel):
    """A point on a reconstructed trip."""
    latitude: float
    longitude: float
    speed: float
    heading: float
    timestamp: datetime
    accuracy: Optional[float] = None


class RouteEvent(BaseModel):
    """
    Tagged route event.

    ``duration`` (minutes) is set for stops, ``speed``/``speed_limit`` for
    speed violations and ``geofence_name`` for geofence events.
    """
    id: str
    type: RouteEventType
    latitude: float
    longitude: float
    timestamp: datetime
    duration: Optional[int] = None
    speed: Optional[float] = None
    speed_limit: Optional[float] = None
    geofence_name: Optional[str] = None
    address: Optional[str] = None


class Trip(BaseModel):
    """Reconstructed journey summary."""
    id: str
    vehicle_id: str
    start_time: datetime
    end_time: datetime
    total_distance: int  # meters
    travel_time: int  # minutes
    stopped_time: int  # minutes
    average_speed: int
    max_speed: int
    stops_count: int
    points: List[LocationPoint] = []
    events: List[RouteEvent] = []
