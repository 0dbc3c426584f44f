"""
Telemetry enumerations.

Shared by the ORM models and the Pydantic schemas.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """
    Vehicle status enumeration.

    Statuses:
        MOVING: Last reported speed was positive
        STOPPED: Last reported speed was zero
        IDLE: Engine on, not moving (set manually)
        OFFLINE: No recent telemetry (set manually)
    """
    MOVING = "moving"
    STOPPED = "stopped"
    IDLE = "idle"
    OFFLINE = "offline"


class IgnitionStatus(str, enum.Enum):
    """Ignition state of a vehicle."""
    ON = "on"
    OFF = "off"


class RouteEventType(str, enum.Enum):
    """Kinds of events attached to a reconstructed trip."""
    DEPARTURE = "departure"
    ARRIVAL = "arrival"
    STOP = "stop"
    SPEED_VIOLATION = "speed_violation"
    GEOFENCE_ENTRY = "geofence_entry"
    GEOFENCE_EXIT = "geofence_exit"
