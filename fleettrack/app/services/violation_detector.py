"""
Speed violation detection.

Compares each accepted sample against the vehicle's configured limit and
records a SpeedViolation when it is exceeded.
"""

import logging
from typing import Optional

from fleettrack.app.schemas.reports import SpeedViolationCreate, SpeedViolationResponse
from fleettrack.app.schemas.tracking import LocationSample
from fleettrack.app.schemas.vehicle import VehicleResponse
from fleettrack.app.storage.base import TelemetryStorage

logger = logging.getLogger(__name__)


def detect_violation(vehicle: VehicleResponse, sample: LocationSample) -> Optional[SpeedViolationCreate]:
    """
    Return a violation when ``sample.speed`` is strictly above the limit.

    The limit is taken from the vehicle snapshot at detection time, so later
    limit changes never rewrite past violations.
    """
    if sample.speed <= vehicle.speed_limit:
        return None

    return SpeedViolationCreate(
        vehicle_id=vehicle.id,
        vehicle_name=vehicle.name,
        speed=sample.speed,
        speed_limit=vehicle.speed_limit,
        excess_speed=sample.speed - vehicle.speed_limit,
        timestamp=sample.recorded_at,
        latitude=sample.latitude,
        longitude=sample.longitude,
        duration=0,
    )


async def record_violation(
    storage: TelemetryStorage,
    vehicle: VehicleResponse,
    sample: LocationSample,
) -> Optional[SpeedViolationResponse]:
    """
    Detect and persist a violation for ``sample``.

    Best effort: a storage failure here is logged and never fails ingestion
    of the sample itself.
    """
    violation = detect_violation(vehicle, sample)
    if violation is None:
        return None

    logger.warning(
        "Speed violation: %s (%s) at %.1f km/h, limit %.1f km/h",
        vehicle.name,
        vehicle.id,
        violation.speed,
        violation.speed_limit,
    )
    try:
        return await storage.add_speed_violation(violation)
    except Exception:
        logger.exception("Failed to record speed violation for vehicle %s", vehicle.id)
        return None
