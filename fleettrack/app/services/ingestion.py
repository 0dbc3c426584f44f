"""
Live position ingestion.

Single entry point through which every position fix flows, whether reported
by a tracker or synthesized by the simulator: validate, update the vehicle
snapshot, append history, check the speed limit and notify subscribers.
"""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from fleettrack.app.core.exceptions import NotFoundError, ValidationError
from fleettrack.app.core.timeutils import ensure_utc, utcnow
from fleettrack.app.models.enums import IgnitionStatus, VehicleStatus
from fleettrack.app.schemas.tracking import LocationSample, PositionFix
from fleettrack.app.schemas.vehicle import VehicleResponse
from fleettrack.app.services.notification_service import VehicleUpdateRegistry
from fleettrack.app.services.violation_detector import record_violation
from fleettrack.app.storage.base import TelemetryStorage

logger = logging.getLogger(__name__)


def parse_fix(**values) -> PositionFix:
    """
    Validate a raw position fix.

    Raises:
        ValidationError: On out-of-range or non-finite values
    """
    try:
        return PositionFix.model_validate(values)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise ValidationError(f"{field}: {error['msg']}", field=field, value=str(error.get("input"))) from exc


class TrackingIngestor:
    """Applies position fixes to the fleet and fans out the result."""

    def __init__(self, storage: TelemetryStorage, registry: VehicleUpdateRegistry):
        self.storage = storage
        self.registry = registry

    async def _resolve(self, identifier: str) -> VehicleResponse:
        if not isinstance(identifier, str) or not identifier.strip():
            raise ValidationError("Vehicle identifier must not be blank", field="license_plate", value=identifier)

        vehicle = await self.storage.get_vehicle(identifier)
        if vehicle is None:
            vehicle = await self.storage.get_vehicle_by_license_plate(identifier)
        if vehicle is None:
            raise NotFoundError("Vehicle", identifier)
        return vehicle

    async def ingest_sample(
        self,
        identifier: str,
        latitude: float,
        longitude: float,
        speed: float,
        heading: Optional[float] = None,
        accuracy: Optional[float] = None,
        recorded_at: Optional[datetime] = None,
    ) -> VehicleResponse:
        """
        Ingest a fix reported for a vehicle id or licence plate.

        Any positive speed marks the vehicle ``moving``, zero marks it
        ``stopped``. Ignition is switched on while moving and otherwise left
        as it was.

        Raises:
            ValidationError: Malformed coordinates, speed or identifier
            NotFoundError: No vehicle matches ``identifier``
            PersistenceError: The snapshot or history write failed
        """
        fix = parse_fix(
            latitude=latitude, longitude=longitude, speed=speed, heading=heading, accuracy=accuracy,
        )
        vehicle = await self._resolve(identifier)

        moving = fix.speed > 0
        status = VehicleStatus.MOVING if moving else VehicleStatus.STOPPED
        ignition = IgnitionStatus.ON if moving else vehicle.ignition

        return await self._apply(vehicle, fix, status, ignition, recorded_at)

    async def apply_simulated_position(
        self,
        vehicle_id: str,
        latitude: float,
        longitude: float,
        speed: float,
        heading: float,
        notify: bool = True,
    ) -> VehicleResponse:
        """Apply a synthesized fix. Status and ignition are left untouched."""
        fix = parse_fix(latitude=latitude, longitude=longitude, speed=speed, heading=heading)
        vehicle = await self.storage.get_vehicle(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)

        return await self._apply(vehicle, fix, vehicle.status, vehicle.ignition, None, notify=notify)

    async def _apply(
        self,
        vehicle: VehicleResponse,
        fix: PositionFix,
        status: VehicleStatus,
        ignition: IgnitionStatus,
        recorded_at: Optional[datetime],
        notify: bool = True,
    ) -> VehicleResponse:
        timestamp = ensure_utc(recorded_at) if recorded_at is not None else utcnow()
        heading = fix.heading if fix.heading is not None else vehicle.heading
        accuracy = fix.accuracy if fix.accuracy is not None else vehicle.accuracy

        updated = await self.storage.update_vehicle(vehicle.id, {
            "latitude": fix.latitude,
            "longitude": fix.longitude,
            "current_speed": fix.speed,
            "heading": heading,
            "accuracy": accuracy,
            "status": status,
            "ignition": ignition,
            "last_update": timestamp,
        })
        if updated is None:
            # Deleted between resolve and write
            raise NotFoundError("Vehicle", vehicle.id)

        sample = LocationSample(
            vehicle_id=vehicle.id,
            latitude=fix.latitude,
            longitude=fix.longitude,
            speed=fix.speed,
            heading=heading,
            status=status,
            ignition=ignition,
            accuracy=accuracy,
            recorded_at=timestamp,
        )
        await self.storage.append_location_sample(sample)

        await record_violation(self.storage, updated, sample)

        if notify:
            await self.notify_subscribers()
        return updated

    async def notify_subscribers(self) -> int:
        """Publish the current roster to every subscriber."""
        if not self.registry.subscriber_count:
            return 0
        vehicles: List[VehicleResponse] = await self.storage.list_vehicles()
        return self.registry.publish(vehicles)
