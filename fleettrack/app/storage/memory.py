"""
In-memory storage backend.

Used for development and demos when no database is configured. State lives
for the lifetime of the process; a single event loop is assumed.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from fleettrack.app.core.exceptions import ValidationError
from fleettrack.app.core.timeutils import ensure_utc, utcnow
from fleettrack.app.models.enums import IgnitionStatus, VehicleStatus
from fleettrack.app.schemas.reports import SpeedViolationCreate, SpeedViolationResponse
from fleettrack.app.schemas.tracking import LocationSample
from fleettrack.app.schemas.vehicle import VehicleCreate, VehicleResponse
from fleettrack.app.storage.base import TelemetryStorage


def sample_fleet() -> List[VehicleCreate]:
    """Demo roster around São Paulo used when seeding an empty store."""
    return [
        VehicleCreate(name="Truck 01", license_plate="ABC-1234", model="Mercedes Actros",
                      status=VehicleStatus.MOVING, ignition=IgnitionStatus.ON, current_speed=72,
                      speed_limit=80, heading=45, latitude=-23.5489, longitude=-46.6388,
                      accuracy=5, battery_level=85),
        VehicleCreate(name="Van 02", license_plate="DEF-5678", model="Fiat Ducato",
                      status=VehicleStatus.MOVING, ignition=IgnitionStatus.ON, current_speed=95,
                      speed_limit=60, heading=180, latitude=-23.5605, longitude=-46.6533,
                      accuracy=3, battery_level=92),
        VehicleCreate(name="Truck 03", license_plate="GHI-9012", model="Volvo FH",
                      status=VehicleStatus.STOPPED, ignition=IgnitionStatus.OFF, current_speed=0,
                      speed_limit=80, heading=0, latitude=-23.5305, longitude=-46.6233,
                      accuracy=4, battery_level=78),
        VehicleCreate(name="Van 04", license_plate="JKL-3456", model="Renault Master",
                      status=VehicleStatus.MOVING, ignition=IgnitionStatus.ON, current_speed=55,
                      speed_limit=60, heading=270, latitude=-23.5705, longitude=-46.6433,
                      accuracy=6, battery_level=67),
        VehicleCreate(name="Truck 05", license_plate="MNO-7890", model="Scania R450",
                      status=VehicleStatus.IDLE, ignition=IgnitionStatus.ON, current_speed=0,
                      speed_limit=80, heading=90, latitude=-23.5405, longitude=-46.6133,
                      accuracy=4, battery_level=91),
        VehicleCreate(name="Van 06", license_plate="PQR-1234", model="VW Delivery",
                      status=VehicleStatus.OFFLINE, ignition=IgnitionStatus.OFF, current_speed=0,
                      speed_limit=60, heading=0, latitude=-23.5205, longitude=-46.6733,
                      accuracy=10, battery_level=45),
    ]


def _in_window(ts: datetime, start: datetime, end: datetime) -> bool:
    return start <= ts <= end


class MemoryStorage(TelemetryStorage):
    """Dict-backed implementation of the storage capability."""

    name = "memory"

    def __init__(self, vehicles: Optional[Iterable[VehicleCreate]] = None):
        self._vehicles: Dict[str, VehicleResponse] = {}
        self._history: Dict[str, List[LocationSample]] = {}
        self._violations: List[SpeedViolationResponse] = []
        for data in vehicles or ():
            self._insert_vehicle(data)

    def _insert_vehicle(self, data: VehicleCreate) -> VehicleResponse:
        if self._find_by_plate(data.license_plate) is not None:
            raise ValidationError(
                f"Vehicle with license plate {data.license_plate} already exists",
                field="license_plate",
                value=data.license_plate,
            )
        vehicle = VehicleResponse(id=str(uuid.uuid4()), last_update=utcnow(), **data.model_dump())
        self._vehicles[vehicle.id] = vehicle
        self._history[vehicle.id] = []
        return vehicle

    def _find_by_plate(self, license_plate: str) -> Optional[VehicleResponse]:
        wanted = license_plate.strip().lower()
        for vehicle in self._vehicles.values():
            if vehicle.license_plate.lower() == wanted:
                return vehicle
        return None

    # Vehicles

    async def list_vehicles(self) -> List[VehicleResponse]:
        return list(self._vehicles.values())

    async def get_vehicle(self, vehicle_id: str) -> Optional[VehicleResponse]:
        return self._vehicles.get(vehicle_id)

    async def get_vehicle_by_license_plate(self, license_plate: str) -> Optional[VehicleResponse]:
        return self._find_by_plate(license_plate)

    async def create_vehicle(self, data: VehicleCreate) -> VehicleResponse:
        return self._insert_vehicle(data)

    async def update_vehicle(self, vehicle_id: str, updates: Dict[str, Any]) -> Optional[VehicleResponse]:
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            return None

        plate = updates.get("license_plate")
        if plate is not None:
            other = self._find_by_plate(plate)
            if other is not None and other.id != vehicle_id:
                raise ValidationError(
                    f"Vehicle with license plate {plate} already exists",
                    field="license_plate",
                    value=plate,
                )

        # Re-validated so enums and timestamps stay normalized
        updated = VehicleResponse.model_validate({**vehicle.model_dump(), **updates})
        self._vehicles[vehicle_id] = updated
        return updated

    async def delete_vehicle(self, vehicle_id: str) -> bool:
        if self._vehicles.pop(vehicle_id, None) is None:
            return False
        self._history.pop(vehicle_id, None)
        return True

    # Location history

    async def append_location_sample(self, sample: LocationSample) -> LocationSample:
        self._history.setdefault(sample.vehicle_id, []).append(sample)
        return sample

    async def get_location_history(
        self, vehicle_id: str, start: datetime, end: datetime
    ) -> List[LocationSample]:
        start, end = ensure_utc(start), ensure_utc(end)
        samples = [
            s for s in self._history.get(vehicle_id, [])
            if _in_window(s.recorded_at, start, end)
        ]
        return sorted(samples, key=lambda s: s.recorded_at)

    async def get_fleet_history(self, start: datetime, end: datetime) -> List[LocationSample]:
        start, end = ensure_utc(start), ensure_utc(end)
        samples = [
            s for history in self._history.values() for s in history
            if _in_window(s.recorded_at, start, end)
        ]
        return sorted(samples, key=lambda s: s.recorded_at)

    # Speed violations

    async def add_speed_violation(self, violation: SpeedViolationCreate) -> SpeedViolationResponse:
        stored = SpeedViolationResponse(id=str(uuid.uuid4()), **violation.model_dump())
        self._violations.append(stored)
        return stored

    async def get_speed_violations(self, start: datetime, end: datetime) -> List[SpeedViolationResponse]:
        start, end = ensure_utc(start), ensure_utc(end)
        violations = [v for v in self._violations if _in_window(v.timestamp, start, end)]
        return sorted(violations, key=lambda v: v.timestamp, reverse=True)
