"""
Storage capability interface.

Every persistence backend (in-memory, SQLAlchemy) implements this contract.
The concrete backend is chosen once at startup by ``create_storage``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from fleettrack.app.schemas.reports import SpeedViolationCreate, SpeedViolationResponse
from fleettrack.app.schemas.tracking import LocationSample
from fleettrack.app.schemas.vehicle import VehicleCreate, VehicleResponse


class TelemetryStorage(ABC):
    """
    Persistence collaborator for the telemetry core.

    Time-window reads are inclusive on both bounds. History reads return
    samples sorted ascending by ``recorded_at``.
    """

    name: str = "abstract"

    # Vehicles

    @abstractmethod
    async def list_vehicles(self) -> List[VehicleResponse]:
        """Return the full vehicle roster."""

    @abstractmethod
    async def get_vehicle(self, vehicle_id: str) -> Optional[VehicleResponse]:
        """Return a vehicle by id, or None."""

    @abstractmethod
    async def get_vehicle_by_license_plate(self, license_plate: str) -> Optional[VehicleResponse]:
        """Return a vehicle by licence plate (case-insensitive), or None."""

    @abstractmethod
    async def create_vehicle(self, data: VehicleCreate) -> VehicleResponse:
        """
        Register a vehicle.

        Raises:
            ValidationError: If the licence plate is already registered
        """

    @abstractmethod
    async def update_vehicle(self, vehicle_id: str, updates: Dict[str, Any]) -> Optional[VehicleResponse]:
        """Apply a partial update; returns None for an unknown id."""

    @abstractmethod
    async def delete_vehicle(self, vehicle_id: str) -> bool:
        """Delete a vehicle and its location history."""

    # Location history

    @abstractmethod
    async def append_location_sample(self, sample: LocationSample) -> LocationSample:
        """Append a sample to the vehicle's history."""

    @abstractmethod
    async def get_location_history(
        self, vehicle_id: str, start: datetime, end: datetime
    ) -> List[LocationSample]:
        """Samples of one vehicle within the window, sorted by time."""

    @abstractmethod
    async def get_fleet_history(self, start: datetime, end: datetime) -> List[LocationSample]:
        """Samples of all vehicles within the window, sorted by time."""

    # Speed violations

    @abstractmethod
    async def add_speed_violation(self, violation: SpeedViolationCreate) -> SpeedViolationResponse:
        """Persist a violation record."""

    @abstractmethod
    async def get_speed_violations(self, start: datetime, end: datetime) -> List[SpeedViolationResponse]:
        """Violations within the window, newest first."""

    async def close(self) -> None:
        """Release backend resources."""
