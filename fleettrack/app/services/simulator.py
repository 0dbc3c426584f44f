"""
Position simulator.

Demo position source: every tick nudges the speed, heading and position of
each ``moving`` vehicle and feeds the result through the ingestion pipeline,
so history, violation checks and notifications behave as for real trackers.
"""

import asyncio
import logging
import random
from typing import Optional

from fleettrack.app.core.exceptions import NotFoundError
from fleettrack.app.models.enums import VehicleStatus
from fleettrack.app.schemas.vehicle import VehicleResponse
from fleettrack.app.services.ingestion import TrackingIngestor
from fleettrack.app.services.trip_builder import round_half_up
from fleettrack.app.storage.base import TelemetryStorage

logger = logging.getLogger(__name__)

MAX_SPEED = 120
SPEED_JITTER = 5.0
HEADING_JITTER = 15.0
POSITION_JITTER = 0.001


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class PositionSimulator:
    """Cancelable periodic task driving ``moving`` vehicles."""

    def __init__(
        self,
        ingestor: TrackingIngestor,
        storage: TelemetryStorage,
        interval_seconds: float = 3.0,
        rng: Optional[random.Random] = None,
    ):
        self.ingestor = ingestor
        self.storage = storage
        self.interval_seconds = interval_seconds
        self.rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="position-simulator")
        logger.info("Position simulator started (interval %.1fs)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Position simulator stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("Simulation tick failed", exc_info=True)

    def _perturb(self, vehicle: VehicleResponse) -> dict:
        rng = self.rng
        speed = _clamp(vehicle.current_speed + rng.uniform(-SPEED_JITTER, SPEED_JITTER), 0, MAX_SPEED)
        heading = (vehicle.heading + rng.uniform(-HEADING_JITTER, HEADING_JITTER) + 360) % 360
        return {
            "latitude": _clamp(vehicle.latitude + rng.uniform(-POSITION_JITTER, POSITION_JITTER), -90, 90),
            "longitude": _clamp(vehicle.longitude + rng.uniform(-POSITION_JITTER, POSITION_JITTER), -180, 180),
            "speed": round_half_up(speed),
            "heading": round_half_up(heading) % 360,
        }

    async def tick(self) -> int:
        """Advance every moving vehicle once; returns how many were moved."""
        vehicles = await self.storage.list_vehicles()
        moved = 0
        try:
            for vehicle in vehicles:
                if vehicle.status != VehicleStatus.MOVING:
                    continue
                try:
                    await self.ingestor.apply_simulated_position(vehicle.id, notify=False, **self._perturb(vehicle))
                except NotFoundError:
                    logger.info("Vehicle %s removed during simulation tick, skipping", vehicle.id)
                    continue
                moved += 1
        finally:
            await self.ingestor.notify_subscribers()
        return moved
