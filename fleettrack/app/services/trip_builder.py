"""
Trip reconstruction.

Turns the ordered location history of one vehicle into a Trip summary:
distance, speed statistics, stop detection and departure/stop/arrival events.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from fleettrack.app.core.exceptions import NotFoundError
from fleettrack.app.models.enums import RouteEventType
from fleettrack.app.schemas.tracking import LocationSample
from fleettrack.app.schemas.trip import LocationPoint, RouteEvent, Trip
from fleettrack.app.services.geo import haversine_distance
from fleettrack.app.storage.base import TelemetryStorage

logger = logging.getLogger(__name__)

STOP_MIN_DURATION_MS = 60_000
_MS = timedelta(milliseconds=1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def _epoch_ms(ts: datetime) -> int:
    return int(ts.timestamp() * 1000)


@dataclass
class _StopRun:
    start: int
    end: int

    def elapsed(self, samples: Sequence[LocationSample]) -> timedelta:
        return samples[self.end].recorded_at - samples[self.start].recorded_at


def detect_stops(
    samples: Sequence[LocationSample],
    min_duration_ms: int = STOP_MIN_DURATION_MS,
) -> List[_StopRun]:
    """
    Find maximal runs of zero-speed samples lasting strictly longer than
    ``min_duration_ms`` (first to last sample of the run).
    """
    threshold = timedelta(milliseconds=min_duration_ms)
    stops: List[_StopRun] = []
    run_start: Optional[int] = None

    for i, sample in enumerate(samples):
        if sample.speed == 0:
            if run_start is None:
                run_start = i
            continue
        if run_start is not None:
            run = _StopRun(run_start, i - 1)
            if run.elapsed(samples) > threshold:
                stops.append(run)
            run_start = None

    # A zero-speed run reaching the end of the window is still a maximal run
    if run_start is not None:
        run = _StopRun(run_start, len(samples) - 1)
        if run.elapsed(samples) > threshold:
            stops.append(run)

    return stops


def total_distance(samples: Sequence[LocationSample]) -> float:
    """Sum of haversine distances between consecutive samples, in meters."""
    distance = 0.0
    for prev, curr in zip(samples, samples[1:]):
        distance += haversine_distance(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
    return distance


def build_trip(
    vehicle_id: str,
    samples: Sequence[LocationSample],
    stop_min_duration_ms: int = STOP_MIN_DURATION_MS,
) -> Optional[Trip]:
    """
    Build a single Trip from samples sorted by ``recorded_at``.

    Returns None when there are no samples. Unsorted input yields undefined
    event ordering.
    """
    if not samples:
        return None

    first, last = samples[0], samples[-1]
    speeds = [s.speed for s in samples]

    stops = detect_stops(samples, stop_min_duration_ms)
    stopped_ms = sum((run.elapsed(samples) for run in stops), timedelta()) / _MS
    window_ms = (last.recorded_at - first.recorded_at) / _MS

    stopped_minutes = round_half_up(stopped_ms / 60_000)
    travel_minutes = round_half_up(window_ms / 60_000) - stopped_minutes

    events: List[RouteEvent] = [
        RouteEvent(
            id=f"dep-{vehicle_id}-{_epoch_ms(first.recorded_at)}",
            type=RouteEventType.DEPARTURE,
            latitude=first.latitude,
            longitude=first.longitude,
            timestamp=first.recorded_at,
            speed=first.speed,
        )
    ]
    for index, run in enumerate(stops):
        start = samples[run.start]
        events.append(RouteEvent(
            id=f"stop-{vehicle_id}-{_epoch_ms(start.recorded_at)}-{index}",
            type=RouteEventType.STOP,
            latitude=start.latitude,
            longitude=start.longitude,
            timestamp=start.recorded_at,
            duration=round_half_up(run.elapsed(samples) / _MS / 60_000),
            speed=0,
        ))
    events.append(RouteEvent(
        id=f"arr-{vehicle_id}-{_epoch_ms(last.recorded_at)}",
        type=RouteEventType.ARRIVAL,
        latitude=last.latitude,
        longitude=last.longitude,
        timestamp=last.recorded_at,
        speed=last.speed,
    ))
    # Stable: departure stays ahead of a stop sharing its timestamp
    events.sort(key=lambda event: event.timestamp)

    points = [
        LocationPoint(
            latitude=s.latitude,
            longitude=s.longitude,
            speed=s.speed,
            heading=s.heading,
            timestamp=s.recorded_at,
            accuracy=s.accuracy,
        )
        for s in samples
    ]

    return Trip(
        id=f"trip-{vehicle_id}-{_epoch_ms(first.recorded_at)}",
        vehicle_id=vehicle_id,
        start_time=first.recorded_at,
        end_time=last.recorded_at,
        total_distance=round_half_up(total_distance(samples)),
        travel_time=travel_minutes,
        stopped_time=stopped_minutes,
        average_speed=round_half_up(sum(speeds) / len(speeds)),
        max_speed=round_half_up(max(speeds)),
        stops_count=len(stops),
        points=points,
        events=events,
    )


class TripService:
    """Read-side trip queries over the storage backend."""

    @staticmethod
    async def get_trips(
        storage: TelemetryStorage,
        vehicle_id: str,
        start: datetime,
        end: datetime,
        stop_min_duration_ms: int = STOP_MIN_DURATION_MS,
    ) -> List[Trip]:
        """Reconstruct the trip of a vehicle over ``[start, end]`` (0 or 1 trips)."""
        vehicle = await storage.get_vehicle(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)

        history = await storage.get_location_history(vehicle_id, start, end)
        # Concurrent writers may append out of recorded_at order
        history = sorted(history, key=lambda s: s.recorded_at)

        trip = build_trip(vehicle_id, history, stop_min_duration_ms)
        if trip is None:
            logger.debug("No history for vehicle %s in [%s, %s]", vehicle_id, start, end)
            return []
        return [trip]
