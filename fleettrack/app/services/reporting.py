"""
Reporting aggregator.

Read-only violation and fleet statistics over an inclusive time window.
Empty windows produce zero-valued structures, never errors.
"""

import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from fleettrack.app.schemas.reports import (
    DailyViolationCount,
    FleetStats,
    MostActiveVehicle,
    SpeedViolationResponse,
    TopViolator,
    ViolationStats,
)
from fleettrack.app.schemas.tracking import LocationSample
from fleettrack.app.schemas.vehicle import VehicleResponse
from fleettrack.app.services.trip_builder import round_half_up, total_distance
from fleettrack.app.storage.base import TelemetryStorage

logger = logging.getLogger(__name__)

TOP_VIOLATORS_LIMIT = 10


@dataclass
class _ViolatorTally:
    vehicle_id: str
    vehicle_name: str
    last_violation: datetime
    count: int = 0
    excess_total: float = 0.0

    def add(self, violation: SpeedViolationResponse) -> None:
        self.count += 1
        self.excess_total += violation.excess_speed
        if violation.timestamp > self.last_violation:
            self.last_violation = violation.timestamp


def compute_violation_stats(violations: Sequence[SpeedViolationResponse]) -> ViolationStats:
    """Aggregate violations per vehicle and per UTC day."""
    if not violations:
        return ViolationStats()

    tallies: Dict[str, _ViolatorTally] = OrderedDict()
    by_day: Dict[str, int] = {}

    for violation in violations:
        tally = tallies.get(violation.vehicle_id)
        if tally is None:
            tally = _ViolatorTally(
                vehicle_id=violation.vehicle_id,
                vehicle_name=violation.vehicle_name,
                last_violation=violation.timestamp,
            )
            tallies[violation.vehicle_id] = tally
        tally.add(violation)

        day = violation.timestamp.date().isoformat()
        by_day[day] = by_day.get(day, 0) + 1

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(tallies.values(), key=lambda t: t.count, reverse=True)[:TOP_VIOLATORS_LIMIT]

    return ViolationStats(
        total_violations=len(violations),
        vehicles_with_violations=len(tallies),
        average_excess_speed=sum(v.excess_speed for v in violations) / len(violations),
        violations_by_day=[
            DailyViolationCount(date=day, count=count) for day, count in sorted(by_day.items())
        ],
        top_violators=[
            TopViolator(
                vehicle_id=t.vehicle_id,
                vehicle_name=t.vehicle_name,
                total_violations=t.count,
                average_excess_speed=t.excess_total / t.count,
                last_violation=t.last_violation,
            )
            for t in ranked
        ],
    )


def compute_fleet_stats(
    samples: Sequence[LocationSample],
    vehicles: Sequence[VehicleResponse],
) -> FleetStats:
    """
    Fleet-wide activity from the in-window samples and the current roster.

    Distances are computed per vehicle over its own time-sorted samples.
    Samples of vehicles no longer in the roster still count towards the
    totals but are reported by id only.
    """
    if not samples:
        return FleetStats(total_vehicles=len(vehicles), average_speed=0, total_distance=0)

    # Insertion ordered, so ties go to the first vehicle seen
    activity: Dict[str, List[LocationSample]] = defaultdict(list)
    for sample in samples:
        activity[sample.vehicle_id].append(sample)

    names = {v.id: v.name for v in vehicles}
    fleet_distance = 0.0
    most_active: Optional[MostActiveVehicle] = None
    best_distance = -1.0

    for vehicle_id, vehicle_samples in activity.items():
        ordered = sorted(vehicle_samples, key=lambda s: s.recorded_at)
        distance = total_distance(ordered)
        fleet_distance += distance
        if distance > best_distance:
            best_distance = distance
            most_active = MostActiveVehicle(
                id=vehicle_id,
                name=names.get(vehicle_id, vehicle_id),
                distance=round_half_up(distance),
                avg_speed=round_half_up(sum(s.speed for s in ordered) / len(ordered)),
            )

    return FleetStats(
        total_vehicles=len(vehicles),
        average_speed=round_half_up(sum(s.speed for s in samples) / len(samples)),
        total_distance=round_half_up(fleet_distance),
        most_active_vehicle=most_active,
    )


class ReportingService:
    """Report queries over the storage backend."""

    @staticmethod
    async def get_violations(
        storage: TelemetryStorage, start: datetime, end: datetime
    ) -> List[SpeedViolationResponse]:
        return await storage.get_speed_violations(start, end)

    @staticmethod
    async def get_violation_stats(storage: TelemetryStorage, start: datetime, end: datetime) -> ViolationStats:
        violations = await storage.get_speed_violations(start, end)
        logger.debug("Computing violation stats over %d violations", len(violations))
        return compute_violation_stats(violations)

    @staticmethod
    async def get_fleet_stats(storage: TelemetryStorage, start: datetime, end: datetime) -> FleetStats:
        vehicles = await storage.list_vehicles()
        samples = await storage.get_fleet_history(start, end)
        logger.debug("Computing fleet stats over %d samples", len(samples))
        return compute_fleet_stats(samples, vehicles)
