"""
Trip reconstruction tests.
"""

import pytest

from fleettrack.app.core.exceptions import NotFoundError
from fleettrack.app.models.enums import RouteEventType
from fleettrack.app.services.trip_builder import (
    TripService,
    build_trip,
    detect_stops,
    round_half_up,
)
from fleettrack.tests.factories import at, make_sample, make_vehicle

# ~500 m north of the default sample position
MOVED_LAT = -23.5489 + 0.0045


def test_empty_history_builds_no_trip():
    assert build_trip("v1", []) is None


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(12.4999) == 12
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3


def test_stop_of_exactly_one_minute_is_not_recorded():
    samples = [
        make_sample(seconds=0, speed=0),
        make_sample(seconds=60, speed=0),
        make_sample(seconds=90, speed=30),
    ]
    assert detect_stops(samples) == []

    trip = build_trip("v1", samples)
    assert trip.stops_count == 0
    assert trip.stopped_time == 0


def test_stop_just_over_one_minute_is_recorded():
    samples = [
        make_sample(seconds=0, speed=0),
        make_sample(seconds=60, ms=1, speed=0),
        make_sample(seconds=90, speed=30),
    ]
    trip = build_trip("v1", samples)

    assert trip.stops_count == 1
    stops = [e for e in trip.events if e.type == RouteEventType.STOP]
    assert len(stops) == 1
    assert stops[0].id == "stop-v1-1709280000000-0"
    assert stops[0].duration == 1
    assert stops[0].timestamp == at(0)


def test_short_zero_runs_do_not_merge_across_movement():
    samples = [
        make_sample(seconds=0, speed=0),
        make_sample(seconds=30, speed=0),
        make_sample(seconds=90, speed=40, latitude=MOVED_LAT),
        make_sample(seconds=120, speed=0, latitude=MOVED_LAT),
    ]
    trip = build_trip("v1", samples)

    assert trip.stops_count == 0
    assert trip.stopped_time == 0
    assert trip.travel_time == 2
    assert trip.max_speed == 40
    assert trip.average_speed == 10
    assert trip.total_distance == pytest.approx(500, abs=5)


def test_trailing_stop_counts():
    samples = [
        make_sample(seconds=0, speed=50),
        make_sample(seconds=60, speed=0),
        make_sample(seconds=240, speed=0),
    ]
    trip = build_trip("v1", samples)

    assert trip.stops_count == 1
    assert trip.stopped_time == 3
    assert trip.travel_time == 1


def test_events_ids_and_order():
    samples = [
        make_sample(seconds=0, speed=0),
        make_sample(seconds=120, speed=0),
        make_sample(seconds=180, speed=60, latitude=MOVED_LAT),
        make_sample(seconds=300, speed=20, latitude=MOVED_LAT + 0.001),
    ]
    trip = build_trip("v1", samples)
    ms0 = int(at(0).timestamp() * 1000)
    ms_end = int(at(300).timestamp() * 1000)

    assert trip.id == f"trip-v1-{ms0}"
    assert [e.type for e in trip.events] == [
        RouteEventType.DEPARTURE,
        RouteEventType.STOP,
        RouteEventType.ARRIVAL,
    ]
    assert trip.events[0].id == f"dep-v1-{ms0}"
    assert trip.events[-1].id == f"arr-v1-{ms_end}"
    assert trip.events[1].duration == 2
    assert trip.start_time == at(0)
    assert trip.end_time == at(300)
    assert len(trip.points) == 4


def test_single_sample_trip():
    trip = build_trip("v1", [make_sample(seconds=0, speed=35)])

    assert trip.total_distance == 0
    assert trip.travel_time == 0
    assert trip.stopped_time == 0
    assert trip.average_speed == 35
    assert [e.type for e in trip.events] == [RouteEventType.DEPARTURE, RouteEventType.ARRIVAL]


@pytest.mark.parametrize("offsets", [
    [0, 45, 130, 200, 610],
    [0, 61, 62, 900, 1000, 1100],
    [0, 10, 20, 30],
])
def test_travel_plus_stopped_matches_window(offsets):
    samples = [
        make_sample(seconds=offset, speed=0 if i % 3 != 2 else 25)
        for i, offset in enumerate(offsets)
    ]
    trip = build_trip("v1", samples)
    window_minutes = round_half_up((offsets[-1] - offsets[0]) / 60)

    assert abs(trip.travel_time + trip.stopped_time - window_minutes) <= 1


def test_custom_stop_threshold():
    samples = [
        make_sample(seconds=0, speed=0),
        make_sample(seconds=40, speed=0),
        make_sample(seconds=50, speed=10),
    ]
    assert build_trip("v1", samples, stop_min_duration_ms=30_000).stops_count == 1


async def test_trip_service_unknown_vehicle(memory_storage):
    with pytest.raises(NotFoundError):
        await TripService.get_trips(memory_storage, "missing", at(0), at(600))


async def test_trip_service_sorts_history(memory_storage):
    vehicle = await memory_storage.create_vehicle(make_vehicle())
    for seconds, speed in [(120, 30), (0, 0), (90, 0)]:
        await memory_storage.append_location_sample(make_sample(vehicle.id, seconds=seconds, speed=speed))

    trips = await TripService.get_trips(memory_storage, vehicle.id, at(0), at(600))

    assert len(trips) == 1
    assert trips[0].stops_count == 1
    assert [p.timestamp for p in trips[0].points] == [at(0), at(90), at(120)]


async def test_trip_service_empty_window(memory_storage):
    vehicle = await memory_storage.create_vehicle(make_vehicle())
    await memory_storage.append_location_sample(make_sample(vehicle.id, seconds=0, speed=10))

    assert await TripService.get_trips(memory_storage, vehicle.id, at(10), at(600)) == []
