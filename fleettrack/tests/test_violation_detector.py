"""
Speed violation detector tests.
"""

import logging

from fleettrack.app.core.exceptions import PersistenceError
from fleettrack.app.services.violation_detector import detect_violation, record_violation
from fleettrack.tests.factories import at, make_sample, make_vehicle


async def _vehicle(storage, speed_limit=60):
    return await storage.create_vehicle(make_vehicle(speed_limit=speed_limit))


async def test_speed_above_limit_is_a_violation(memory_storage):
    vehicle = await _vehicle(memory_storage)
    violation = detect_violation(vehicle, make_sample(vehicle.id, seconds=5, speed=75))

    assert violation is not None
    assert violation.excess_speed == 15
    assert violation.speed_limit == 60
    assert violation.vehicle_name == "Truck 01"
    assert violation.timestamp == at(5)
    assert violation.duration == 0


async def test_speed_at_limit_is_not_a_violation(memory_storage):
    vehicle = await _vehicle(memory_storage)
    assert detect_violation(vehicle, make_sample(vehicle.id, speed=60)) is None
    assert detect_violation(vehicle, make_sample(vehicle.id, speed=0)) is None


async def test_sustained_violation_records_every_sample(memory_storage):
    vehicle = await _vehicle(memory_storage)
    for seconds in (0, 3, 6):
        await record_violation(memory_storage, vehicle, make_sample(vehicle.id, seconds=seconds, speed=90))

    violations = await memory_storage.get_speed_violations(at(0), at(10))
    assert len(violations) == 3
    assert all(v.excess_speed > 0 for v in violations)


async def test_limit_is_taken_at_detection_time(memory_storage):
    vehicle = await _vehicle(memory_storage)
    await record_violation(memory_storage, vehicle, make_sample(vehicle.id, speed=70))
    await memory_storage.update_vehicle(vehicle.id, {"speed_limit": 100})

    [violation] = await memory_storage.get_speed_violations(at(0), at(10))
    assert violation.speed_limit == 60
    assert violation.excess_speed == 10


async def test_recording_failure_is_swallowed(memory_storage, mocker, caplog):
    vehicle = await _vehicle(memory_storage)
    mocker.patch.object(
        memory_storage, "add_speed_violation", side_effect=PersistenceError(operation="add_speed_violation")
    )

    with caplog.at_level(logging.ERROR, logger="fleettrack"):
        result = await record_violation(memory_storage, vehicle, make_sample(vehicle.id, speed=99))

    assert result is None
    assert "Failed to record speed violation" in caplog.text
