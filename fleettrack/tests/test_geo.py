"""
Haversine distance tests.
"""

import math

import pytest

from fleettrack.app.services.geo import EARTH_RADIUS_M, haversine_distance

SAO_PAULO = (-23.5505, -46.6333)
RIO = (-22.9068, -43.1729)


def test_same_point_is_zero():
    assert haversine_distance(*SAO_PAULO, *SAO_PAULO) == 0


def test_distance_is_symmetric():
    assert haversine_distance(*SAO_PAULO, *RIO) == haversine_distance(*RIO, *SAO_PAULO)


def test_one_degree_of_longitude_on_equator():
    expected = 2 * math.pi * EARTH_RADIUS_M / 360
    assert haversine_distance(0, 0, 0, 1) == pytest.approx(expected, rel=1e-9)


def test_sao_paulo_to_rio():
    assert haversine_distance(*SAO_PAULO, *RIO) == pytest.approx(357_700, rel=0.01)


def test_antipodal_points():
    assert haversine_distance(0, 0, 0, 180) == pytest.approx(math.pi * EARTH_RADIUS_M)
