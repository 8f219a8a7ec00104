import math

import pytest

from nearbyplaces.core.geo import GeoPoint, distance, haversine_m


def test_distance_reference_value():
    # Two points ~184 m apart north-south and ~133 m east-west.
    d = distance(44.635614, -63.575676, 44.637269, -63.573997)
    assert d == pytest.approx(227.0, abs=1.0)


@pytest.mark.parametrize(
    "a,b",
    [
        ((44.635614, -63.575676), (44.637269, -63.573997)),
        ((25.0478, 121.5170), (-33.8688, 151.2093)),
        ((0.0, 179.9), (0.0, -179.9)),
        ((89.9, 0.0), (-89.9, 180.0)),
    ],
)
def test_distance_is_symmetric(a, b):
    assert distance(*a, *b) == distance(*b, *a)


def test_distance_to_self_is_zero():
    assert distance(25.0478, 121.5170, 25.0478, 121.5170) == 0.0


def test_distance_handles_antipodal_points():
    d = distance(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * 6_371_000, rel=1e-9)


def test_distance_propagates_nan():
    assert math.isnan(distance(float("nan"), 0.0, 1.0, 1.0))


def test_haversine_m_matches_coordinate_form():
    a = GeoPoint(lat=44.635614, lon=-63.575676)
    b = GeoPoint(lat=44.637269, lon=-63.573997)
    assert haversine_m(a, b) == distance(a.lat, a.lon, b.lat, b.lon)
