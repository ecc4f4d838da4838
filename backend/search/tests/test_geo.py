from __future__ import annotations

import pytest

from search.geo import Point, bounding_box, haversine_km, parse_point


@pytest.mark.parametrize(
    "value",
    [
        {"lat": 40.7128, "lng": -74.006},
        {"latitude": 40.7128, "longitude": -74.006},
        (40.7128, -74.006),
        "POINT(-74.006 40.7128)",
        "SRID=4326;POINT(-74.006 40.7128)",
        {"type": "Point", "coordinates": [-74.006, 40.7128]},
        '{"type": "Point", "coordinates": [-74.006, 40.7128]}',
    ],
)
def test_parse_point_encodings(value):
    assert parse_point(value) == Point(40.7128, -74.006)


@pytest.mark.parametrize("value", [None, "", "nowhere", {"lat": 91, "lng": 0}, [1, 2, 3], "{bad"])
def test_parse_point_rejects_garbage(value):
    assert parse_point(value) is None


def test_haversine_known_distance():
    new_york = Point(40.7128, -74.0060)
    los_angeles = Point(34.0522, -118.2437)
    assert haversine_km(new_york, los_angeles) == pytest.approx(3936, rel=0.01)
    assert haversine_km(new_york, new_york) == 0


def test_bounding_box_contains_radius():
    center = Point(40.0, -74.0)
    min_lat, max_lat, min_lng, max_lng = bounding_box(center, 10)
    assert min_lat < 40.0 < max_lat
    assert min_lng < -74.0 < max_lng
    assert haversine_km(center, Point(max_lat, -74.0)) == pytest.approx(10, rel=0.001)


def test_bounding_box_wraps_antimeridian():
    _, _, min_lng, max_lng = bounding_box(Point(0.0, 179.99), 50)
    assert (min_lng, max_lng) == (-180.0, 180.0)
