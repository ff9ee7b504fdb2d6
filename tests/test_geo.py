"""Tests for GeoJSON point mapping and distance helpers."""

import pytest

from pickup_api.geo import GeoPoint, distance_meters


def test_from_lat_lng_stores_longitude_first() -> None:
    point = GeoPoint.from_lat_lng(6.5244, 3.3792)
    assert point.coordinates == (3.3792, 6.5244)
    assert point.latitude == 6.5244
    assert point.longitude == 3.3792


def test_geojson_dump_shape() -> None:
    assert GeoPoint.from_lat_lng(1.5, -2.5).model_dump(mode="json") == {
        "type": "Point",
        "coordinates": [-2.5, 1.5],
    }


def test_distance_of_one_degree_on_equator() -> None:
    assert distance_meters(0.0, 0.0, 0.0, 1.0) == pytest.approx(111_195, rel=1e-3)


def test_distance_is_symmetric_and_zero_for_same_point() -> None:
    a = (6.5244, 3.3792)
    b = (6.6018, 3.3515)
    assert distance_meters(*a, *a) == 0.0
    assert distance_meters(*a, *b) == pytest.approx(distance_meters(*b, *a))
