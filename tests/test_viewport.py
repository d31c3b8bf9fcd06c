"""Tests for camera-fit resolution."""

import pytest

from conftest import geo_feature, square
from travelmap.config import ViewportConfig
from travelmap.models import LatLng
from travelmap.viewport import (
    DegenerateGeometryError,
    ViewportResolver,
    compute_bounds,
    flatten_coordinates,
    padding_for_area,
)


def test_flatten_handles_polygon_and_multipolygon_alike():
    polygon = square(0, 0, 1)
    multipolygon = [square(0, 0, 1), square(5, 5, 1)]

    assert len(flatten_coordinates(polygon)) == 5
    assert len(flatten_coordinates(multipolygon)) == 10
    assert flatten_coordinates(multipolygon)[5] == (5.0, 5.0)


def test_flatten_handles_deeper_nesting():
    assert flatten_coordinates([[[[[1, 2]]]], [3, 4]]) == [(1.0, 2.0), (3.0, 4.0)]


def test_reference_square_bounds_and_padding():
    feature = geo_feature("Square", [[[0, 0], [0, 10], [10, 10], [10, 0], [0, 0]]])

    bounds = compute_bounds(feature)
    fit = ViewportResolver().resolve(feature)

    assert (bounds.min_lat, bounds.max_lat, bounds.min_lng, bounds.max_lng) == (0, 10, 0, 10)
    assert bounds.area_deg2 == 100
    # 100 is not > 100, so the > 10 tier applies.
    assert fit.padding_px == (20, 20)
    assert fit.max_zoom == 8
    assert fit.duration_s == 1.0


def test_bounds_use_lng_lat_order():
    feature = geo_feature("Chile", [[[-75, -55], [-66, -17], [-70, -30], [-75, -55]]])

    fit = ViewportResolver().resolve(feature)

    assert fit.bounds_south_west == LatLng(lat=-55, lng=-75)
    assert fit.bounds_north_east == LatLng(lat=-17, lng=-66)


@pytest.mark.parametrize(
    ("area", "padding"),
    [
        (1000.5, (50, 50)),
        (1000, (30, 30)),
        (100.1, (30, 30)),
        (100, (20, 20)),
        (10.01, (20, 20)),
        (10, (10, 10)),
        (0, (10, 10)),
    ],
)
def test_padding_tiers_are_strict(area, padding):
    assert padding_for_area(area, ViewportConfig.default()) == padding


def test_multipolygon_bounds_span_all_parts():
    feature = geo_feature("Japan", [square(130, 31, 5), square(139, 35, 6)], "MultiPolygon")

    bounds = compute_bounds(feature)

    assert (bounds.min_lng, bounds.max_lng, bounds.min_lat, bounds.max_lat) == (130, 145, 31, 41)


def test_resolve_is_idempotent():
    feature = geo_feature("Brazil", square(-74, -34, 40))
    resolver = ViewportResolver()

    assert resolver.resolve(feature) == resolver.resolve(feature)


@pytest.mark.parametrize("coordinates", [[], [[]], [[[]]]])
def test_empty_geometry_raises(coordinates):
    with pytest.raises(DegenerateGeometryError):
        ViewportResolver().resolve(geo_feature("Nowhere", coordinates))


def test_center_on_uses_bbox_midpoint():
    feature = geo_feature("Square", square(0, 0, 10))

    instruction = ViewportResolver().center_on(feature)

    assert instruction.center == LatLng(lat=5, lng=5)
    assert instruction.zoom == 5


def test_fit_to_dict_shape():
    fit = ViewportResolver().resolve(geo_feature("Square", square(0, 0, 10)))

    assert fit.to_dict() == {
        "bounds": [[0.0, 0.0], [10.0, 10.0]],
        "padding": [20, 20],
        "maxZoom": 8,
        "duration": 1.0,
    }
