"""Tests for the PNG preview renderer."""

import pytest

from conftest import geo_feature, square
from travelmap.config import PreviewConfig
from travelmap.map_state import MapViewState
from travelmap.models import Annotation
from travelmap.preview import PreviewRenderer, PreviewRequest, degrees_per_pixel, fit_extent, view_extent
from travelmap.render_state import RenderStateResolver
from travelmap.viewport import ViewportResolver


def test_view_extent_at_zoom_zero_spans_tile_width():
    extent = view_extent(0, 0, 0, width_px=256, height_px=256)

    assert extent == (-180.0, 180.0, -180.0, 180.0)


def test_fit_extent_contains_bounds():
    fit = ViewportResolver().resolve(geo_feature("Brazil", square(-74, -34, 40)))

    min_x, max_x, min_y, max_y = fit_extent(fit, width_px=800, height_px=600)

    assert min_x < -74 and max_x > -34
    assert min_y < -34 and max_y > 6


def test_fit_extent_respects_max_zoom():
    fit = ViewportResolver().resolve(geo_feature("Monaco", square(7.4, 43.7, 0.01)))

    min_x, max_x, _, _ = fit_extent(fit, width_px=800, height_px=600)

    assert max_x - min_x == pytest.approx(800 * degrees_per_pixel(8))


def test_render_writes_png(tmp_path):
    pytest.importorskip("matplotlib")
    pytest.importorskip("shapely")
    features = [
        geo_feature("France", square(-5, 42, 10)),
        geo_feature("Japan", [square(130, 31, 5), square(139, 35, 6)], "MultiPolygon"),
        geo_feature("Ghost", []),
    ]
    view = MapViewState(zoom=4, selected="France")
    states = RenderStateResolver().resolve(features, {"Japan": Annotation(country_name="Japan")}, view)
    cfg = PreviewConfig.from_mapping({"width_px": 320, "height_px": 200, "dpi": 80})

    output = PreviewRenderer(cfg).render(
        PreviewRequest(
            features=features,
            states=states,
            view=view,
            output_path=tmp_path / "map.png",
            fit=ViewportResolver().resolve(features[0]),
        )
    )

    assert output.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
