"""Camera-fit resolution for a selected country."""

from __future__ import annotations

from numbers import Real
from typing import Any, Iterator

from .config import ViewportConfig
from .models import BoundingBox, CenterInstruction, GeoFeature, ViewportFitInstruction


class DegenerateGeometryError(ValueError):
    """Raised when a feature has no coordinate pairs to frame."""


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_position(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and _is_number(value[0])
        and _is_number(value[1])
    )


def iter_positions(coords: Any) -> Iterator[tuple[float, float]]:
    """Yield every `(lng, lat)` leaf of an arbitrarily nested coordinate array.

    A two-element numeric sequence is a position; any other sequence is a
    container. Polygon rings and MultiPolygon parts therefore share one walk.
    """
    stack = [coords]
    while stack:
        node = stack.pop()
        if _is_position(node):
            yield (float(node[0]), float(node[1]))
            continue
        if isinstance(node, (list, tuple)):
            stack.extend(reversed(node))


def flatten_coordinates(coords: Any) -> list[tuple[float, float]]:
    return list(iter_positions(coords))


def compute_bounds(feature: GeoFeature) -> BoundingBox:
    min_lat = min_lng = float("inf")
    max_lat = max_lng = float("-inf")
    count = 0
    for lng, lat in iter_positions(feature.coordinates):
        count += 1
        min_lat = min(min_lat, lat)
        max_lat = max(max_lat, lat)
        min_lng = min(min_lng, lng)
        max_lng = max(max_lng, lng)
    if count == 0:
        raise DegenerateGeometryError(f"No coordinates found for '{feature.name}'")
    return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lng=min_lng, max_lng=max_lng)


def padding_for_area(area_deg2: float, cfg: ViewportConfig) -> tuple[int, int]:
    for tier in cfg.padding_tiers:
        if area_deg2 > tier.min_area:
            return tier.padding_px
    return cfg.default_padding_px


class ViewportResolver:
    """Turn a feature into a camera-fit instruction; stateless between calls."""

    def __init__(self, cfg: ViewportConfig | None = None) -> None:
        self.cfg = cfg or ViewportConfig.default()

    def resolve(self, feature: GeoFeature) -> ViewportFitInstruction:
        bounds = compute_bounds(feature)
        return ViewportFitInstruction(
            bounds_south_west=bounds.south_west,
            bounds_north_east=bounds.north_east,
            padding_px=padding_for_area(bounds.area_deg2, self.cfg),
            max_zoom=self.cfg.max_zoom,
            duration_s=self.cfg.duration_s,
        )

    def center_on(self, feature: GeoFeature, *, zoom: int | None = None) -> CenterInstruction:
        """Bounding-box midpoint at a fixed zoom, without fitting."""
        bounds = compute_bounds(feature)
        return CenterInstruction(
            center=bounds.center,
            zoom=self.cfg.focus_zoom if zoom is None else zoom,
        )
