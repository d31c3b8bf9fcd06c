"""Static PNG preview of the travel map."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from .config import PreviewConfig
from .map_state import MapViewState
from .models import GeoFeature, RenderState, ViewportFitInstruction
from .render_state import label_emphasis

_LOGGER = logging.getLogger("travelmap.preview")

# Slippy-map tiles are 256px wide and span 360 degrees at zoom 0.
_TILE_SIZE_PX = 256.0
_LABEL_COLOR = "#222222"


@dataclass(frozen=True, slots=True)
class PreviewRequest:
    features: Sequence[GeoFeature]
    states: Mapping[str, RenderState]
    view: MapViewState
    output_path: Path
    fit: ViewportFitInstruction | None = None


Extent = tuple[float, float, float, float]


class PreviewRenderer:
    """Paint every feature with its resolved style and draw visible labels."""

    def __init__(self, cfg: PreviewConfig) -> None:
        self.cfg = cfg

    def render(self, req: PreviewRequest) -> Path:
        plt, patches, mpath = _require_matplotlib()
        shape, orient = _require_shapely()
        width_px = self.cfg.width_px
        height_px = self.cfg.height_px
        dpi = self.cfg.dpi

        if req.fit is not None:
            extent = fit_extent(req.fit, width_px=width_px, height_px=height_px)
        else:
            extent = view_extent(
                req.view.center.lng,
                req.view.center.lat,
                req.view.zoom,
                width_px=width_px,
                height_px=height_px,
            )

        fig, ax = plt.subplots(figsize=(width_px / dpi, height_px / dpi), dpi=dpi)
        fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
        try:
            fig.patch.set_facecolor(self.cfg.background)
            ax.set_facecolor(self.cfg.background)
            ax.set_xlim(extent[0], extent[1])
            ax.set_ylim(extent[2], extent[3])
            ax.set_axis_off()

            skipped = 0
            for feature in _draw_order(req.features, req.view):
                state = req.states.get(feature.name)
                if state is None:
                    continue
                try:
                    geometry = shape(feature.to_geojson()["geometry"])
                except (ValueError, TypeError) as exc:
                    skipped += 1
                    _LOGGER.debug("Skipping unrenderable geometry for %s: %s", feature.name, exc)
                    continue
                if geometry.is_empty:
                    continue
                geometry = orient_geometry(geometry, orient)
                zorder = _feature_zorder(feature.name, req.view)
                _draw_feature(ax, patches, mpath, geometry, state, zorder=zorder)
                if state.label.visible and state.label.font_size_px is not None:
                    _draw_label(ax, feature, geometry, state, req.view, extent=extent, dpi=dpi)

            if skipped:
                _LOGGER.warning("Skipped %d features with unrenderable geometry", skipped)

            req.output_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(req.output_path, dpi=dpi, format=self.cfg.format)
            return req.output_path
        finally:
            plt.close(fig)


def degrees_per_pixel(zoom: float) -> float:
    return 360.0 / (_TILE_SIZE_PX * (2.0**zoom))


def view_extent(
    center_lng: float,
    center_lat: float,
    zoom: float,
    *,
    width_px: int,
    height_px: int,
) -> Extent:
    deg_px = degrees_per_pixel(zoom)
    half_w = width_px * deg_px / 2
    half_h = height_px * deg_px / 2
    return (center_lng - half_w, center_lng + half_w, center_lat - half_h, center_lat + half_h)


def fit_extent(fit: ViewportFitInstruction, *, width_px: int, height_px: int) -> Extent:
    """Frame the fit bounds with pixel padding, never closer than `max_zoom`."""
    min_lng, min_lat = fit.bounds_south_west.lng, fit.bounds_south_west.lat
    max_lng, max_lat = fit.bounds_north_east.lng, fit.bounds_north_east.lat
    pad_x, pad_y = fit.padding_px
    inner_w = max(width_px - 2 * pad_x, 1)
    inner_h = max(height_px - 2 * pad_y, 1)

    span_lng = max(max_lng - min_lng, 0.0)
    span_lat = max(max_lat - min_lat, 0.0)
    deg_px = max(span_lng / inner_w, span_lat / inner_h, degrees_per_pixel(fit.max_zoom))
    zoom = math.log2(360.0 / (_TILE_SIZE_PX * deg_px))
    return view_extent(
        (min_lng + max_lng) / 2,
        (min_lat + max_lat) / 2,
        zoom,
        width_px=width_px,
        height_px=height_px,
    )


def orient_geometry(geometry: Any, orient: Any) -> Any:
    """Counter-clockwise shells and clockwise holes, for nonzero fill."""
    geom_type = getattr(geometry, "geom_type", "")
    if geom_type == "Polygon":
        return orient(geometry, sign=1.0)
    if geom_type == "MultiPolygon":
        return type(geometry)([orient(part, sign=1.0) for part in geometry.geoms])
    return geometry


def _draw_order(features: Sequence[GeoFeature], view: MapViewState) -> list[GeoFeature]:
    return sorted(features, key=lambda feature: _feature_zorder(feature.name, view))


def _feature_zorder(name: str, view: MapViewState) -> int:
    if name == view.selected:
        return 3
    if name == view.hovered:
        return 2
    return 1


def _iter_polygons(geometry: Any) -> list[Any]:
    geom_type = getattr(geometry, "geom_type", "")
    if geom_type == "Polygon":
        return [geometry]
    if geom_type == "MultiPolygon":
        return list(geometry.geoms)
    return []


def _draw_feature(
    ax: Any,
    patches: Any,
    mpath: Any,
    geometry: Any,
    state: RenderState,
    *,
    zorder: int,
) -> None:
    for polygon in _iter_polygons(geometry):
        rings = [polygon.exterior, *polygon.interiors]
        path = mpath.Path.make_compound_path(
            *[mpath.Path([(float(x), float(y)) for x, y in ring.coords], closed=True) for ring in rings]
        )
        ax.add_patch(
            patches.PathPatch(
                path,
                facecolor=state.style.fill_color,
                edgecolor="none",
                alpha=state.style.fill_opacity,
                zorder=zorder,
            )
        )
        # Stroke separately so the outline is not faded by the fill opacity.
        ax.add_patch(
            patches.PathPatch(
                path,
                facecolor="none",
                edgecolor=state.style.stroke_color,
                linewidth=state.style.stroke_weight * 0.5,
                zorder=zorder + 0.5,
            )
        )


def _draw_label(
    ax: Any,
    feature: GeoFeature,
    geometry: Any,
    state: RenderState,
    view: MapViewState,
    *,
    extent: Extent,
    dpi: int,
) -> None:
    anchor = geometry.representative_point()
    x, y = float(anchor.x), float(anchor.y)
    if not (extent[0] <= x <= extent[1] and extent[2] <= y <= extent[3]):
        return
    emphasis = label_emphasis(
        is_selected=view.selected == feature.name,
        is_hovered=view.hovered == feature.name,
    )
    font_size_pt = float(state.label.font_size_px or 0.0) * 72.0 / dpi
    ax.text(
        x,
        y,
        feature.name,
        fontsize=font_size_pt,
        fontweight=emphasis.font_weight,
        alpha=emphasis.opacity,
        color=_LABEL_COLOR,
        ha="center",
        va="center",
        zorder=10,
    )


def _require_matplotlib() -> tuple[Any, Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.patches as patches
        import matplotlib.path as mpath
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for map previews") from exc
    return (plt, patches, mpath)


def _require_shapely() -> tuple[Any, Any]:
    try:
        from shapely.geometry import shape
        from shapely.geometry.polygon import orient
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for map previews") from exc
    return (shape, orient)
