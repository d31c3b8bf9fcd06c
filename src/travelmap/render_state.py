"""Per-feature paint style and label decisions for one render pass.

Everything here is a pure function of its arguments: no I/O, no caching, no
errors. A missing annotation, hover, or selection is an ordinary input.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from .config import LabelsConfig, StyleConfig
from .map_state import MapViewState
from .models import Annotation, FeatureStyle, GeoFeature, LabelDecision, LabelEmphasis, RenderState
from .viewport import DegenerateGeometryError, compute_bounds


_SELECTED_EMPHASIS = LabelEmphasis(font_weight=700, opacity=1.0)
_HOVERED_EMPHASIS = LabelEmphasis(font_weight=600, opacity=0.95)
_DEFAULT_EMPHASIS = LabelEmphasis(font_weight=500, opacity=0.9)


def feature_area(feature: GeoFeature) -> float:
    """Planar bbox area in square degrees; zero for empty geometry."""
    try:
        return compute_bounds(feature).area_deg2
    except DegenerateGeometryError:
        return 0.0


def label_emphasis(*, is_selected: bool, is_hovered: bool) -> LabelEmphasis:
    if is_selected:
        return _SELECTED_EMPHASIS
    if is_hovered:
        return _HOVERED_EMPHASIS
    return _DEFAULT_EMPHASIS


class RenderStateResolver:
    def __init__(
        self,
        style_cfg: StyleConfig | None = None,
        labels_cfg: LabelsConfig | None = None,
    ) -> None:
        self.style_cfg = style_cfg or StyleConfig.default()
        self.labels_cfg = labels_cfg or LabelsConfig.default()

    def style_of(
        self,
        annotation: Annotation | None,
        *,
        is_selected: bool,
        is_hovered: bool,
    ) -> FeatureStyle:
        """Paint style from annotation and interaction state alone.

        The feature itself does not affect styling; use `resolve_feature` to
        go from a `GeoFeature` to its full `RenderState`.
        """
        cfg = self.style_cfg
        if is_selected:
            stroke_weight, stroke_color = cfg.selected_stroke_weight, cfg.selected_stroke_color
        elif is_hovered:
            stroke_weight, stroke_color = cfg.hover_stroke_weight, cfg.hover_stroke_color
        else:
            stroke_weight, stroke_color = cfg.stroke_weight, cfg.stroke_color

        if annotation is not None:
            fill_opacity = cfg.annotated_fill_opacity
        elif is_hovered:
            fill_opacity = cfg.hover_fill_opacity
        else:
            fill_opacity = cfg.fill_opacity

        return FeatureStyle(
            fill_color=annotation.color if annotation is not None else cfg.default_fill_color,
            stroke_color=stroke_color,
            stroke_weight=stroke_weight,
            fill_opacity=fill_opacity,
        )

    def importance_score(
        self,
        area_deg2: float,
        *,
        annotated: bool,
        is_selected: bool,
        is_hovered: bool,
    ) -> int:
        cfg = self.labels_cfg
        score = cfg.default_size_score
        for tier in cfg.size_tiers:
            if area_deg2 > tier.min_area:
                score = tier.score
                break
        if annotated:
            score += cfg.annotated_bonus
        if is_selected:
            score += cfg.selected_bonus
        if is_hovered:
            score += cfg.hovered_bonus
        return score

    def label_of(
        self,
        area_deg2: float,
        *,
        annotated: bool,
        is_selected: bool,
        is_hovered: bool,
        zoom: float,
    ) -> LabelDecision:
        """Label visibility and font size for a feature of bbox area `area_deg2`.

        `resolve_feature` computes the area from a `GeoFeature` and calls this.
        """
        cfg = self.labels_cfg
        if zoom < cfg.min_zoom:
            return LabelDecision(visible=False)

        visible = is_selected or is_hovered
        if not visible:
            importance = self.importance_score(
                area_deg2,
                annotated=annotated,
                is_selected=is_selected,
                is_hovered=is_hovered,
            )
            visible = any(
                zoom >= rule.min_zoom and importance >= rule.min_importance
                for rule in cfg.visibility_rules
            )
        if not visible:
            return LabelDecision(visible=False)

        font_size = area_deg2 * (zoom / cfg.zoom_divisor)
        font_size = min(max(font_size, cfg.min_font_size_px), cfg.max_font_size_px)
        return LabelDecision(visible=True, font_size_px=font_size)

    def resolve_feature(
        self,
        feature: GeoFeature,
        annotation: Annotation | None,
        view: MapViewState,
    ) -> RenderState:
        is_selected = view.selected == feature.name
        is_hovered = view.hovered == feature.name
        return RenderState(
            style=self.style_of(annotation, is_selected=is_selected, is_hovered=is_hovered),
            label=self.label_of(
                feature_area(feature),
                annotated=annotation is not None,
                is_selected=is_selected,
                is_hovered=is_hovered,
                zoom=view.zoom,
            ),
        )

    def resolve(
        self,
        features: Iterable[GeoFeature],
        annotations: Mapping[str, Annotation],
        view: MapViewState,
    ) -> dict[str, RenderState]:
        """Render state for every feature, keyed by feature name."""
        return {
            feature.name: self.resolve_feature(feature, annotations.get(feature.name), view)
            for feature in features
        }
