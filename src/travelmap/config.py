"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml


NATURAL_EARTH_COUNTRIES_URL = (
    "https://raw.githubusercontent.com/nvkelso/natural-earth-vector/"
    "master/geojson/ne_10m_admin_0_countries.geojson"
)

_EMPTY: Mapping[str, Any] = {}


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return _EMPTY
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _str_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_str(item, f"{field_name}[{idx}]"))
    return tuple(out)


def _raw_str_list(value: Any, field_name: str) -> tuple[str, ...]:
    # Exclusion substrings are matched verbatim, so surrounding spaces are kept.
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item:
            raise ValueError(f"Expected non-empty string for '{field_name}[{idx}]'")
        out.append(item)
    return tuple(out)


def _padding(value: Any, field_name: str) -> tuple[int, int]:
    if not isinstance(value, list) or len(value) != 2:
        raise ValueError(f"Expected [x, y] pixel pair for '{field_name}'")
    x = _int(value[0], f"{field_name}[0]")
    y = _int(value[1], f"{field_name}[1]")
    if x < 0 or y < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return (x, y)


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class PathsConfig:
    countries_geojson: Path
    annotations: Path
    logs_dir: Path
    preview_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.logs_dir, self.preview_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            countries_geojson=_path_from_cfg(
                raw.get("countries_geojson", "data/ne_10m_admin_0_countries.geojson"),
                "paths.countries_geojson",
                root_dir,
            ),
            annotations=_path_from_cfg(
                raw.get("annotations", "data/annotations.json"), "paths.annotations", root_dir
            ),
            logs_dir=_path_from_cfg(raw.get("logs_dir", "build/logs"), "paths.logs_dir", root_dir),
            preview_dir=_path_from_cfg(
                raw.get("preview_dir", "build/previews"), "paths.preview_dir", root_dir
            ),
        )


@dataclass(frozen=True, slots=True)
class SourceConfig:
    url: str
    request_timeout_s: int
    user_agent: str
    max_retries: int
    retry_backoff_s: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SourceConfig:
        max_retries = _int(raw.get("max_retries", 3), "source.max_retries")
        retry_backoff_s = _float(raw.get("retry_backoff_s", 1.0), "source.retry_backoff_s")
        if max_retries < 0:
            raise ValueError("source.max_retries must be >= 0")
        if retry_backoff_s <= 0:
            raise ValueError("source.retry_backoff_s must be > 0")
        return cls(
            url=_str(raw.get("url", NATURAL_EARTH_COUNTRIES_URL), "source.url"),
            request_timeout_s=_int(raw.get("request_timeout_s", 60), "source.request_timeout_s"),
            user_agent=_str(raw.get("user_agent", "travelmap/0.1"), "source.user_agent"),
            max_retries=max_retries,
            retry_backoff_s=retry_backoff_s,
        )


@dataclass(frozen=True, slots=True)
class IndexConfig:
    name_properties: tuple[str, ...]
    local_name_properties: tuple[str, ...]
    excluded_name_substrings: tuple[str, ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> IndexConfig:
        name_properties = _str_list(
            raw.get("name_properties", ["name", "ADMIN", "NAME"]), "index.name_properties"
        )
        if not name_properties:
            raise ValueError("index.name_properties must not be empty")
        return cls(
            name_properties=name_properties,
            local_name_properties=_str_list(
                raw.get("local_name_properties", ["name_local", "NAME_LOCAL"]),
                "index.local_name_properties",
            ),
            excluded_name_substrings=_raw_str_list(
                raw.get("excluded_name_substrings", []), "index.excluded_name_substrings"
            ),
        )


@dataclass(frozen=True, slots=True)
class PaddingTier:
    min_area: float
    padding_px: tuple[int, int]


@dataclass(frozen=True, slots=True)
class ViewportConfig:
    padding_tiers: tuple[PaddingTier, ...]
    default_padding_px: tuple[int, int]
    max_zoom: int
    duration_s: float
    focus_zoom: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ViewportConfig:
        tiers_raw = raw.get(
            "padding_tiers",
            [
                {"min_area": 1000, "padding_px": [50, 50]},
                {"min_area": 100, "padding_px": [30, 30]},
                {"min_area": 10, "padding_px": [20, 20]},
            ],
        )
        if not isinstance(tiers_raw, list):
            raise ValueError("Expected list for 'viewport.padding_tiers'")
        tiers: list[PaddingTier] = []
        for idx, item in enumerate(tiers_raw):
            item_map = _mapping(item, f"viewport.padding_tiers[{idx}]")
            tiers.append(
                PaddingTier(
                    min_area=_float(item_map.get("min_area"), f"viewport.padding_tiers[{idx}].min_area"),
                    padding_px=_padding(
                        item_map.get("padding_px"), f"viewport.padding_tiers[{idx}].padding_px"
                    ),
                )
            )
        max_zoom = _int(raw.get("max_zoom", 8), "viewport.max_zoom")
        if max_zoom < 0:
            raise ValueError("viewport.max_zoom must be >= 0")
        return cls(
            # Tiers are evaluated largest threshold first.
            padding_tiers=tuple(sorted(tiers, key=lambda tier: tier.min_area, reverse=True)),
            default_padding_px=_padding(
                raw.get("default_padding_px", [10, 10]), "viewport.default_padding_px"
            ),
            max_zoom=max_zoom,
            duration_s=_float(raw.get("duration_s", 1.0), "viewport.duration_s"),
            focus_zoom=_int(raw.get("focus_zoom", 5), "viewport.focus_zoom"),
        )

    @classmethod
    def default(cls) -> ViewportConfig:
        return cls.from_mapping(_EMPTY)


@dataclass(frozen=True, slots=True)
class StyleConfig:
    default_fill_color: str
    stroke_color: str
    hover_stroke_color: str
    selected_stroke_color: str
    stroke_weight: int
    hover_stroke_weight: int
    selected_stroke_weight: int
    fill_opacity: float
    hover_fill_opacity: float
    annotated_fill_opacity: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StyleConfig:
        return cls(
            default_fill_color=_str(raw.get("default_fill_color", "#CCCCCC"), "style.default_fill_color"),
            stroke_color=_str(raw.get("stroke_color", "#333"), "style.stroke_color"),
            hover_stroke_color=_str(raw.get("hover_stroke_color", "#444"), "style.hover_stroke_color"),
            selected_stroke_color=_str(
                raw.get("selected_stroke_color", "#000"), "style.selected_stroke_color"
            ),
            stroke_weight=_int(raw.get("stroke_weight", 1), "style.stroke_weight"),
            hover_stroke_weight=_int(raw.get("hover_stroke_weight", 2), "style.hover_stroke_weight"),
            selected_stroke_weight=_int(
                raw.get("selected_stroke_weight", 3), "style.selected_stroke_weight"
            ),
            fill_opacity=_float(raw.get("fill_opacity", 0.6), "style.fill_opacity"),
            hover_fill_opacity=_float(raw.get("hover_fill_opacity", 0.7), "style.hover_fill_opacity"),
            annotated_fill_opacity=_float(
                raw.get("annotated_fill_opacity", 0.8), "style.annotated_fill_opacity"
            ),
        )

    @classmethod
    def default(cls) -> StyleConfig:
        return cls.from_mapping(_EMPTY)


@dataclass(frozen=True, slots=True)
class SizeTier:
    min_area: float
    score: int


@dataclass(frozen=True, slots=True)
class VisibilityRule:
    min_zoom: float
    min_importance: int


@dataclass(frozen=True, slots=True)
class LabelsConfig:
    min_zoom: float
    size_tiers: tuple[SizeTier, ...]
    default_size_score: int
    annotated_bonus: int
    selected_bonus: int
    hovered_bonus: int
    visibility_rules: tuple[VisibilityRule, ...]
    min_font_size_px: float
    max_font_size_px: float
    zoom_divisor: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LabelsConfig:
        tiers_raw = raw.get(
            "size_tiers",
            [
                {"min_area": 20, "score": 4},
                {"min_area": 10, "score": 3},
                {"min_area": 5, "score": 2},
            ],
        )
        if not isinstance(tiers_raw, list):
            raise ValueError("Expected list for 'labels.size_tiers'")
        tiers: list[SizeTier] = []
        for idx, item in enumerate(tiers_raw):
            item_map = _mapping(item, f"labels.size_tiers[{idx}]")
            tiers.append(
                SizeTier(
                    min_area=_float(item_map.get("min_area"), f"labels.size_tiers[{idx}].min_area"),
                    score=_int(item_map.get("score"), f"labels.size_tiers[{idx}].score"),
                )
            )

        rules_raw = raw.get(
            "visibility_rules",
            [
                {"min_zoom": 7, "min_importance": 0},
                {"min_zoom": 5, "min_importance": 4},
                {"min_zoom": 4, "min_importance": 6},
                {"min_zoom": 3, "min_importance": 7},
            ],
        )
        if not isinstance(rules_raw, list):
            raise ValueError("Expected list for 'labels.visibility_rules'")
        rules: list[VisibilityRule] = []
        for idx, item in enumerate(rules_raw):
            item_map = _mapping(item, f"labels.visibility_rules[{idx}]")
            rules.append(
                VisibilityRule(
                    min_zoom=_float(item_map.get("min_zoom"), f"labels.visibility_rules[{idx}].min_zoom"),
                    min_importance=_int(
                        item_map.get("min_importance"), f"labels.visibility_rules[{idx}].min_importance"
                    ),
                )
            )

        min_font = _float(raw.get("min_font_size_px", 8), "labels.min_font_size_px")
        max_font = _float(raw.get("max_font_size_px", 14), "labels.max_font_size_px")
        if min_font > max_font:
            raise ValueError("labels.min_font_size_px cannot be greater than labels.max_font_size_px")
        zoom_divisor = _float(raw.get("zoom_divisor", 3), "labels.zoom_divisor")
        if zoom_divisor <= 0:
            raise ValueError("labels.zoom_divisor must be > 0")

        return cls(
            min_zoom=_float(raw.get("min_zoom", 3), "labels.min_zoom"),
            size_tiers=tuple(sorted(tiers, key=lambda tier: tier.min_area, reverse=True)),
            default_size_score=_int(raw.get("default_size_score", 1), "labels.default_size_score"),
            annotated_bonus=_int(raw.get("annotated_bonus", 2), "labels.annotated_bonus"),
            selected_bonus=_int(raw.get("selected_bonus", 3), "labels.selected_bonus"),
            hovered_bonus=_int(raw.get("hovered_bonus", 2), "labels.hovered_bonus"),
            # Rules are first-match, most zoomed-in first.
            visibility_rules=tuple(sorted(rules, key=lambda rule: rule.min_zoom, reverse=True)),
            min_font_size_px=min_font,
            max_font_size_px=max_font,
            zoom_divisor=zoom_divisor,
        )

    @classmethod
    def default(cls) -> LabelsConfig:
        return cls.from_mapping(_EMPTY)


@dataclass(frozen=True, slots=True)
class PreviewConfig:
    width_px: int
    height_px: int
    dpi: int
    background: str
    format: str
    zoom: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PreviewConfig:
        width_px = _int(raw.get("width_px", 1600), "preview.width_px")
        height_px = _int(raw.get("height_px", 900), "preview.height_px")
        dpi = _int(raw.get("dpi", 100), "preview.dpi")
        if width_px <= 0 or height_px <= 0 or dpi <= 0:
            raise ValueError("preview.width_px, preview.height_px and preview.dpi must be > 0")
        return cls(
            width_px=width_px,
            height_px=height_px,
            dpi=dpi,
            background=_str(raw.get("background", "#AAD3DF"), "preview.background"),
            format=_str(raw.get("format", "png"), "preview.format"),
            zoom=_float(raw.get("zoom", 2), "preview.zoom"),
        )


@dataclass(frozen=True, slots=True)
class AnnotationDefaultsConfig:
    color: str
    visit_type: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> AnnotationDefaultsConfig:
        visit_type = _str(raw.get("visit_type", "visited"), "annotations.visit_type").casefold()
        allowed = {"visited", "lived", "traveled"}
        if visit_type not in allowed:
            raise ValueError(
                "annotations.visit_type must be one of: " + ", ".join(sorted(allowed))
            )
        return cls(
            color=_str(raw.get("color", "#4CAF50"), "annotations.color"),
            visit_type=visit_type,
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    source: SourceConfig
    index: IndexConfig
    viewport: ViewportConfig
    style: StyleConfig
    labels: LabelsConfig
    preview: PreviewConfig
    annotations: AnnotationDefaultsConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            source=SourceConfig.from_mapping(_mapping(raw.get("source"), "source")),
            index=IndexConfig.from_mapping(_mapping(raw.get("index"), "index")),
            viewport=ViewportConfig.from_mapping(_mapping(raw.get("viewport"), "viewport")),
            style=StyleConfig.from_mapping(_mapping(raw.get("style"), "style")),
            labels=LabelsConfig.from_mapping(_mapping(raw.get("labels"), "labels")),
            preview=PreviewConfig.from_mapping(_mapping(raw.get("preview"), "preview")),
            annotations=AnnotationDefaultsConfig.from_mapping(
                _mapping(raw.get("annotations"), "annotations")
            ),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
