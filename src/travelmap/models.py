"""Domain models shared across travel map modules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

VISIT_TYPES = ("visited", "lived", "traveled")
DEFAULT_ANNOTATION_COLOR = "#4CAF50"

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value


def _optional_str(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"Expected string for '{field_name}'")
    return value


def _str_tuple(raw: Any, field_name: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ValueError(f"Expected list of strings for '{field_name}'")
    return tuple(raw)


def is_hex_color(value: str) -> bool:
    return isinstance(value, str) and bool(_HEX_COLOR_RE.match(value))


def _check_color(value: str, field_name: str) -> None:
    if not is_hex_color(value):
        raise ValueError(f"Expected RGB hex color for '{field_name}', got {value!r}")


@dataclass(frozen=True, slots=True)
class GeoFeature:
    """One named country or territory polygon from the loaded collection."""

    name: str
    geometry_type: str
    coordinates: Any
    local_name: str | None = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "properties": dict(self.properties),
            "geometry": {"type": self.geometry_type, "coordinates": self.coordinates},
        }


@dataclass(frozen=True, slots=True)
class Trip:
    """Date range of one stay; ISO-8601 strings, possibly empty."""

    start_date: str
    end_date: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Trip:
        return cls(
            start_date=_optional_str(data.get("startDate"), "trips[].startDate"),
            end_date=_optional_str(data.get("endDate"), "trips[].endDate"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"startDate": self.start_date, "endDate": self.end_date}


def _parse_trips(raw: Any, field_name: str) -> tuple[Trip, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"Expected list for '{field_name}'")
    trips: list[Trip] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise ValueError(f"Expected mapping for '{field_name}[{idx}]'")
        trips.append(Trip.from_mapping(item))
    return tuple(trips)


@dataclass(frozen=True, slots=True)
class CityAnnotation:
    name: str
    color: str = DEFAULT_ANNOTATION_COLOR
    comment: str = ""
    trips: tuple[Trip, ...] = ()

    def __post_init__(self) -> None:
        _check_color(self.color, "cities[].color")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CityAnnotation:
        color_raw = data.get("color")
        color = (
            _require_str(color_raw, "cities[].color")
            if color_raw is not None
            else DEFAULT_ANNOTATION_COLOR
        )
        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError("Expected string for 'cities[].name'")
        return cls(
            name=name,
            color=color,
            comment=_optional_str(data.get("comment"), "cities[].comment"),
            trips=_parse_trips(data.get("trips"), "cities[].trips"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "color": self.color,
            "comment": self.comment,
            "trips": [trip.to_dict() for trip in self.trips],
        }


@dataclass(frozen=True, slots=True)
class Annotation:
    """User-authored travel record attached to one country by name."""

    country_name: str
    color: str = DEFAULT_ANNOTATION_COLOR
    comment: str = ""
    trips: tuple[Trip, ...] = ()
    cities: tuple[CityAnnotation, ...] = ()
    visit_type: str = "visited"
    departments: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require_str(self.country_name, "countryName")
        _check_color(self.color, "color")
        if self.visit_type not in VISIT_TYPES:
            raise ValueError(
                f"Invalid visit type '{self.visit_type}'; expected one of: {', '.join(VISIT_TYPES)}"
            )
        # Blank city rows come from unfilled form entries.
        if any(not city.name.strip() for city in self.cities):
            object.__setattr__(
                self, "cities", tuple(city for city in self.cities if city.name.strip())
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Annotation:
        country_name = _require_str(data.get("countryName"), "countryName")
        color_raw = data.get("color")
        color = _require_str(color_raw, "color") if color_raw is not None else DEFAULT_ANNOTATION_COLOR

        cities_raw = data.get("cities", [])
        if cities_raw is None:
            cities_raw = []
        if not isinstance(cities_raw, list):
            raise ValueError("Expected list for 'cities'")
        cities: list[CityAnnotation] = []
        for idx, item in enumerate(cities_raw):
            if not isinstance(item, Mapping):
                raise ValueError(f"Expected mapping for 'cities[{idx}]'")
            cities.append(CityAnnotation.from_mapping(item))

        visit_type_raw = data.get("visitType", "visited")
        visit_type = _require_str(visit_type_raw, "visitType").casefold()
        return cls(
            country_name=country_name,
            color=color,
            comment=_optional_str(data.get("comment"), "comment"),
            trips=_parse_trips(data.get("trips"), "trips"),
            cities=tuple(cities),
            visit_type=visit_type,
            departments=_str_tuple(data.get("departments"), "departments"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "countryName": self.country_name,
            "color": self.color,
            "comment": self.comment,
            "trips": [trip.to_dict() for trip in self.trips],
            "cities": [city.to_dict() for city in self.cities],
            "visitType": self.visit_type,
            "departments": list(self.departments),
        }


@dataclass(frozen=True, slots=True)
class LatLng:
    lat: float
    lng: float

    def to_list(self) -> list[float]:
        return [self.lat, self.lng]


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Planar lat/lng bounds in degrees."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @property
    def area_deg2(self) -> float:
        return (self.max_lat - self.min_lat) * (self.max_lng - self.min_lng)

    @property
    def south_west(self) -> LatLng:
        return LatLng(lat=self.min_lat, lng=self.min_lng)

    @property
    def north_east(self) -> LatLng:
        return LatLng(lat=self.max_lat, lng=self.max_lng)

    @property
    def center(self) -> LatLng:
        return LatLng(
            lat=(self.min_lat + self.max_lat) / 2,
            lng=(self.min_lng + self.max_lng) / 2,
        )


@dataclass(frozen=True, slots=True)
class ViewportFitInstruction:
    """Camera command framing one feature; recomputed on each selection."""

    bounds_south_west: LatLng
    bounds_north_east: LatLng
    padding_px: tuple[int, int]
    max_zoom: int
    duration_s: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "bounds": [self.bounds_south_west.to_list(), self.bounds_north_east.to_list()],
            "padding": list(self.padding_px),
            "maxZoom": self.max_zoom,
            "duration": self.duration_s,
        }


@dataclass(frozen=True, slots=True)
class CenterInstruction:
    center: LatLng
    zoom: int

    def to_dict(self) -> dict[str, Any]:
        return {"center": self.center.to_list(), "zoom": self.zoom}


@dataclass(frozen=True, slots=True)
class FeatureStyle:
    fill_color: str
    stroke_color: str
    stroke_weight: int
    fill_opacity: float


@dataclass(frozen=True, slots=True)
class LabelDecision:
    visible: bool
    font_size_px: float | None = None


@dataclass(frozen=True, slots=True)
class LabelEmphasis:
    font_weight: int
    opacity: float


@dataclass(frozen=True, slots=True)
class RenderState:
    """Paint and label decision for one feature in one render pass."""

    style: FeatureStyle
    label: LabelDecision

    def to_dict(self) -> dict[str, Any]:
        return {
            "fillColor": self.style.fill_color,
            "strokeColor": self.style.stroke_color,
            "strokeWeight": self.style.stroke_weight,
            "fillOpacity": self.style.fill_opacity,
            "labelVisible": self.label.visible,
            "labelFontSizePx": self.label.font_size_px,
        }
