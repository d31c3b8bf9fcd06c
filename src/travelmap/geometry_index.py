"""Name-indexed, filtered lookup over a GeoJSON country collection."""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from .config import IndexConfig
from .models import GeoFeature

_LOGGER = logging.getLogger("travelmap.geometry_index")

SUPPORTED_GEOMETRY_TYPES = frozenset({"Polygon", "MultiPolygon"})


class DataFormatError(ValueError):
    """Raised when the input is not a well-formed country feature collection."""


@dataclass(frozen=True, slots=True)
class GeometryIndex:
    """Read-only result of one collection load.

    `by_name` keeps the first feature for each name; `sorted_names` keeps
    every surviving name, duplicates included, in collation order.
    """

    by_name: Mapping[str, GeoFeature]
    sorted_names: tuple[str, ...]
    excluded_count: int = 0
    unnamed_count: int = 0

    @classmethod
    def load(cls, raw: Any, cfg: IndexConfig) -> GeometryIndex:
        return load_geometry_index(raw, cfg=cfg)

    @classmethod
    def empty(cls) -> GeometryIndex:
        return cls(by_name={}, sorted_names=())

    def __contains__(self, name: object) -> bool:
        return name in self.by_name

    def __len__(self) -> int:
        return len(self.by_name)

    def get(self, name: str) -> GeoFeature | None:
        return self.by_name.get(name)

    @property
    def features(self) -> tuple[GeoFeature, ...]:
        seen: set[str] = set()
        out: list[GeoFeature] = []
        for name in self.sorted_names:
            if name in seen:
                continue
            seen.add(name)
            out.append(self.by_name[name])
        return tuple(out)

    def search(self, query: str, *, limit: int | None = None) -> list[str]:
        """Prefix matches first, then substring matches, both in sorted order."""
        needle = collation_key(query)[0]
        if not needle:
            names = list(dict.fromkeys(self.sorted_names))
            return names if limit is None else names[:limit]
        prefix: list[str] = []
        contains: list[str] = []
        for name in dict.fromkeys(self.sorted_names):
            folded = collation_key(name)[0]
            if folded.startswith(needle):
                prefix.append(name)
            elif needle in folded:
                contains.append(name)
        matches = prefix + contains
        return matches if limit is None else matches[:limit]


def collation_key(name: str) -> tuple[str, str]:
    """Accent- and case-insensitive sort key, raw string as tiebreak."""
    folded = unicodedata.normalize("NFKD", name)
    without_marks = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return (without_marks.casefold(), name)


def load_geometry_index(raw: Any, *, cfg: IndexConfig) -> GeometryIndex:
    """Validate, filter, and index a raw feature collection.

    Every feature is validated before anything is built, so a malformed input
    never yields a partial index.
    """
    features_raw = _require_feature_list(raw)

    kept: list[GeoFeature] = []
    excluded = 0
    unnamed = 0
    for idx, feature_raw in enumerate(features_raw):
        feature = _parse_feature(feature_raw, idx, cfg=cfg)
        if feature is None:
            unnamed += 1
            continue
        if is_excluded(feature.name, cfg.excluded_name_substrings):
            excluded += 1
            continue
        kept.append(feature)

    by_name: dict[str, GeoFeature] = {}
    for feature in kept:
        by_name.setdefault(feature.name, feature)
    sorted_names = tuple(sorted((feature.name for feature in kept), key=collation_key))

    duplicates = len(kept) - len(by_name)
    _LOGGER.info(
        "Indexed %d features (excluded=%d, unnamed=%d, duplicate_names=%d)",
        len(by_name),
        excluded,
        unnamed,
        duplicates,
    )
    return GeometryIndex(
        by_name=by_name,
        sorted_names=sorted_names,
        excluded_count=excluded,
        unnamed_count=unnamed,
    )


def is_excluded(name: str, excluded_substrings: Iterable[str]) -> bool:
    return any(token in name for token in excluded_substrings)


def _require_feature_list(raw: Any) -> Sequence[Any]:
    if not isinstance(raw, Mapping):
        raise DataFormatError("Expected a GeoJSON object at top level")
    if raw.get("type") != "FeatureCollection":
        raise DataFormatError(f"Expected type 'FeatureCollection', got {raw.get('type')!r}")
    features = raw.get("features")
    if not isinstance(features, list):
        raise DataFormatError("Expected list for 'features'")
    return features


def _parse_feature(raw: Any, idx: int, *, cfg: IndexConfig) -> GeoFeature | None:
    if not isinstance(raw, Mapping):
        raise DataFormatError(f"Expected mapping for features[{idx}]")

    properties = raw.get("properties")
    if properties is None:
        properties = {}
    if not isinstance(properties, Mapping):
        raise DataFormatError(f"Expected mapping for features[{idx}].properties")

    geometry = raw.get("geometry")
    if not isinstance(geometry, Mapping):
        raise DataFormatError(f"Expected mapping for features[{idx}].geometry")
    geometry_type = geometry.get("type")
    if geometry_type not in SUPPORTED_GEOMETRY_TYPES:
        raise DataFormatError(
            f"Unsupported geometry type {geometry_type!r} for features[{idx}]; "
            "expected Polygon or MultiPolygon"
        )
    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, list):
        raise DataFormatError(f"Expected list for features[{idx}].geometry.coordinates")

    name = _first_property(properties, cfg.name_properties)
    if name is None:
        _LOGGER.debug("Dropping features[%d]: no name property", idx)
        return None
    return GeoFeature(
        name=name,
        geometry_type=str(geometry_type),
        coordinates=coordinates,
        local_name=_first_property(properties, cfg.local_name_properties),
        properties=properties,
    )


def _first_property(properties: Mapping[str, Any], candidates: Sequence[str]) -> str | None:
    for key in candidates:
        value = properties.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None
