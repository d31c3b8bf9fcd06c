"""JSON-file annotation store keyed by country name."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from .models import Annotation
from .util import read_json, write_json

_LOGGER = logging.getLogger("travelmap.annotations")


class AnnotationStoreError(ValueError):
    """Raised when the persisted annotation file cannot be parsed."""


class AnnotationStore:
    """Local persistence for annotations; the last write wins.

    The file holds a JSON object mapping country name to annotation. Names
    that no longer match a loaded feature are kept as-is.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._items: dict[str, Annotation] = {}

    def load(self) -> AnnotationStore:
        self._items = load_annotations(self.path)
        _LOGGER.debug("Loaded %d annotations from %s", len(self._items), self.path)
        return self

    def save(self) -> Path:
        payload = {name: self._items[name].to_dict() for name in sorted(self._items)}
        write_json(self.path, payload)
        _LOGGER.debug("Saved %d annotations to %s", len(self._items), self.path)
        return self.path

    def get(self, country_name: str) -> Annotation | None:
        return self._items.get(country_name)

    def upsert(self, annotation: Annotation) -> None:
        self._items[annotation.country_name] = annotation

    def remove(self, country_name: str) -> bool:
        return self._items.pop(country_name, None) is not None

    def snapshot(self) -> Mapping[str, Annotation]:
        """Read-only copy for one render pass."""
        return MappingProxyType(dict(self._items))

    def dangling(self, known_names: Iterable[str]) -> list[str]:
        known = set(known_names)
        return sorted(name for name in self._items if name not in known)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, country_name: object) -> bool:
        return country_name in self._items


def load_annotations(path: Path) -> dict[str, Annotation]:
    if not path.exists():
        return {}
    try:
        raw = read_json(path)
    except json.JSONDecodeError as exc:
        raise AnnotationStoreError(f"Invalid JSON in {path}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise AnnotationStoreError(f"Expected mapping in {path}")

    out: dict[str, Annotation] = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            raise AnnotationStoreError(f"Annotation for '{key}' must be a mapping in {path}")
        entry = dict(value)
        entry.setdefault("countryName", key)
        try:
            annotation = Annotation.from_mapping(entry)
        except ValueError as exc:
            raise AnnotationStoreError(f"Invalid annotation for '{key}' in {path}: {exc}") from exc
        if annotation.country_name != key:
            raise AnnotationStoreError(
                f"Annotation key '{key}' does not match countryName "
                f"'{annotation.country_name}' in {path}"
            )
        out[key] = annotation
    return out
