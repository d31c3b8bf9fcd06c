"""Validation layer for config, country data, and annotations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .annotations import AnnotationStore
from .config import AppConfig
from .geojson_source import load_feature_collection
from .geometry_index import DataFormatError, GeometryIndex, load_geometry_index
from .util import format_name_list
from .viewport import DegenerateGeometryError, compute_bounds


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Checks that the countries file and annotation store are usable together."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self) -> ValidationReport:
        report = ValidationReport()
        index = self._validate_countries(report)
        store = self._validate_annotations(report)
        if index is not None and store is not None:
            self._validate_joins(report, index=index, store=store)
        return report

    def _validate_countries(self, report: ValidationReport) -> GeometryIndex | None:
        path = self.cfg.paths.countries_geojson
        if not path.exists():
            report.add_error(f"Missing countries GeoJSON: {path} (run `travelmap fetch`)")
            return None
        try:
            index = load_geometry_index(load_feature_collection(path), cfg=self.cfg.index)
        except DataFormatError as exc:
            report.add_error(f"Malformed countries GeoJSON '{path}': {exc}")
            return None
        if not len(index):
            report.add_error(f"No selectable countries in {path}")
            return index
        report.add_info(
            f"Indexed {len(index)} countries from {path} "
            f"(excluded={index.excluded_count}, unnamed={index.unnamed_count})"
        )

        duplicates = len(index.sorted_names) - len(index)
        if duplicates:
            report.add_warning(f"{duplicates} duplicate country names; only the first of each is selectable")

        degenerate: list[str] = []
        for feature in index.features:
            try:
                compute_bounds(feature)
            except DegenerateGeometryError:
                degenerate.append(feature.name)
        if degenerate:
            report.add_warning(
                "Countries with empty geometry (cannot be framed): " + format_name_list(degenerate)
            )
        return index

    def _validate_annotations(self, report: ValidationReport) -> AnnotationStore | None:
        store = AnnotationStore(self.cfg.paths.annotations)
        try:
            store.load()
        except ValueError as exc:
            report.add_error(f"Failed parsing annotations: {exc}")
            return None
        report.add_info(f"Loaded {len(store)} annotations from {store.path}")
        return store

    def _validate_joins(
        self,
        report: ValidationReport,
        *,
        index: GeometryIndex,
        store: AnnotationStore,
    ) -> None:
        dangling = store.dangling(index.by_name)
        if dangling:
            report.add_warning(
                "Annotations without a matching country (kept, not rendered): "
                + format_name_list(dangling)
            )


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    for info in report.infos:
        yield f"[INFO] {info}"
    for warning in report.warnings:
        yield f"[WARN] {warning}"
    for error in report.errors:
        yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
