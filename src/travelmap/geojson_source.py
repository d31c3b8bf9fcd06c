"""Country GeoJSON retrieval and local caching."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import requests

from .config import SourceConfig
from .geometry_index import DataFormatError
from .util import read_json, sha256_text

_RETRYABLE_HTTP_STATUS = {429, 500, 502, 503, 504}

_LOGGER = logging.getLogger("travelmap.geojson_source")


@dataclass(slots=True)
class FetchReport:
    output_path: Path | None = None
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


def load_feature_collection(path: Path) -> Any:
    """Read a local GeoJSON file; the shape is checked by the index loader."""
    if not path.exists():
        raise FileNotFoundError(f"Countries GeoJSON not found: {path}")
    try:
        return read_json(path)
    except json.JSONDecodeError as exc:
        raise DataFormatError(f"Invalid JSON in {path}: {exc}") from exc


def run_fetch(cfg: SourceConfig, output_path: Path, *, force: bool = False) -> FetchReport:
    """Download the countries GeoJSON into `output_path` unless already cached."""
    report = FetchReport(output_path=output_path)
    if output_path.exists() and not force:
        report.add_info(f"Reusing cached countries GeoJSON at {output_path}")
        return report

    fetcher = GeoJsonFetcher(cfg)
    try:
        text = fetcher.fetch_text(cfg.url)
    except requests.RequestException as exc:
        report.add_error(f"Failed downloading {cfg.url}: {exc}")
        return report

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        report.add_error(f"Downloaded content from {cfg.url} is not JSON: {exc}")
        return report
    if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
        report.add_error(f"Downloaded content from {cfg.url} is not a FeatureCollection")
        return report

    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = output_path.with_name(output_path.name + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(output_path)
    report.add_info(
        f"Countries GeoJSON written to {output_path} "
        f"({len(payload.get('features') or [])} features, sha256={sha256_text(text)[:12]})"
    )
    return report


def format_fetch_lines(report: FetchReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] GeoJSON fetch completed with no errors.")
    return lines


class GeoJsonFetcher:
    """HTTP GET with bounded retries on throttling and server errors."""

    def __init__(self, cfg: SourceConfig, session: requests.Session | None = None) -> None:
        self.cfg = cfg
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": cfg.user_agent})
        self._max_retries = max(int(cfg.max_retries), 0)
        self._retry_backoff_s = max(float(cfg.retry_backoff_s), 0.01)

    def fetch_text(self, url: str) -> str:
        response = self._request_get(url)
        try:
            return response.text
        finally:
            response.close()

    def _request_get(self, url: str) -> requests.Response:
        attempts = self._max_retries + 1
        for attempt in range(attempts):
            response = self._session.get(url, timeout=self.cfg.request_timeout_s)
            if response.status_code not in _RETRYABLE_HTTP_STATUS:
                response.raise_for_status()
                return response
            if attempt >= self._max_retries:
                response.raise_for_status()
            delay_s = self._compute_retry_delay_s(response=response, attempt=attempt)
            _LOGGER.warning(
                "Retryable response %s for %s; retrying in %.1fs (%d/%d)",
                response.status_code,
                url,
                delay_s,
                attempt + 1,
                self._max_retries,
            )
            response.close()
            time.sleep(delay_s)
        raise RuntimeError("Unreachable retry loop in GeoJSON fetcher")

    def _compute_retry_delay_s(self, *, response: requests.Response, attempt: int) -> float:
        retry_after_s = _parse_retry_after_seconds(response.headers.get("Retry-After"))
        exponential_s = self._retry_backoff_s * (2**attempt)
        return min(max(exponential_s, retry_after_s), 300.0)


def _parse_retry_after_seconds(raw: str | None) -> float:
    if raw is None:
        return 0.0
    value = raw.strip()
    if not value:
        return 0.0
    try:
        parsed = float(value)
    except ValueError:
        return 0.0
    return max(parsed, 0.0)
