"""Shared fixtures for travelmap tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from travelmap.config import AppConfig, load_config
from travelmap.models import GeoFeature


def make_feature(name: str, coordinates: Any, geometry_type: str = "Polygon", **properties: Any) -> dict[str, Any]:
    return {
        "type": "Feature",
        "properties": {"name": name, **properties},
        "geometry": {"type": geometry_type, "coordinates": coordinates},
    }


def square(min_lng: float, min_lat: float, size: float) -> list[list[list[float]]]:
    return [
        [
            [min_lng, min_lat],
            [min_lng, min_lat + size],
            [min_lng + size, min_lat + size],
            [min_lng + size, min_lat],
            [min_lng, min_lat],
        ]
    ]


def geo_feature(name: str, coordinates: Any, geometry_type: str = "Polygon") -> GeoFeature:
    return GeoFeature(name=name, geometry_type=geometry_type, coordinates=coordinates)


@pytest.fixture
def collection() -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            make_feature("France", square(-5, 42, 10), name_local="France"),
            make_feature("Åland", square(19, 59, 2)),
            make_feature("Brazil", square(-74, -34, 40)),
            make_feature(
                "Japan",
                [square(130, 31, 5), square(139, 35, 6)],
                geometry_type="MultiPolygon",
            ),
            make_feature("Coral Sea Islands", square(150, -20, 1)),
        ],
    }


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "\n".join(
            [
                "paths:",
                "  countries_geojson: data/countries.geojson",
                "  annotations: data/annotations.json",
                "index:",
                "  excluded_name_substrings: ['Coral Sea Is']",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


@pytest.fixture
def countries_file(app_config: AppConfig, collection: dict[str, Any]) -> Path:
    path = app_config.paths.countries_geojson
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(collection), encoding="utf-8")
    return path
