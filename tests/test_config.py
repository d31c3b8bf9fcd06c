"""Tests for the typed YAML config loader."""

from pathlib import Path

import pytest

from travelmap.config import NATURAL_EARTH_COUNTRIES_URL, AppConfig, load_config


def test_empty_config_uses_canonical_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    cfg = load_config(path)

    assert cfg.source.url == NATURAL_EARTH_COUNTRIES_URL
    assert cfg.paths.annotations == tmp_path.resolve() / "data" / "annotations.json"
    assert [tier.padding_px for tier in cfg.viewport.padding_tiers] == [(50, 50), (30, 30), (20, 20)]
    assert cfg.viewport.default_padding_px == (10, 10)
    assert cfg.viewport.max_zoom == 8
    assert cfg.style.default_fill_color == "#CCCCCC"
    assert cfg.labels.min_zoom == 3
    assert [(rule.min_zoom, rule.min_importance) for rule in cfg.labels.visibility_rules] == [
        (7, 0),
        (5, 4),
        (4, 6),
        (3, 7),
    ]
    assert cfg.index.excluded_name_substrings == ()


def test_shipped_config_loads():
    cfg = load_config(Path(__file__).resolve().parents[1] / "config.yaml")

    assert cfg.index.name_properties[0] == "name"
    assert cfg.annotations.color == "#4CAF50"


def test_tiers_are_sorted_descending(tmp_path):
    cfg = AppConfig.from_mapping(
        {
            "viewport": {
                "padding_tiers": [
                    {"min_area": 10, "padding_px": [20, 20]},
                    {"min_area": 1000, "padding_px": [50, 50]},
                ]
            }
        },
        tmp_path / "config.yaml",
    )

    assert [tier.min_area for tier in cfg.viewport.padding_tiers] == [1000, 10]


@pytest.mark.parametrize(
    "raw",
    [
        {"paths": []},
        {"viewport": {"max_zoom": "8"}},
        {"viewport": {"padding_tiers": [{"min_area": 1, "padding_px": [1]}]}},
        {"labels": {"min_font_size_px": 20, "max_font_size_px": 10}},
        {"labels": {"zoom_divisor": 0}},
        {"source": {"max_retries": -1}},
        {"index": {"name_properties": []}},
        {"annotations": {"visit_type": "moved"}},
        {"preview": {"dpi": 0}},
    ],
)
def test_invalid_values_raise(tmp_path, raw):
    with pytest.raises(ValueError):
        AppConfig.from_mapping(raw, tmp_path / "config.yaml")


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_non_mapping_top_level_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)
