"""Tests for country collection indexing."""

import copy

import pytest

from conftest import make_feature, square
from travelmap.config import IndexConfig
from travelmap.geometry_index import DataFormatError, GeometryIndex, collation_key, load_geometry_index


@pytest.fixture
def index_cfg():
    return IndexConfig.from_mapping({"excluded_name_substrings": ["Coral Sea Is"]})


def test_sorted_names_use_accent_insensitive_order(collection, index_cfg):
    index = load_geometry_index(collection, cfg=index_cfg)

    assert index.sorted_names == ("Åland", "Brazil", "France", "Japan")


def test_excluded_features_are_absent_everywhere(collection, index_cfg):
    index = load_geometry_index(collection, cfg=index_cfg)

    assert "Coral Sea Islands" not in index
    assert "Coral Sea Islands" not in index.sorted_names
    assert index.excluded_count == 1


def test_exclusion_is_case_sensitive(collection):
    cfg = IndexConfig.from_mapping({"excluded_name_substrings": ["coral sea"]})

    index = load_geometry_index(collection, cfg=cfg)

    assert "Coral Sea Islands" in index


def test_duplicates_are_preserved_in_sorted_names():
    raw = {
        "type": "FeatureCollection",
        "features": [
            make_feature("Chad", square(14, 8, 5)),
            make_feature("Benin", square(1, 6, 3)),
            make_feature("Chad", square(0, 0, 1)),
        ],
    }

    index = load_geometry_index(raw, cfg=IndexConfig.from_mapping({}))

    assert index.sorted_names == ("Benin", "Chad", "Chad")
    assert len(index) == 2
    # First occurrence wins the lookup.
    assert index.get("Chad").coordinates == square(14, 8, 5)


def test_unnamed_features_are_dropped_silently():
    raw = {
        "type": "FeatureCollection",
        "features": [
            make_feature("", square(0, 0, 1)),
            {"type": "Feature", "properties": None, "geometry": {"type": "Polygon", "coordinates": square(0, 0, 1)}},
            make_feature("Peru", square(-81, -18, 12)),
        ],
    }

    index = load_geometry_index(raw, cfg=IndexConfig.from_mapping({}))

    assert index.sorted_names == ("Peru",)
    assert index.unnamed_count == 2


def test_name_falls_back_to_natural_earth_admin_property():
    raw = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"ADMIN": "Chile", "NAME_LOCAL": "Chile"},
                "geometry": {"type": "Polygon", "coordinates": square(-75, -55, 20)},
            }
        ],
    }

    index = load_geometry_index(raw, cfg=IndexConfig.from_mapping({}))

    assert index.get("Chile").local_name == "Chile"


@pytest.mark.parametrize(
    "raw",
    [
        None,
        [],
        {"type": "Feature"},
        {"type": "FeatureCollection"},
        {"type": "FeatureCollection", "features": "nope"},
        {"type": "FeatureCollection", "features": ["nope"]},
        {"type": "FeatureCollection", "features": [{"properties": {"name": "X"}}]},
        {
            "type": "FeatureCollection",
            "features": [{"properties": {"name": "X"}, "geometry": {"type": "Point", "coordinates": [0, 0]}}],
        },
    ],
)
def test_malformed_input_raises_data_format_error(raw):
    with pytest.raises(DataFormatError):
        load_geometry_index(raw, cfg=IndexConfig.from_mapping({}))


def test_one_bad_feature_fails_the_whole_load(collection, index_cfg):
    collection["features"].append({"properties": {"name": "Broken"}, "geometry": None})

    with pytest.raises(DataFormatError):
        GeometryIndex.load(collection, index_cfg)


def test_load_does_not_mutate_input(collection, index_cfg):
    before = copy.deepcopy(collection)

    load_geometry_index(collection, cfg=index_cfg)

    assert collection == before


def test_search_prefers_prefix_matches(collection, index_cfg):
    index = load_geometry_index(collection, cfg=index_cfg)

    assert index.search("a") == ["Åland", "Brazil", "France", "Japan"]
    assert index.search("fr") == ["France"]
    assert index.search("AN", limit=2) == ["Åland", "France"]


def test_features_follow_sorted_names(collection, index_cfg):
    index = load_geometry_index(collection, cfg=index_cfg)

    assert [feature.name for feature in index.features] == list(index.sorted_names)


def test_collation_key_ties_break_on_raw_string():
    assert sorted(["b", "B", "a"], key=collation_key) == ["a", "B", "b"]
