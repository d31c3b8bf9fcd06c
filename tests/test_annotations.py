"""Tests for the JSON annotation store."""

import json

import pytest

from travelmap.annotations import AnnotationStore, AnnotationStoreError
from travelmap.models import Annotation, CityAnnotation, Trip


def test_missing_file_is_an_empty_store(tmp_path):
    store = AnnotationStore(tmp_path / "annotations.json").load()

    assert len(store) == 0
    assert store.get("France") is None


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "annotations.json"
    store = AnnotationStore(path)
    store.upsert(
        Annotation(
            country_name="Italy",
            color="#2196F3",
            trips=(Trip("2021-06-01", "2021-06-10"),),
            cities=(CityAnnotation(name="Rome"),),
        )
    )
    store.save()

    reloaded = AnnotationStore(path).load()

    assert reloaded.get("Italy") == store.get("Italy")
    assert json.loads(path.read_text(encoding="utf-8"))["Italy"]["color"] == "#2196F3"


def test_last_write_wins(tmp_path):
    store = AnnotationStore(tmp_path / "annotations.json")
    store.upsert(Annotation(country_name="Italy", color="#111111"))
    store.upsert(Annotation(country_name="Italy", color="#222222"))

    assert store.get("Italy").color == "#222222"
    assert len(store) == 1


def test_snapshot_is_read_only_and_detached(tmp_path):
    store = AnnotationStore(tmp_path / "annotations.json")
    store.upsert(Annotation(country_name="Italy"))
    snapshot = store.snapshot()

    store.remove("Italy")

    assert "Italy" in snapshot
    with pytest.raises(TypeError):
        snapshot["Spain"] = Annotation(country_name="Spain")


def test_dangling_names_are_kept_and_reported(tmp_path):
    store = AnnotationStore(tmp_path / "annotations.json")
    store.upsert(Annotation(country_name="Yugoslavia"))
    store.upsert(Annotation(country_name="Italy"))

    assert store.dangling(["Italy", "France"]) == ["Yugoslavia"]
    assert "Yugoslavia" in store


def test_key_fills_missing_country_name(tmp_path):
    path = tmp_path / "annotations.json"
    path.write_text(json.dumps({"Chile": {"color": "#000000"}}), encoding="utf-8")

    store = AnnotationStore(path).load()

    assert store.get("Chile").color == "#000000"


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        json.dumps({"Chile": "red"}),
        json.dumps({"Chile": {"countryName": "Peru"}}),
        json.dumps({"Chile": {"trips": 3}}),
        json.dumps({"Chile": {"color": "banana"}}),
        json.dumps({"Chile": {"cities": [{"name": "Santiago", "color": "red"}]}}),
    ],
)
def test_malformed_store_raises(tmp_path, content):
    path = tmp_path / "annotations.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(AnnotationStoreError):
        AnnotationStore(path).load()


def test_padded_country_name_keeps_its_join_key(tmp_path):
    path = tmp_path / "annotations.json"
    store = AnnotationStore(path)
    store.upsert(Annotation(country_name="Cyprus U.N. Buffer Zone "))
    store.save()

    reloaded = AnnotationStore(path).load()

    assert reloaded.get("Cyprus U.N. Buffer Zone ") == store.get("Cyprus U.N. Buffer Zone ")
    assert reloaded.dangling(["Cyprus U.N. Buffer Zone "]) == []
