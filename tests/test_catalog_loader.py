import json

import pytest

from familyspots.catalog.loader import load_catalog, load_raw_catalog, split_payload
from familyspots.catalog.registry import CategoryRegistry
from familyspots.config.settings import Settings


def test_split_payload_accepts_both_shapes():
    assert split_payload([{"id": "a"}]) == ([{"id": "a"}], {})
    records, index = split_payload({"spots": [{"id": "a"}], "index": {"v": 1}})
    assert records == [{"id": "a"}]
    assert index == {"v": 1}

    with pytest.raises(ValueError):
        split_payload({"items": []})
    with pytest.raises(ValueError):
        split_payload("nope")


def test_load_catalog_from_file(tmp_path):
    path = tmp_path / "spots.json"
    path.write_text(
        json.dumps({"spots": [{"id": "a", "category": "zoo"}, {"title": "no id"}, {"id": "a"}], "index": {"n": 3}}),
        encoding="utf-8",
    )
    settings = Settings.model_validate({"catalog": {"path": str(path)}})

    catalog = load_catalog(settings, CategoryRegistry.from_settings())
    assert [s.id for s in catalog.spots] == ["a"]
    assert catalog.dropped == 2
    assert catalog.index == {"n": 3}
    assert catalog.by_id()["a"].categories == ("zoo",)


def test_load_raw_catalog_from_url(monkeypatch):
    import familyspots.catalog.loader as loader

    calls = []

    def fake_get_json(url, *, timeout_seconds=15, **_):
        calls.append((url, timeout_seconds))
        return [{"id": "remote"}]

    monkeypatch.setattr(loader, "get_json", fake_get_json)
    records, index = load_raw_catalog("https://example.org/spots.json", timeout_seconds=3)
    assert records == [{"id": "remote"}]
    assert index == {}
    assert calls == [("https://example.org/spots.json", 3)]


def test_sample_catalog_loads():
    settings = Settings()
    catalog = load_catalog(settings, CategoryRegistry.from_settings())
    ids = {s.id for s in catalog.spots}
    assert "hh-tierpark-nord" in ids
    assert catalog.dropped == 1
    assert catalog.by_id()["hh-kindermuseum"].categories == ("kinder-museum",)
    assert catalog.by_id()["sh-hansapark"].big_adventure is True
