from datetime import datetime, timezone

import pytest

from familyspots.companion.daylog import DayLogStore
from familyspots.companion.favorites import FavoritesStore
from familyspots.core.storage import JsonFileStore, MemoryStore, StorageError


def test_memory_store_round_trips_json_values():
    store = MemoryStore({"a": [1, 2]})
    assert store.get("a") == [1, 2]
    assert store.get("missing") is None
    store.delete("a")
    assert store.get("a") is None

    with pytest.raises(StorageError):
        store.set("bad", object())


def test_json_file_store_writes_one_document(tmp_path):
    path = tmp_path / "state" / "state.json"
    store = JsonFileStore(path)

    store.set("x", {"v": 1})
    store.set("y", "two")
    assert JsonFileStore(path).get("x") == {"v": 1}
    assert JsonFileStore(path).get("y") == "two"
    assert not path.with_suffix(".tmp").exists()

    store.delete("x")
    assert store.get("x") is None


def test_json_file_store_reads_corrupt_file_as_empty(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileStore(path).get("anything") is None

    path.write_text("[1, 2]", encoding="utf-8")
    assert JsonFileStore(path).get("anything") is None


def test_favorites_toggle_and_persist(tmp_path):
    store = JsonFileStore(tmp_path / "state.json")
    favorites = FavoritesStore(store)

    assert favorites.toggle("a") is True
    assert favorites.toggle("b") is True
    assert favorites.toggle("a") is False
    assert FavoritesStore(store).load() == frozenset({"b"})
    assert store.get("fs_favorites") == ["b"]

    with pytest.raises(ValueError):
        favorites.toggle("  ")


def test_favorites_corrupt_storage_reads_empty():
    assert FavoritesStore(MemoryStore({"fs_favorites": "oops"})).load() == frozenset()
    assert FavoritesStore(MemoryStore({"fs_favorites": ["a", "", None, "a", 3]})).load() == frozenset({"a", "3"})


def test_daylog_saves_trimmed_text_and_ignores_blank():
    now = datetime(2026, 5, 1, 8, 30, tzinfo=timezone.utc)
    kv = MemoryStore()
    daylog = DayLogStore(kv, clock=lambda: now)

    assert daylog.save("   ") is None
    assert kv.get("fs_daylog_last") is None

    entry = daylog.save("  Zoo, then ice cream  ")
    assert entry.text == "Zoo, then ice cream"
    assert kv.get("fs_daylog_last") == {"text": "Zoo, then ice cream", "ts": int(now.timestamp() * 1000)}

    loaded = DayLogStore(kv).load()
    assert loaded.text == "Zoo, then ice cream"
    assert loaded.saved_at == now


@pytest.mark.parametrize("raw", ["text", {"text": ""}, {"text": "x"}, {"text": "x", "ts": "soon"}])
def test_daylog_corrupt_storage_reads_none(raw):
    assert DayLogStore(MemoryStore({"fs_daylog_last": raw})).load() is None
