"""Tests for JsonStorage."""

from stage_agent.adapters.storage.json_store import JsonStorage
from stage_agent.ports.outbound import StoragePort


def test_roundtrip(tmp_path):
    store = JsonStorage(storage_dir=str(tmp_path))
    assert isinstance(store, StoragePort)
    store.set("theme-mode", "dark")
    assert store.get("theme-mode") == "dark"
    assert JsonStorage(storage_dir=str(tmp_path)).get("theme-mode") == "dark"


def test_missing_and_default(tmp_path):
    store = JsonStorage(storage_dir=str(tmp_path))
    assert store.get("nope") is None
    assert store.get("nope", []) == []


def test_corrupt_file_returns_default(tmp_path):
    store = JsonStorage(storage_dir=str(tmp_path))
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    assert store.get("broken", "fallback") == "fallback"


def test_remove(tmp_path):
    store = JsonStorage(storage_dir=str(tmp_path))
    store.set("k", {"a": 1})
    store.remove("k")
    store.remove("k")
    assert store.get("k") is None


def test_key_is_sanitized(tmp_path):
    store = JsonStorage(storage_dir=str(tmp_path))
    store.set("../escape/key", [1, 2])
    assert store.get("../escape/key") == [1, 2]
    assert all(p.parent == tmp_path for p in tmp_path.iterdir())
