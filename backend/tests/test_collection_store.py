"""Tests for the JSON-file and SQLite collection store backends."""
from __future__ import annotations

import pytest

from logitrack.services.storage import (
    JsonCollectionStore,
    SqliteCollectionStore,
    get_collection_store,
)


def test_json_store_round_trip_and_missing_collection(tmp_path):
    store = JsonCollectionStore(tmp_path / "db.json")
    assert store.get("clients") == []

    store.set("clients", [{"id": "c1", "location_name": "Farmacia"}])
    store.set("vehicles", [{"id": "v1", "code": "ARJ-1"}])

    reopened = JsonCollectionStore(tmp_path / "db.json")
    assert reopened.get("clients") == [{"id": "c1", "location_name": "Farmacia"}]
    assert set(reopened.collections()) == {"clients", "vehicles"}


def test_json_store_returns_copies(tmp_path):
    store = JsonCollectionStore(tmp_path / "db.json")
    store.set("clients", [{"id": "c1"}])

    rows = store.get("clients")
    rows[0]["id"] = "mutated"
    assert store.get("clients") == [{"id": "c1"}]


def test_json_store_treats_corrupt_file_as_empty(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonCollectionStore(path)

    assert store.get("clients") == []
    store.set("clients", [{"id": "c1"}])
    assert store.get("clients") == [{"id": "c1"}]
    assert not path.with_suffix(".tmp").exists()


def test_store_rejects_invalid_writes(tmp_path):
    store = JsonCollectionStore(tmp_path / "db.json")
    with pytest.raises(ValueError):
        store.set("", [])
    with pytest.raises(ValueError):
        store.set("clients", {"id": "c1"})


def test_sqlite_store_preserves_order_and_replaces_collection(tmp_path):
    store = SqliteCollectionStore(tmp_path / "logitrack.db")
    try:
        store.set("routeHistory", [{"id": "h2"}, {"id": "h1"}, {"note": "no id"}])
        assert store.get("routeHistory") == [{"id": "h2"}, {"id": "h1"}, {"note": "no id"}]

        store.set("routeHistory", [{"id": "h3"}])
        store.set("clients", [{"id": "c1"}])
        assert store.get("routeHistory") == [{"id": "h3"}]
        assert store.collections() == {"clients": [{"id": "c1"}], "routeHistory": [{"id": "h3"}]}
        assert store.get("unknown") == []
    finally:
        store.close()


def test_configured_backend_is_selected(monkeypatch, reload_settings):
    assert get_collection_store().backend == "json"

    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    reload_settings()
    store = get_collection_store()
    try:
        assert store.backend == "sqlite"
        assert get_collection_store() is store
    finally:
        store.close()
        reload_settings()


@pytest.mark.parametrize("backend", ["json", "sqlite"])
def test_append_keeps_order_at_both_ends(tmp_path, backend):
    if backend == "json":
        store = JsonCollectionStore(tmp_path / "db.json")
    else:
        store = SqliteCollectionStore(tmp_path / "logitrack.db")
    try:
        store.append("auditLogs", {"id": "a1"})
        store.append("auditLogs", {"id": "a2"})
        store.append("auditLogs", {"id": "a0"}, at_start=True)
        assert [row["id"] for row in store.get("auditLogs")] == ["a0", "a1", "a2"]

        store.set("auditLogs", [{"id": "b1"}])
        store.append("auditLogs", {"id": "b2"})
        assert [row["id"] for row in store.get("auditLogs")] == ["b1", "b2"]
    finally:
        if backend == "sqlite":
            store.close()
