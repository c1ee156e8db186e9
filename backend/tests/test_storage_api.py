"""API-level tests for the raw collection storage endpoint."""
from __future__ import annotations


def test_read_unknown_collection_returns_empty_list(api):
    response = api.get("/api/storage", params={"collection": "clients"})

    assert response.status_code == 200
    assert response.json() == []


def test_write_then_read_collection(api):
    rows = [{"id": "c1", "location_name": "Farmacia"}, {"id": "c2", "location_name": "Colmado"}]

    written = api.post("/api/storage", json={"collection": "clients", "data": rows})

    assert written.status_code == 200
    assert written.json() == {"success": True}
    assert api.get("/api/storage", params={"collection": "clients"}).json() == rows
    assert api.get("/api/storage").json() == {"clients": rows}


def test_write_requires_collection_and_list(api):
    missing = api.post("/api/storage", json={"data": []})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing collection"}

    not_a_list = api.post("/api/storage", json={"collection": "clients", "data": {"id": "c1"}})
    assert not_a_list.status_code == 400


def test_shim_and_services_share_the_store(api, monkeypatch, reload_settings):
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    reload_settings()

    created = api.post("/clients", json={"location_name": "Ferretería"})
    assert created.status_code == 200

    stored = api.get("/api/storage", params={"collection": "clients"}).json()
    assert [row["id"] for row in stored] == [created.json()["id"]]
    assert api.get("/health").json() == {"status": "healthy", "storage_backend": "sqlite"}


def test_write_failure_returns_500(api, monkeypatch):
    from logitrack.services.storage import get_collection_store

    store = get_collection_store()

    def broken_set(collection, data):
        raise OSError("disk full")

    monkeypatch.setattr(store, "set", broken_set)

    response = api.post("/api/storage", json={"collection": "clients", "data": []})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save data"}
