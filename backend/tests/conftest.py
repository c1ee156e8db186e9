"""Shared fixtures: every test gets its own collection store under tmp_path."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from logitrack.core.config import get_settings  # noqa: E402
from logitrack.services.storage import get_collection_store  # noqa: E402


def _reset_caches() -> None:
    get_settings.cache_clear()
    get_collection_store.cache_clear()


@pytest.fixture(autouse=True)
def isolated_store(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("JSON_DB_PATH", str(tmp_path / "db.json"))
    monkeypatch.setenv("SQLITE_DB_PATH", str(tmp_path / "logitrack.db"))
    monkeypatch.setenv("AUTH_ENABLED", "false")
    monkeypatch.setenv("API_TOKENS", "")
    monkeypatch.setenv("TIMEZONE", "UTC")
    monkeypatch.setenv("DEFAULT_STAR_RATING", "3")
    _reset_caches()
    yield tmp_path
    store = get_collection_store()
    if hasattr(store, "close"):
        store.close()
    _reset_caches()


@pytest.fixture
def reload_settings():
    """Call after changing env vars inside a test."""
    return _reset_caches


@pytest.fixture
def api():
    from logitrack.main import app

    return TestClient(app)


@pytest.fixture
def seeded(api):
    """One messenger, one vehicle and two clients created through the API."""
    messenger = api.post(
        "/messengers",
        json={"first_name": "José", "last_name": "Almonte", "cedula": "001-0000000-1", "phone": "809-555-0001"},
    )
    vehicle = api.post("/vehicles", json={"model": "Honda Super Cub", "type": "Motor"})
    client_a = api.post("/clients", json={"location_name": "Farmacia Central", "full_name": "Ana Pérez"})
    client_b = api.post("/clients", json={"location_name": "Colmado Luna", "type": "juridica"})
    for response in (messenger, vehicle, client_a, client_b):
        assert response.status_code == 200, response.text
    return {
        "messenger_id": messenger.json()["id"],
        "vehicle_id": vehicle.json()["id"],
        "client_a": client_a.json()["id"],
        "client_b": client_b.json()["id"],
    }
