"""API-level tests for clients, messengers, vehicles, fuel tickets, media, audit and auth."""
from __future__ import annotations

import base64


def test_client_crud_is_audited(api):
    created = api.post(
        "/clients",
        json={"location_name": "Ferretería Ochoa", "type": "juridica", "rnc": "101-00000-1", "latitude": 18.47},
        headers={"X-Actor": "carlos"},
    )
    assert created.status_code == 200
    client_id = created.json()["id"]
    assert created.json()["created_by"] == "carlos"

    updated = api.patch(f"/clients/{client_id}", json={"annual_visits": 12}, headers={"X-Actor": "carlos"})
    assert updated.json()["annual_visits"] == 12
    assert updated.json()["modified_by"] == "carlos"
    assert updated.json()["rnc"] == "101-00000-1"

    assert api.delete(f"/clients/{client_id}", headers={"X-Actor-Role": "dispatcher"}).status_code == 403
    assert api.delete(f"/clients/{client_id}").status_code == 200
    assert api.get(f"/clients/{client_id}").status_code == 404

    actions = [log["action"] for log in api.get("/audit").json()]
    assert actions[:3] == ["DELETE_CLIENT", "UPDATE_CLIENT", "CREATE_CLIENT"]


def test_client_validation(api):
    assert api.post("/clients", json={"location_name": ""}).status_code == 422
    assert api.post("/clients", json={"location_name": "X", "type": "empresa"}).status_code == 422
    assert api.patch("/clients/missing", json={"annual_visits": 1}).status_code == 404


def test_vehicle_codes_are_sequential(api):
    first = api.post("/vehicles", json={"model": "Suzuki AX100"}).json()
    second = api.post("/vehicles", json={"model": "Daihatsu Hijet", "type": "Carro"}).json()
    assert (first["code"], second["code"]) == ("ARJ-1", "ARJ-2")

    manual = api.post("/vehicles", json={"model": "Isuzu NPR", "type": "Camión", "code": "ARJ-10"})
    assert manual.status_code == 200
    assert api.get("/vehicles/next-code").json() == {"code": "ARJ-11"}

    duplicate = api.post("/vehicles", json={"model": "Otro", "code": "ARJ-10"})
    assert duplicate.status_code == 400


def test_maintenance_record_moves_schedule_forward(api):
    vehicle = api.post(
        "/vehicles",
        json={
            "model": "Yamaha 115",
            "maintenance_schedule": [
                {"type": "Cambio de aceite", "frequency_months": 3, "last_maintenance_date": "2025-01-01"},
                {"type": "Gomas", "frequency_km": 20000},
            ],
        },
    ).json()
    assert all(entry["id"] for entry in vehicle["maintenance_schedule"])

    response = api.post(
        f"/vehicles/{vehicle['id']}/maintenance",
        json={
            "date": "2025-04-02",
            "type": "Cambio de aceite",
            "description": "Aceite 20W-50",
            "cost": 1500,
            "mileage": 12500,
            "performed_by": "Taller Díaz",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert len(body["maintenance_log"]) == 1
    oil = next(entry for entry in body["maintenance_schedule"] if entry["type"] == "Cambio de aceite")
    assert oil["last_maintenance_date"] == "2025-04-02"
    assert oil["last_maintenance_km"] == 12500

    replaced = api.put(f"/vehicles/{vehicle['id']}/maintenance-schedule", json=[{"type": "Frenos", "frequency_months": 6}])
    assert [entry["type"] for entry in replaced.json()["maintenance_schedule"]] == ["Frenos"]


def test_fuel_tickets_validate_references(api, seeded):
    ticket = {
        "date": "2026-03-01",
        "time": "08:15",
        "invoice_number": "F-0001",
        "amount": 850.5,
        "messenger_id": seeded["messenger_id"],
        "vehicle_id": seeded["vehicle_id"],
    }
    created = api.post("/fuel", json=ticket, headers={"X-Actor-Role": "cashier"})
    assert created.status_code == 200

    listed = api.get("/fuel", params={"vehicle_id": seeded["vehicle_id"]}).json()
    assert [item["invoice_number"] for item in listed] == ["F-0001"]

    assert api.post("/fuel", json=dict(ticket, messenger_id="missing")).status_code == 404
    assert api.post("/fuel", json=dict(ticket, amount=0)).status_code == 422


def test_media_upload_resolves_entity_and_limits_size(api, seeded, monkeypatch, reload_settings):
    payload = "data:image/png;base64," + base64.b64encode(b"x" * 300).decode()
    uploaded = api.post(
        "/media",
        json={
            "file_name": "matricula.png",
            "file_url": payload,
            "file_type": "registration",
            "entity_type": "vehicle",
            "entity_id": seeded["vehicle_id"],
        },
    )
    assert uploaded.status_code == 200
    assert uploaded.json()["entity_name"] == "ARJ-1 - Honda Super Cub"

    listed = api.get("/media", params={"entity_type": "vehicle", "entity_id": seeded["vehicle_id"]}).json()
    assert len(listed) == 1

    missing = api.post(
        "/media",
        json={"file_name": "a.png", "file_url": "https://x/a.png", "entity_type": "client", "entity_id": "nope"},
    )
    assert missing.status_code == 404

    monkeypatch.setenv("MAX_MEDIA_SIZE", "100")
    reload_settings()
    too_big = api.post(
        "/media",
        json={
            "file_name": "licencia.png",
            "file_url": payload,
            "entity_type": "messenger",
            "entity_id": seeded["messenger_id"],
        },
    )
    assert too_big.status_code == 400


def test_messenger_lifecycle(api):
    created = api.post(
        "/messengers",
        json={"first_name": "Miguel de Jesus", "last_name": "Luna", "license_expiry": "2027-12-01"},
    ).json()
    assert created["points"] == 0
    assert created["status"] == "available"

    updated = api.patch(f"/messengers/{created['id']}", json={"phone": "809-555-0003"})
    assert updated.json()["phone"] == "809-555-0003"

    assert len(api.get("/messengers").json()) == 1
    assert api.delete(f"/messengers/{created['id']}").json() == {"deleted": created["id"]}
    assert api.get(f"/messengers/{created['id']}").status_code == 404


def test_bearer_tokens_when_auth_enabled(api, monkeypatch, reload_settings):
    monkeypatch.setenv("AUTH_ENABLED", "true")
    monkeypatch.setenv("API_TOKENS", "malformed, secret-token:ana,:nobody")
    reload_settings()

    assert api.get("/clients").status_code == 401
    assert api.get("/clients", headers={"Authorization": "Bearer wrong"}).status_code == 403

    headers = {"Authorization": "Bearer secret-token", "X-Actor": "ignored"}
    created = api.post("/clients", json={"location_name": "Supermercado Bravo"}, headers=headers)
    assert created.status_code == 200
    assert created.json()["created_by"] == "ana"

    assert api.get("/clients", headers=dict(headers, **{"X-Actor-Role": "pilot"})).status_code == 400
