"""API-level tests for rule administration, scoring preview, ledger and ranking."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from logitrack.models.gamification import GamificationRule, RuleType


def test_rules_are_seeded_on_first_read(api):
    response = api.get("/gamification/rules")

    assert response.status_code == 200
    rules = {rule["id"]: rule for rule in response.json()}
    assert len(rules) == 9
    assert rules["rule-streak"]["threshold"] == 7
    assert rules["rule-streak"]["min_stars"] == 4
    assert rules["rule-time-slow"]["points_deducted"] == 30


def test_rule_update_requires_admin_and_is_audited(api):
    denied = api.patch(
        "/gamification/rules/rule-volume",
        json={"points_awarded": 15},
        headers={"X-Actor-Role": "dispatcher"},
    )
    assert denied.status_code == 403

    updated = api.patch(
        "/gamification/rules/rule-volume",
        json={"points_awarded": 15},
        headers={"X-Actor": "maria", "X-Actor-Role": "admin"},
    )
    assert updated.status_code == 200
    assert updated.json()["points_awarded"] == 15

    logs = api.get("/audit", params={"action": "UPDATE_GAMIFICATION_RULE"}).json()
    assert logs[0]["user"] == "maria"

    assert api.patch("/gamification/rules/rule-unknown", json={"enabled": False}).status_code == 404
    assert api.patch("/gamification/rules/rule-volume", json={"points_awarded": -5}).status_code == 422


def test_reset_restores_defaults(api):
    api.patch("/gamification/rules/rule-star-5", json={"enabled": False, "points_awarded": 1})

    reset = api.post("/gamification/rules/reset")

    assert reset.status_code == 200
    star_five = next(rule for rule in reset.json() if rule["id"] == "rule-star-5")
    assert star_five["enabled"] is True
    assert star_five["points_awarded"] == 40


def test_score_preview_applies_default_rating(api):
    response = api.post("/gamification/score", json={"duration": 15, "star_rating": 0, "client_id": "client-x"})

    assert response.status_code == 200
    body = response.json()
    assert body["star_rating"] == 3
    assert body["total"] == 10
    assert {item["rule_id"] for item in body["contributions"]} == {"rule-volume", "rule-star-3"}


def test_adjustments_feed_ledger_and_ranking(api, seeded):
    messenger_id = seeded["messenger_id"]
    second = api.post("/messengers", json={"first_name": "Yeison", "last_name": "Vargas"}).json()

    adjust = api.post(
        f"/gamification/ledger/{messenger_id}/adjust",
        json={"points": 25, "description": "Cobertura de turno"},
    )
    assert adjust.status_code == 200
    assert adjust.json()["reason"] == "adjustment"
    api.post(f"/gamification/ledger/{second['id']}/adjust", json={"points": -5, "description": "Retraso"})

    ranking = api.get("/gamification/ranking").json()
    assert [(entry["messenger_id"], entry["points"]) for entry in ranking] == [
        (messenger_id, 25),
        (second["id"], -5),
    ]
    assert ranking[0]["rank"] == 1

    ledger = api.get(f"/gamification/ledger/{messenger_id}").json()
    assert [grant["points"] for grant in ledger] == [25]

    missing = api.post("/gamification/ledger/nobody/adjust", json={"points": 5, "description": "x"})
    assert missing.status_code == 404


def test_streak_endpoint_reports_zero_without_history(api):
    response = api.get("/gamification/streak/messenger-1", params={"today": "2026-03-10"})

    assert response.status_code == 200
    assert response.json() == {"messenger_id": "messenger-1", "bonus": 0}


def test_evaluations_average_ratings(api, seeded):
    questions = api.get("/evaluations/questions").json()
    assert len(questions) == 8

    ratings = [5, 4, 4, 3, 5, 5, 4, 3]
    payload = {
        "messenger_id": seeded["messenger_id"],
        "questions": [dict(question, rating=rating) for question, rating in zip(questions, ratings)],
        "notes": "Buen mes",
    }
    created = api.post("/evaluations", json=payload, headers={"X-Actor": "rrhh", "X-Actor-Role": "hr"})

    assert created.status_code == 200
    assert created.json()["total_score"] == 4.1
    assert created.json()["evaluated_by"] == "rrhh"

    listed = api.get(f"/evaluations/{seeded['messenger_id']}").json()
    assert len(listed) == 1

    bad = dict(payload, questions=[dict(questions[0], rating=6)])
    assert api.post("/evaluations", json=bad).status_code == 422


def test_non_finite_thresholds_are_rejected(api):
    for raw in ("Infinity", "-Infinity", "NaN"):
        response = api.patch(
            "/gamification/rules/rule-streak",
            content=f'{{"threshold": {raw}}}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422

    with pytest.raises(ValidationError):
        GamificationRule(id="r", name="Lento", type=RuleType.TIME_BASED, threshold=float("nan"))

    streak = next(rule for rule in api.get("/gamification/rules").json() if rule["id"] == "rule-streak")
    assert streak["threshold"] == 7
