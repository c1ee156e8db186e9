"""Tests for rule resolution, route scoring and the default-rating policy."""
from __future__ import annotations

import pytest

from logitrack.models.gamification import (
    Custom,
    FastThreshold,
    GamificationRule,
    GamificationRuleUpdate,
    RuleType,
    SlowThreshold,
    StarExact,
    Streak,
    Volume,
)
from logitrack.services.route_history import route_history_service
from logitrack.services.rules import rule_table
from logitrack.services.scoring import effective_star_rating, scoring_engine
from logitrack.services.storage import GAMIFICATION_RULES, get_collection_store


def _seed_average(client_id: str, average: float) -> None:
    route_history_service.update_client_route_stats(client_id, average)


def _kinds(breakdown):
    return [item.kind for item in breakdown.contributions]


def test_default_rules_resolve_to_variants():
    variants = {rule.id: rule.variant() for rule in rule_table.get_rules()}

    assert variants["rule-time-fast"] == FastThreshold(pct=20, award=50)
    assert variants["rule-time-slow"] == SlowThreshold(pct=20, deduction=30)
    assert variants["rule-star-5"] == StarExact(stars=5, award=40, deduction=0)
    assert variants["rule-star-1"].net == -40
    assert variants["rule-volume"] == Volume(flat=10)
    assert variants["rule-streak"] == Streak(days=7, min_stars=4, award=100)


def test_unusable_thresholds_resolve_to_custom():
    assert isinstance(GamificationRule(id="r", name="r", type=RuleType.STAR_RATING, threshold=4.5).variant(), Custom)
    assert isinstance(GamificationRule(id="r", name="r", type=RuleType.TIME_BASED, threshold=0).variant(), Custom)
    assert isinstance(GamificationRule(id="r", name="r", type=RuleType.STREAK).variant(), Custom)
    assert isinstance(GamificationRule(id="r", name="r", type=RuleType.CUSTOM, threshold=3).variant(), Custom)


def test_fast_five_star_route_scores_one_hundred():
    _seed_average("client-a", 20)

    breakdown = scoring_engine.breakdown(12, 5, "client-a")

    assert breakdown.total == 100
    assert sorted(_kinds(breakdown)) == ["fast_threshold", "star_exact", "volume"]
    assert breakdown.percentage_diff == pytest.approx(-40.0)
    assert scoring_engine.calculate_route_points(12, 5, "client-a") == 100


def test_route_at_client_average_triggers_no_time_rule():
    _seed_average("client-a", 20)

    breakdown = scoring_engine.breakdown(20, 3, "client-a")

    assert breakdown.percentage_diff == 0
    assert "fast_threshold" not in _kinds(breakdown)
    assert "slow_threshold" not in _kinds(breakdown)
    assert breakdown.total == 10


def test_time_thresholds_are_inclusive():
    _seed_average("client-a", 20)

    assert scoring_engine.calculate_route_points(16, 3, "client-a") == 10 + 50
    assert scoring_engine.calculate_route_points(17, 3, "client-a") == 10
    assert scoring_engine.calculate_route_points(24, 3, "client-a") == 10 - 30
    assert scoring_engine.calculate_route_points(23, 3, "client-a") == 10


def test_first_route_for_client_skips_time_rules():
    breakdown = scoring_engine.breakdown(1, 4, "brand-new-client")

    assert breakdown.percentage_diff is None
    assert breakdown.total == 10 + 20


@pytest.mark.parametrize("rating, expected_net", [(1, -40), (2, -20), (3, 0), (4, 20), (5, 40)])
def test_exactly_one_star_rule_contributes(rating, expected_net):
    breakdown = scoring_engine.breakdown(10, rating, "client-a")
    stars = [item for item in breakdown.contributions if item.kind == "star_exact"]

    assert len(stars) == 1
    assert stars[0].rule_id == f"rule-star-{rating}"
    assert stars[0].points == expected_net


def test_disabled_rules_do_not_contribute():
    _seed_average("client-a", 20)
    rule_table.update_rule("rule-volume", GamificationRuleUpdate(enabled=False), actor="tester")
    rule_table.update_rule("rule-time-fast", GamificationRuleUpdate(enabled=False), actor="tester")

    breakdown = scoring_engine.breakdown(12, 5, "client-a")

    assert _kinds(breakdown) == ["star_exact"]
    assert breakdown.total == 40


def test_first_enabled_rule_of_a_variant_wins():
    _seed_average("client-a", 20)
    rows = [rule.model_dump(mode="json") for rule in rule_table.get_rules()]
    rows.append(
        GamificationRule(
            id="rule-time-fast-extra",
            name="Extra",
            type=RuleType.TIME_BASED,
            points_awarded=999,
            threshold=10,
        ).model_dump(mode="json")
    )
    get_collection_store().set(GAMIFICATION_RULES, rows)

    assert scoring_engine.calculate_route_points(12, 5, "client-a") == 100


def test_engine_rejects_out_of_range_input():
    with pytest.raises(ValueError):
        scoring_engine.calculate_route_points(10, 0, "client-a")
    with pytest.raises(ValueError):
        scoring_engine.calculate_route_points(10, 6, "client-a")
    with pytest.raises(ValueError):
        scoring_engine.calculate_route_points(-1, 3, "client-a")


def test_unrated_resolves_to_default_rating(monkeypatch, reload_settings):
    assert effective_star_rating(0) == 3
    assert effective_star_rating(None) == 3
    assert effective_star_rating(5) == 5
    with pytest.raises(ValueError):
        effective_star_rating(7)

    monkeypatch.setenv("DEFAULT_STAR_RATING", "4")
    reload_settings()
    assert effective_star_rating(0) == 4
