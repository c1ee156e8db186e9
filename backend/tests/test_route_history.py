"""Tests for route history, client statistics and the streak evaluator."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from logitrack.models.gamification import GamificationRuleUpdate, RouteHistory, RouteHistoryFilters
from logitrack.services.route_history import route_history_service
from logitrack.services.rules import rule_table
from logitrack.services.scoring import scoring_engine

TODAY = date(2026, 3, 10)


def _history(day: int, stars: int = 4, messenger_id: str = "messenger-1", client_id: str = "client-a", duration: int = 20):
    finished = datetime(2026, 3, day, 15, 0, tzinfo=timezone.utc)
    return RouteHistory(
        id="",
        messenger_id=messenger_id,
        client_id=client_id,
        start_time=finished - timedelta(minutes=duration),
        end_time=finished,
        duration=duration,
        star_rating=stars,
        completed_at=finished,
    )


def _fill_days(days, stars: int = 4, messenger_id: str = "messenger-1"):
    for day in days:
        route_history_service.save_route_history(_history(day, stars=stars, messenger_id=messenger_id))


def test_client_stats_running_average():
    first = route_history_service.update_client_route_stats("client-a", 20)
    assert (first.average_duration, first.fastest_duration, first.slowest_duration, first.total_routes) == (
        20,
        20,
        20,
        1,
    )

    second = route_history_service.update_client_route_stats("client-a", 10)
    assert (second.average_duration, second.fastest_duration, second.slowest_duration, second.total_routes) == (
        15,
        10,
        20,
        2,
    )
    assert route_history_service.get_client_route_stats("client-a") == second
    assert route_history_service.get_client_route_stats("client-b") is None


def test_client_stats_bounds_hold_over_many_updates():
    for duration in [35, 5, 18, 60, 0, 22, 41]:
        stats = route_history_service.update_client_route_stats("client-a", duration)
        assert stats.fastest_duration <= stats.average_duration <= stats.slowest_duration
    assert stats.total_routes == 7

    with pytest.raises(ValueError):
        route_history_service.update_client_route_stats("client-a", -1)


def test_saving_history_updates_client_stats_and_rejects_duplicates():
    saved = route_history_service.save_route_history(_history(3, duration=30))
    assert saved.id.startswith("history-")

    stats = route_history_service.get_client_route_stats("client-a")
    assert stats.total_routes == 1
    assert stats.average_duration == 30

    with pytest.raises(ValueError):
        route_history_service.save_route_history(saved)


def test_history_filters_and_ordering():
    _fill_days([1, 5, 9])
    route_history_service.save_route_history(_history(7, messenger_id="messenger-2", client_id="client-b"))

    everything = route_history_service.get_route_history()
    assert [item.completed_at.day for item in everything] == [9, 7, 5, 1]

    mine = route_history_service.get_route_history(RouteHistoryFilters(messenger_id="messenger-1"))
    assert len(mine) == 3

    window = route_history_service.get_route_history(
        RouteHistoryFilters(
            start_date=datetime(2026, 3, 4, tzinfo=timezone.utc),
            end_date=datetime(2026, 3, 8, 23, 59, tzinfo=timezone.utc),
        )
    )
    assert sorted(item.completed_at.day for item in window) == [5, 7]


def test_streak_awarded_for_seven_qualifying_days():
    _fill_days(range(4, 11))

    assert scoring_engine.check_streak_bonus("messenger-1", today=TODAY) == 100


def test_streak_broken_by_missing_day():
    _fill_days([10, 9, 7, 6, 5, 4, 3])

    assert scoring_engine.check_streak_bonus("messenger-1", today=TODAY) == 0


def test_streak_ignores_low_ratings_and_other_messengers():
    _fill_days(range(4, 11))
    route_history_service.save_route_history(_history(11, stars=3))
    _fill_days(range(5, 12), messenger_id="messenger-2", stars=2)

    assert scoring_engine.check_streak_bonus("messenger-1", today=date(2026, 3, 11)) == 0
    assert scoring_engine.check_streak_bonus("messenger-2", today=date(2026, 3, 11)) == 0


def test_streak_rule_parameters_are_honoured():
    _fill_days(range(8, 11))
    assert scoring_engine.check_streak_bonus("messenger-1", today=TODAY) == 0

    rule_table.update_rule("rule-streak", GamificationRuleUpdate(threshold=3, points_awarded=25), actor="tester")
    assert scoring_engine.check_streak_bonus("messenger-1", today=TODAY) == 25

    rule_table.update_rule("rule-streak", GamificationRuleUpdate(min_stars=5), actor="tester")
    assert scoring_engine.check_streak_bonus("messenger-1", today=TODAY) == 0

    rule_table.update_rule("rule-streak", GamificationRuleUpdate(min_stars=4, enabled=False), actor="tester")
    assert scoring_engine.check_streak_bonus("messenger-1", today=TODAY) == 0
