"""Route scoring engine and streak evaluator."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Set, Tuple
from zoneinfo import ZoneInfo

from logitrack.core.config import get_settings
from logitrack.models.gamification import (
    FastThreshold,
    GamificationRule,
    RouteHistoryFilters,
    ScoreBreakdown,
    ScoreContribution,
    SlowThreshold,
    StarExact,
    Streak,
    Volume,
)
from logitrack.services.route_history import as_utc, route_history_service
from logitrack.services.rules import rule_table


def effective_star_rating(star_rating: Optional[int]) -> int:
    """Resolve an unrated stop (0 or missing) to the configured default rating."""
    if star_rating is None or star_rating == 0:
        default = get_settings().default_star_rating
        if not 1 <= default <= 5:
            raise ValueError(f"Configured default star rating {default} is outside 1-5")
        return default
    if not 1 <= star_rating <= 5:
        raise ValueError(f"Star rating {star_rating} is outside 0-5")
    return star_rating


def local_datetime(value: datetime) -> datetime:
    return as_utc(value).astimezone(ZoneInfo(get_settings().timezone))


def local_day(value: datetime) -> date:
    return local_datetime(value).date()


def local_today() -> date:
    return datetime.now(ZoneInfo(get_settings().timezone)).date()


class ScoringEngine:
    """Evaluates the enabled rule table against a completed stop."""

    @staticmethod
    def _group_variants(rules: List[GamificationRule]) -> Dict[type, List[Tuple[str, Any]]]:
        grouped: Dict[type, List[Tuple[str, Any]]] = {}
        for rule in rules:
            variant = rule.variant()
            grouped.setdefault(type(variant), []).append((rule.id, variant))
        return grouped

    def breakdown(self, duration: int, star_rating: int, client_id: str) -> ScoreBreakdown:
        if duration < 0:
            raise ValueError("Duration cannot be negative")
        if not 1 <= star_rating <= 5:
            raise ValueError(f"Star rating {star_rating} is outside 1-5")

        grouped = self._group_variants(rule_table.enabled_rules())
        contributions: List[ScoreContribution] = []

        volume = grouped.get(Volume, [])
        if volume:
            rule_id, variant = volume[0]
            contributions.append(ScoreContribution(rule_id=rule_id, kind=variant.kind, points=variant.flat))

        for rule_id, variant in grouped.get(StarExact, []):
            if variant.stars == star_rating:
                contributions.append(ScoreContribution(rule_id=rule_id, kind=variant.kind, points=variant.net))
                break

        percentage_diff: Optional[float] = None
        stats = route_history_service.get_client_route_stats(client_id)
        if stats and stats.average_duration > 0:
            average = stats.average_duration
            percentage_diff = (duration - average) / average * 100

            fast = grouped.get(FastThreshold, [])
            if fast:
                rule_id, variant = fast[0]
                if percentage_diff <= -variant.pct:
                    contributions.append(ScoreContribution(rule_id=rule_id, kind=variant.kind, points=variant.award))

            slow = grouped.get(SlowThreshold, [])
            if slow:
                rule_id, variant = slow[0]
                if percentage_diff >= variant.pct:
                    contributions.append(
                        ScoreContribution(rule_id=rule_id, kind=variant.kind, points=-variant.deduction)
                    )

        return ScoreBreakdown(
            duration=duration,
            star_rating=star_rating,
            client_id=client_id,
            percentage_diff=percentage_diff,
            contributions=contributions,
            total=sum(item.points for item in contributions),
        )

    def calculate_route_points(self, duration: int, star_rating: int, client_id: str) -> int:
        return self.breakdown(duration, star_rating, client_id).total

    def streak_rule(self) -> Optional[Tuple[str, Streak]]:
        for rule in rule_table.enabled_rules():
            variant = rule.variant()
            if isinstance(variant, Streak):
                return rule.id, variant
        return None

    def check_streak_bonus(self, messenger_id: str, today: Optional[date] = None) -> int:
        """Award the streak bonus when each of the last N local days has a qualifying stop."""
        found = self.streak_rule()
        if found is None:
            return 0
        _, streak = found

        today = today or local_today()
        history = route_history_service.get_route_history(RouteHistoryFilters(messenger_id=messenger_id))
        qualifying_days: Set[date] = {
            local_day(item.completed_at) for item in history if item.star_rating >= streak.min_stars
        }

        for offset in range(streak.days):
            if today - timedelta(days=offset) not in qualifying_days:
                return 0
        return streak.award


scoring_engine = ScoringEngine()
