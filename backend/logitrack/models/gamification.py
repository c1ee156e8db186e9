"""Domain models for route scoring, streaks, point ledger and evaluations."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RuleType(str, Enum):
    """Rule families as edited by administrators."""

    TIME_BASED = "time_based"
    STAR_RATING = "star_rating"
    STREAK = "streak"
    VOLUME = "volume"
    CUSTOM = "custom"


# ==================== RULE VARIANTS ====================

class FastThreshold(BaseModel):
    """Award when a stop is at least `pct` percent faster than the client average."""

    kind: Literal["fast_threshold"] = "fast_threshold"
    pct: float
    award: int


class SlowThreshold(BaseModel):
    """Deduct when a stop is at least `pct` percent slower than the client average."""

    kind: Literal["slow_threshold"] = "slow_threshold"
    pct: float
    deduction: int


class StarExact(BaseModel):
    kind: Literal["star_exact"] = "star_exact"
    stars: int
    award: int
    deduction: int

    @property
    def net(self) -> int:
        return self.award - self.deduction


class Volume(BaseModel):
    kind: Literal["volume"] = "volume"
    flat: int


class Streak(BaseModel):
    kind: Literal["streak"] = "streak"
    days: int
    min_stars: int
    award: int


class Custom(BaseModel):
    """Informational rule; never scored automatically."""

    kind: Literal["custom"] = "custom"


RuleVariant = Union[FastThreshold, SlowThreshold, StarExact, Volume, Streak, Custom]

DEFAULT_STREAK_MIN_STARS = 4


class GamificationRule(BaseModel):
    """Persisted, administrator-editable scoring rule."""

    id: str
    name: str
    type: RuleType
    enabled: bool = True
    points_awarded: int = Field(default=0, ge=0)
    points_deducted: int = Field(default=0, ge=0)
    threshold: Optional[float] = Field(default=None, allow_inf_nan=False)
    min_stars: Optional[int] = Field(default=None, ge=1, le=5)
    description: str = ""

    def variant(self) -> RuleVariant:
        """Resolve the stored row into the variant the scoring engine evaluates."""
        threshold = self.threshold
        if self.type == RuleType.VOLUME:
            return Volume(flat=self.points_awarded)

        if self.type == RuleType.STAR_RATING:
            if threshold is None or not float(threshold).is_integer() or not 1 <= int(threshold) <= 5:
                return Custom()
            return StarExact(stars=int(threshold), award=self.points_awarded, deduction=self.points_deducted)

        if self.type == RuleType.TIME_BASED:
            if not threshold:
                return Custom()
            if threshold > 0:
                return FastThreshold(pct=float(threshold), award=self.points_awarded)
            return SlowThreshold(pct=abs(float(threshold)), deduction=self.points_deducted)

        if self.type == RuleType.STREAK:
            if not threshold or threshold < 1:
                return Custom()
            return Streak(
                days=int(threshold),
                min_stars=self.min_stars or DEFAULT_STREAK_MIN_STARS,
                award=self.points_awarded,
            )

        return Custom()


class GamificationRuleUpdate(BaseModel):
    """Patch fields for a rule."""

    name: Optional[str] = None
    enabled: Optional[bool] = None
    points_awarded: Optional[int] = Field(default=None, ge=0)
    points_deducted: Optional[int] = Field(default=None, ge=0)
    threshold: Optional[float] = Field(default=None, allow_inf_nan=False)
    min_stars: Optional[int] = Field(default=None, ge=1, le=5)
    description: Optional[str] = None


# ==================== ROUTE HISTORY & CLIENT STATS ====================

class RouteHistory(BaseModel):
    """One completed stop. Never modified after it is written."""

    id: str
    route_id: Optional[str] = None
    messenger_id: str
    messenger_name: str = "Unknown"
    vehicle_id: str = ""
    vehicle_code: str = "Unknown"
    client_id: str
    client_name: str = "Unknown"
    start_time: datetime
    end_time: datetime
    duration: int = Field(ge=0)
    star_rating: int = Field(ge=1, le=5)
    note: str = ""
    points_earned: int = 0
    completed_by: str = "system"
    completed_at: datetime = Field(default_factory=_utcnow)


class RouteHistoryFilters(BaseModel):
    messenger_id: Optional[str] = None
    client_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ClientRouteStats(BaseModel):
    client_id: str
    client_name: str = "Unknown"
    total_routes: int = Field(default=0, ge=0)
    average_duration: float = 0.0
    fastest_duration: float = 0.0
    slowest_duration: float = 0.0
    last_updated: datetime = Field(default_factory=_utcnow)


# ==================== SCORING ====================

class ScoreContribution(BaseModel):
    rule_id: str
    kind: str
    points: int


class ScoreBreakdown(BaseModel):
    """Per-rule explanation of a route point delta."""

    duration: int
    star_rating: int
    client_id: str
    percentage_diff: Optional[float] = None
    contributions: List[ScoreContribution] = Field(default_factory=list)
    total: int = 0


class ScorePreviewRequest(BaseModel):
    duration: int = Field(ge=0)
    star_rating: int = Field(default=0, ge=0, le=5)
    client_id: str


# ==================== POINT LEDGER ====================

class PointReason(str, Enum):
    ROUTE = "route"
    STREAK = "streak"
    ADJUSTMENT = "adjustment"


class PointGrant(BaseModel):
    """Append-only point event; a messenger's total is the sum of these."""

    id: str
    messenger_id: str
    points: int
    reason: PointReason
    route_id: Optional[str] = None
    history_ids: List[str] = Field(default_factory=list)
    description: str = ""
    granted_by: str = "system"
    granted_at: datetime = Field(default_factory=_utcnow)


class PointAdjustmentRequest(BaseModel):
    points: int
    description: str = Field(min_length=1)


class RankingEntry(BaseModel):
    rank: int
    messenger_id: str
    name: str
    status: str = "available"
    points: int = 0
    grants: int = 0


# ==================== EVALUATIONS ====================

class EvaluationCategory(str, Enum):
    PUNCTUALITY = "punctuality"
    CUSTOMER_SERVICE = "customer_service"
    VEHICLE_CARE = "vehicle_care"
    COMMUNICATION = "communication"
    PROFESSIONALISM = "professionalism"
    SAFETY = "safety"
    RELIABILITY = "reliability"
    PROBLEM_SOLVING = "problem_solving"


class EvaluationQuestion(BaseModel):
    id: str
    question: str
    category: EvaluationCategory
    rating: int = Field(ge=1, le=5)


class MessengerEvaluationCreate(BaseModel):
    messenger_id: str
    questions: List[EvaluationQuestion] = Field(min_length=1)
    notes: Optional[str] = None


class MessengerEvaluation(BaseModel):
    id: str
    messenger_id: str
    messenger_name: str = "Unknown"
    evaluated_by: str
    evaluated_at: datetime = Field(default_factory=_utcnow)
    questions: List[EvaluationQuestion]
    total_score: float
    notes: Optional[str] = None
