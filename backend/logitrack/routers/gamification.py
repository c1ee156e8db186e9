"""Gamification routes: rule table, scoring preview, streaks, ledger, ranking and history."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.gamification import (
    ClientRouteStats,
    GamificationRule,
    GamificationRuleUpdate,
    PointAdjustmentRequest,
    PointGrant,
    PointReason,
    RankingEntry,
    RouteHistory,
    RouteHistoryFilters,
    ScoreBreakdown,
    ScorePreviewRequest,
)
from logitrack.services.points_ledger import points_ledger
from logitrack.services.resources import messenger_service
from logitrack.services.route_history import route_history_service
from logitrack.services.rules import rule_table
from logitrack.services.scoring import effective_star_rating, scoring_engine

router = APIRouter(prefix="/gamification", tags=["gamification"])


@router.get("/rules", response_model=List[GamificationRule])
def get_rules(context: ActorContext = Depends(get_actor_context)):
    return rule_table.get_rules()


@router.patch("/rules/{rule_id}", response_model=GamificationRule)
def update_rule(
    rule_id: str,
    request: GamificationRuleUpdate,
    context: ActorContext = Depends(require_roles("admin")),
):
    try:
        return rule_table.update_rule(rule_id, request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Rule not found")
    except Exception as exc:
        logger.error("Failed to update rule", rule_id=rule_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/rules/reset", response_model=List[GamificationRule])
def reset_rules(context: ActorContext = Depends(require_roles("admin"))):
    return rule_table.reset_to_default(actor=context.actor)


@router.post("/score", response_model=ScoreBreakdown)
def preview_score(request: ScorePreviewRequest, context: ActorContext = Depends(get_actor_context)):
    try:
        rating = effective_star_rating(request.star_rating)
        return scoring_engine.breakdown(request.duration, rating, request.client_id)
    except Exception as exc:
        logger.error("Failed to score route", client_id=request.client_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/streak/{messenger_id}")
def check_streak(
    messenger_id: str,
    today: Optional[date] = Query(default=None),
    context: ActorContext = Depends(get_actor_context),
):
    return {"messenger_id": messenger_id, "bonus": scoring_engine.check_streak_bonus(messenger_id, today=today)}


@router.get("/ranking", response_model=List[RankingEntry])
def get_ranking(context: ActorContext = Depends(get_actor_context)):
    return points_ledger.ranking()


@router.get("/ledger/{messenger_id}", response_model=List[PointGrant])
def get_ledger(messenger_id: str, context: ActorContext = Depends(get_actor_context)):
    return points_ledger.ledger(messenger_id)


@router.post("/ledger/{messenger_id}/adjust", response_model=PointGrant)
def adjust_points(
    messenger_id: str,
    request: PointAdjustmentRequest,
    context: ActorContext = Depends(require_roles("admin")),
):
    try:
        messenger_service.get_messenger(messenger_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Messenger not found")
    return points_ledger.grant_points(
        messenger_id,
        request.points,
        PointReason.ADJUSTMENT,
        description=request.description,
        granted_by=context.actor,
    )


@router.get("/history", response_model=List[RouteHistory])
def get_route_history(
    messenger_id: Optional[str] = Query(default=None),
    client_id: Optional[str] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    context: ActorContext = Depends(get_actor_context),
):
    filters = RouteHistoryFilters(
        messenger_id=messenger_id,
        client_id=client_id,
        start_date=start_date,
        end_date=end_date,
    )
    return route_history_service.get_route_history(filters)


@router.get("/client-stats", response_model=List[ClientRouteStats])
def list_client_stats(context: ActorContext = Depends(get_actor_context)):
    return route_history_service.list_client_route_stats()


@router.get("/client-stats/{client_id}", response_model=ClientRouteStats)
def get_client_stats(client_id: str, context: ActorContext = Depends(get_actor_context)):
    stats = route_history_service.get_client_route_stats(client_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="No statistics for client")
    return stats
