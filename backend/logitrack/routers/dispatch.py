"""Dispatch board routes: route cards, departure and arrival marks."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.fleet import (
    ActiveRoute,
    ActiveRouteCreateRequest,
    ActiveRouteUpdateRequest,
    ArrivalRequest,
    DepartureRequest,
    DispatchCard,
    RouteCompletionResult,
    RouteStatus,
)
from logitrack.services.dispatch import dispatch_board

router = APIRouter(prefix="/dispatch", tags=["dispatch"])


@router.get("/board", response_model=List[DispatchCard])
def get_dispatch_board(
    status: Optional[RouteStatus] = Query(default=None),
    context: ActorContext = Depends(get_actor_context),
):
    return dispatch_board.board(status=status)


@router.post("/routes", response_model=DispatchCard)
def create_route(
    request: ActiveRouteCreateRequest,
    context: ActorContext = Depends(require_roles("dispatcher", "admin")),
):
    try:
        return dispatch_board.create_route(request, actor=context.actor)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown reference {exc}")
    except Exception as exc:
        logger.error("Failed to create route", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/routes/{route_id}", response_model=DispatchCard)
def get_route(route_id: str, context: ActorContext = Depends(get_actor_context)):
    try:
        return dispatch_board.get_card(route_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Route not found")


@router.patch("/routes/{route_id}", response_model=DispatchCard)
def update_route(
    route_id: str,
    request: ActiveRouteUpdateRequest,
    context: ActorContext = Depends(require_roles("dispatcher", "admin")),
):
    try:
        return dispatch_board.update_route(route_id, request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Route not found")
    except Exception as exc:
        logger.error("Failed to update route", route_id=route_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/routes/{route_id}/depart", response_model=DispatchCard)
def mark_departure(
    route_id: str,
    request: Optional[DepartureRequest] = None,
    context: ActorContext = Depends(require_roles("dispatcher", "admin")),
):
    try:
        return dispatch_board.mark_departure(route_id, actor=context.actor, at=request.at if request else None)
    except KeyError:
        raise HTTPException(status_code=404, detail="Route not found")
    except Exception as exc:
        logger.error("Failed to mark departure", route_id=route_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/routes/{route_id}/arrive", response_model=RouteCompletionResult)
def mark_arrival(
    route_id: str,
    request: Optional[ArrivalRequest] = None,
    context: ActorContext = Depends(require_roles("dispatcher", "admin")),
):
    try:
        return dispatch_board.mark_arrival(route_id, request or ArrivalRequest(), actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Route not found")
    except Exception as exc:
        logger.error("Failed to mark arrival", route_id=route_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/routes/{route_id}/cancel", response_model=DispatchCard)
def cancel_route(route_id: str, context: ActorContext = Depends(require_roles("dispatcher", "admin"))):
    try:
        return dispatch_board.cancel_route(route_id, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Route not found")
    except Exception as exc:
        logger.error("Failed to cancel route", route_id=route_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/routes/{route_id}", response_model=ActiveRoute)
def remove_route(route_id: str, context: ActorContext = Depends(require_roles("dispatcher", "admin"))):
    try:
        return dispatch_board.remove_route(route_id, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Route not found")
    except Exception as exc:
        logger.error("Failed to remove route", route_id=route_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))
