"""Fuel ticket routes."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.fleet import FuelTicket, FuelTicketCreateRequest
from logitrack.services.resources import fuel_service

router = APIRouter(prefix="/fuel", tags=["fuel"])


@router.get("", response_model=List[FuelTicket])
def list_fuel_tickets(
    messenger_id: Optional[str] = Query(default=None),
    vehicle_id: Optional[str] = Query(default=None),
    context: ActorContext = Depends(get_actor_context),
):
    return fuel_service.list_tickets(messenger_id=messenger_id, vehicle_id=vehicle_id)


@router.post("", response_model=FuelTicket)
def add_fuel_ticket(
    request: FuelTicketCreateRequest,
    context: ActorContext = Depends(require_roles("admin", "cashier", "accounting")),
):
    try:
        return fuel_service.add_ticket(request, actor=context.actor)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown reference {exc}")
    except Exception as exc:
        logger.error("Failed to add fuel ticket", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{ticket_id}", response_model=FuelTicket)
def delete_fuel_ticket(ticket_id: str, context: ActorContext = Depends(require_roles("admin", "accounting"))):
    try:
        return fuel_service.delete_ticket(ticket_id, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Fuel ticket not found")
