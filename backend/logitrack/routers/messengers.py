"""Messenger CRUD routes."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.fleet import MessengerCreateRequest, MessengerUpdateRequest, MessengerView
from logitrack.services.resources import messenger_service

router = APIRouter(prefix="/messengers", tags=["messengers"])


@router.get("", response_model=List[MessengerView])
def list_messengers(context: ActorContext = Depends(get_actor_context)):
    return messenger_service.list_messengers()


@router.get("/{messenger_id}", response_model=MessengerView)
def get_messenger(messenger_id: str, context: ActorContext = Depends(get_actor_context)):
    try:
        return messenger_service.get_messenger_view(messenger_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Messenger not found")


@router.post("", response_model=MessengerView)
def create_messenger(
    request: MessengerCreateRequest,
    context: ActorContext = Depends(require_roles("admin", "hr")),
):
    try:
        return messenger_service.create_messenger(request, actor=context.actor)
    except Exception as exc:
        logger.error("Failed to create messenger", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/{messenger_id}", response_model=MessengerView)
def update_messenger(
    messenger_id: str,
    request: MessengerUpdateRequest,
    context: ActorContext = Depends(require_roles("admin", "hr", "dispatcher")),
):
    try:
        return messenger_service.update_messenger(messenger_id, request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Messenger not found")
    except Exception as exc:
        logger.error("Failed to update messenger", messenger_id=messenger_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{messenger_id}")
def delete_messenger(messenger_id: str, context: ActorContext = Depends(require_roles("admin"))):
    try:
        removed = messenger_service.delete_messenger(messenger_id, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Messenger not found")
    return {"deleted": removed.id}
