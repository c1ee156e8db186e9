"""Client CRUD routes."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.fleet import Client, ClientCreateRequest, ClientUpdateRequest
from logitrack.services.resources import client_service

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=List[Client])
def list_clients(context: ActorContext = Depends(get_actor_context)):
    return client_service.list_clients()


@router.get("/{client_id}", response_model=Client)
def get_client(client_id: str, context: ActorContext = Depends(get_actor_context)):
    try:
        return client_service.get_client(client_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Client not found")


@router.post("", response_model=Client)
def create_client(
    request: ClientCreateRequest,
    context: ActorContext = Depends(require_roles("admin", "dispatcher")),
):
    try:
        return client_service.create_client(request, actor=context.actor)
    except Exception as exc:
        logger.error("Failed to create client", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/{client_id}", response_model=Client)
def update_client(
    client_id: str,
    request: ClientUpdateRequest,
    context: ActorContext = Depends(require_roles("admin", "dispatcher")),
):
    try:
        return client_service.update_client(client_id, request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Client not found")
    except Exception as exc:
        logger.error("Failed to update client", client_id=client_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{client_id}", response_model=Client)
def delete_client(client_id: str, context: ActorContext = Depends(require_roles("admin"))):
    try:
        return client_service.delete_client(client_id, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Client not found")
