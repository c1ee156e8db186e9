"""Media file routes for vehicle, messenger and client attachments."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.fleet import MediaEntityType, MediaFile, MediaFileCreateRequest
from logitrack.services.resources import media_service

router = APIRouter(prefix="/media", tags=["media"])


@router.get("", response_model=List[MediaFile])
def list_media(
    entity_type: Optional[MediaEntityType] = Query(default=None),
    entity_id: Optional[str] = Query(default=None),
    context: ActorContext = Depends(get_actor_context),
):
    return media_service.list_media(entity_type=entity_type, entity_id=entity_id)


@router.post("", response_model=MediaFile)
def upload_media(request: MediaFileCreateRequest, context: ActorContext = Depends(get_actor_context)):
    try:
        return media_service.upload_media(request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"{request.entity_type.value.capitalize()} not found")
    except Exception as exc:
        logger.error("Failed to upload media", entity_id=request.entity_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{media_id}", response_model=MediaFile)
def delete_media(media_id: str, context: ActorContext = Depends(require_roles("admin", "dispatcher"))):
    try:
        return media_service.delete_media(media_id, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Media not found")
