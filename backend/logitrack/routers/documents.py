"""Corporate document routes."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.fleet import CorporateDocumentUpload, CorporateDocumentView, DocumentCategory
from logitrack.services.documents import corporate_document_service

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=List[CorporateDocumentView])
def list_documents(
    category: Optional[DocumentCategory] = Query(default=None),
    context: ActorContext = Depends(get_actor_context),
):
    return corporate_document_service.get_documents(category=category)


@router.get("/{parent_id}/history", response_model=List[CorporateDocumentView])
def document_history(parent_id: str, context: ActorContext = Depends(get_actor_context)):
    try:
        return corporate_document_service.get_document_history(parent_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Document family not found")


@router.post("", response_model=CorporateDocumentView)
def upload_document(
    request: CorporateDocumentUpload,
    context: ActorContext = Depends(require_roles("admin", "accounting", "hr")),
):
    try:
        return corporate_document_service.upload_document(request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Document family not found")
    except Exception as exc:
        logger.error("Failed to upload document", name=request.name, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))
