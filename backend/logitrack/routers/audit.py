"""Audit log routes."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from logitrack.core.auth import ActorContext, require_roles
from logitrack.models.fleet import AuditLog
from logitrack.services.audit import audit_service

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=List[AuditLog])
def list_audit_logs(
    action: Optional[str] = Query(default=None),
    user: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    context: ActorContext = Depends(require_roles("admin")),
):
    return audit_service.list_logs(action=action, user=user, limit=limit)
