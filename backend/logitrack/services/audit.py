"""Append-only audit trail, newest entry first."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from logitrack.core.logging import logger
from logitrack.models.fleet import AuditLog
from logitrack.services.repository import CollectionRepository, new_id, utc_now
from logitrack.services.storage import AUDIT_LOGS


class AuditService:
    def __init__(self) -> None:
        self._repo = CollectionRepository(AUDIT_LOGS, "LOG")

    def log_action(
        self,
        action: str,
        details: str,
        user: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            id=new_id("LOG"),
            action=action,
            details=details,
            user=user or "system",
            timestamp=utc_now(),
            metadata=metadata or {},
        )
        self._repo.prepend(entry.model_dump(mode="json"))
        logger.info("Audit entry recorded", action=action, user=entry.user)
        return entry

    def list_logs(
        self,
        action: Optional[str] = None,
        user: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        logs = []
        for row in self._repo.all():
            if action and row.get("action") != action:
                continue
            if user and row.get("user") != user:
                continue
            logs.append(AuditLog.model_validate(row))
            if len(logs) >= limit:
                break
        return logs


audit_service = AuditService()
