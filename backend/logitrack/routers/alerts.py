"""Active alert routes."""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from logitrack.core.auth import ActorContext, get_actor_context
from logitrack.models.fleet import Alert, AlertSeverity
from logitrack.services.alerts import alert_service

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=List[Alert])
def get_active_alerts(
    severity: Optional[AlertSeverity] = Query(default=None),
    today: Optional[date] = Query(default=None),
    context: ActorContext = Depends(get_actor_context),
):
    alerts = alert_service.get_active_alerts(today=today)
    if severity:
        alerts = [alert for alert in alerts if alert.severity == severity]
    return alerts
