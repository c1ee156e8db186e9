"""Route-history report routes."""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from logitrack.core.auth import ActorContext, get_actor_context
from logitrack.core.logging import logger
from logitrack.models.reports import ExportFormat, ReportFilters, ReportSummary
from logitrack.services.reports import report_service

router = APIRouter(prefix="/reports", tags=["reports"])


def _filters(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    messenger_id: Optional[str] = Query(default=None),
    client_id: Optional[str] = Query(default=None),
) -> ReportFilters:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    return ReportFilters(start_date=start_date, end_date=end_date, messenger_id=messenger_id, client_id=client_id)


@router.get("/summary", response_model=ReportSummary)
def report_summary(
    filters: ReportFilters = Depends(_filters),
    context: ActorContext = Depends(get_actor_context),
):
    return report_service.summary(filters)


@router.get("/export")
def export_report(
    format: ExportFormat = Query(default=ExportFormat.CSV),
    filters: ReportFilters = Depends(_filters),
    context: ActorContext = Depends(get_actor_context),
):
    try:
        payload, media_type, filename = report_service.export(filters, format)
    except Exception as exc:
        logger.error("Failed to export report", format=format.value, error=str(exc))
        raise HTTPException(status_code=500, detail=str(exc))
    return Response(
        content=payload,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
