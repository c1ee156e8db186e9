"""Report payloads derived from route history."""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"


class ReportFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    messenger_id: Optional[str] = None
    client_id: Optional[str] = None


class MessengerReportStats(BaseModel):
    messenger_id: str
    messenger_name: str
    deliveries: int
    average_duration: float
    points: int


class ClientVisits(BaseModel):
    client_id: str
    client_name: str
    visits: int


class DailyCount(BaseModel):
    day: date
    routes: int


class ReportSummary(BaseModel):
    filters: ReportFilters
    total_routes: int = 0
    average_duration: float = 0.0
    messenger_stats: List[MessengerReportStats] = Field(default_factory=list)
    top_clients: List[ClientVisits] = Field(default_factory=list)
    duration_distribution: Dict[str, int] = Field(default_factory=dict)
    daily_counts: List[DailyCount] = Field(default_factory=list)
