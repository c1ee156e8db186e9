"""Completed-stop history and the per-client duration aggregates derived from it."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from logitrack.core.logging import logger
from logitrack.models.gamification import ClientRouteStats, RouteHistory, RouteHistoryFilters
from logitrack.services.repository import CollectionRepository, new_id, utc_now
from logitrack.services.storage import CLIENT_ROUTE_STATS, ROUTE_HISTORY


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RouteHistoryService:
    """Append-only route records plus running client statistics."""

    def __init__(self) -> None:
        self._history = CollectionRepository(ROUTE_HISTORY, "history")
        self._stats = CollectionRepository(CLIENT_ROUTE_STATS, "stats")

    def save_route_history(self, record: RouteHistory) -> RouteHistory:
        """Persist a completed stop and fold its duration into the client's stats.

        History rows are never rewritten; a caller-supplied id that already
        exists is rejected.
        """
        if not record.id:
            record = record.model_copy(update={"id": new_id("history")})
        elif self._history.find(record.id) is not None:
            raise ValueError(f"Route history '{record.id}' already exists")

        self._history.append(record.model_dump(mode="json"))
        self.update_client_route_stats(record.client_id, record.duration, client_name=record.client_name)
        logger.info(
            "Route history saved",
            history_id=record.id,
            messenger_id=record.messenger_id,
            client_id=record.client_id,
            duration=record.duration,
        )
        return record

    def get_route_history(self, filters: Optional[RouteHistoryFilters] = None) -> List[RouteHistory]:
        records = [RouteHistory.model_validate(row) for row in self._history.all()]
        if filters:
            if filters.messenger_id:
                records = [item for item in records if item.messenger_id == filters.messenger_id]
            if filters.client_id:
                records = [item for item in records if item.client_id == filters.client_id]
            if filters.start_date:
                start = as_utc(filters.start_date)
                records = [item for item in records if as_utc(item.start_time) >= start]
            if filters.end_date:
                end = as_utc(filters.end_date)
                records = [item for item in records if as_utc(item.end_time) <= end]
        return sorted(records, key=lambda item: as_utc(item.completed_at), reverse=True)

    def get_client_route_stats(self, client_id: str) -> Optional[ClientRouteStats]:
        for row in self._stats.all():
            if row.get("client_id") == client_id:
                return ClientRouteStats.model_validate(row)
        return None

    def list_client_route_stats(self) -> List[ClientRouteStats]:
        return [ClientRouteStats.model_validate(row) for row in self._stats.all()]

    def update_client_route_stats(
        self,
        client_id: str,
        new_duration: float,
        client_name: Optional[str] = None,
    ) -> ClientRouteStats:
        if new_duration < 0:
            raise ValueError("Duration cannot be negative")

        rows = self._stats.all()
        for index, row in enumerate(rows):
            if row.get("client_id") != client_id:
                continue
            current = ClientRouteStats.model_validate(row)
            count = current.total_routes
            updated = current.model_copy(
                update={
                    "client_name": client_name or current.client_name,
                    "total_routes": count + 1,
                    "average_duration": (current.average_duration * count + new_duration) / (count + 1),
                    "fastest_duration": min(current.fastest_duration, new_duration),
                    "slowest_duration": max(current.slowest_duration, new_duration),
                    "last_updated": utc_now(),
                }
            )
            rows[index] = updated.model_dump(mode="json")
            self._stats.save_all(rows)
            return updated

        created = ClientRouteStats(
            client_id=client_id,
            client_name=client_name or "Unknown",
            total_routes=1,
            average_duration=float(new_duration),
            fastest_duration=float(new_duration),
            slowest_duration=float(new_duration),
            last_updated=utc_now(),
        )
        rows.append(created.model_dump(mode="json"))
        self._stats.save_all(rows)
        return created


route_history_service = RouteHistoryService()
