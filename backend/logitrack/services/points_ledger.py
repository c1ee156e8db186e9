"""Append-only point ledger and the leaderboard folded from it."""
from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional

from logitrack.core.logging import logger
from logitrack.models.gamification import PointGrant, PointReason, RankingEntry
from logitrack.services.repository import CollectionRepository, new_id, utc_now
from logitrack.services.scoring import local_day
from logitrack.services.storage import MESSENGERS, POINT_LEDGER


class PointsLedger:
    """Point totals are never stored; they are summed from grants on read."""

    def __init__(self) -> None:
        self._grants = CollectionRepository(POINT_LEDGER, "grant")
        self._messengers = CollectionRepository(MESSENGERS, "messenger")

    def _all_grants(self) -> List[PointGrant]:
        return [PointGrant.model_validate(row) for row in self._grants.all()]

    def grant_points(
        self,
        messenger_id: str,
        points: int,
        reason: PointReason,
        *,
        route_id: Optional[str] = None,
        history_ids: Optional[List[str]] = None,
        description: str = "",
        granted_by: str = "system",
        granted_at: Optional[datetime] = None,
    ) -> PointGrant:
        grant = PointGrant(
            id=new_id("grant"),
            messenger_id=messenger_id,
            points=points,
            reason=reason,
            route_id=route_id,
            history_ids=history_ids or [],
            description=description,
            granted_by=granted_by,
            granted_at=granted_at or utc_now(),
        )
        self._grants.append(grant.model_dump(mode="json"))
        logger.info(
            "Points granted",
            messenger_id=messenger_id,
            points=points,
            reason=reason.value,
            route_id=route_id,
        )
        return grant

    def ledger(self, messenger_id: str) -> List[PointGrant]:
        grants = [grant for grant in self._all_grants() if grant.messenger_id == messenger_id]
        return sorted(grants, key=lambda grant: grant.granted_at, reverse=True)

    def messenger_total(self, messenger_id: str) -> int:
        return sum(grant.points for grant in self._all_grants() if grant.messenger_id == messenger_id)

    def totals(self) -> Dict[str, int]:
        totals: Dict[str, int] = defaultdict(int)
        for grant in self._all_grants():
            totals[grant.messenger_id] += grant.points
        return dict(totals)

    def has_grant_on(self, messenger_id: str, reason: PointReason, day: date) -> bool:
        return any(
            grant.messenger_id == messenger_id and grant.reason == reason and local_day(grant.granted_at) == day
            for grant in self._all_grants()
        )

    def ranking(self) -> List[RankingEntry]:
        totals: Dict[str, int] = defaultdict(int)
        counts: Dict[str, int] = defaultdict(int)
        for grant in self._all_grants():
            totals[grant.messenger_id] += grant.points
            counts[grant.messenger_id] += 1

        rows = []
        for messenger in self._messengers.all():
            messenger_id = messenger.get("id")
            name = f"{messenger.get('first_name', '')} {messenger.get('last_name', '')}".strip()
            rows.append((messenger_id, name or messenger_id, messenger.get("status", "available")))

        rows.sort(key=lambda row: (-totals.get(row[0], 0), row[1].lower()))
        return [
            RankingEntry(
                rank=position,
                messenger_id=messenger_id,
                name=name,
                status=status,
                points=totals.get(messenger_id, 0),
                grants=counts.get(messenger_id, 0),
            )
            for position, (messenger_id, name, status) in enumerate(rows, start=1)
        ]


points_ledger = PointsLedger()
