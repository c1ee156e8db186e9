"""Dispatch board: route cards, departure/arrival marks and route completion scoring."""
from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional

from logitrack.core.config import get_settings
from logitrack.core.logging import logger
from logitrack.models.fleet import (
    ActiveRoute,
    ActiveRouteCreateRequest,
    ActiveRouteUpdateRequest,
    ArrivalRequest,
    DispatchCard,
    MessengerStatus,
    RouteCompletionResult,
    RouteStatus,
    RouteStop,
)
from logitrack.models.gamification import PointReason, RouteHistory
from logitrack.services.audit import audit_service
from logitrack.services.points_ledger import points_ledger
from logitrack.services.repository import CollectionRepository, new_id, utc_now
from logitrack.services.resources import client_service, messenger_service, vehicle_service
from logitrack.services.route_history import as_utc, route_history_service
from logitrack.services.scoring import effective_star_rating, local_day, scoring_engine
from logitrack.services.storage import ROUTES


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_chronometer(total_seconds: int) -> str:
    hours, remainder = divmod(max(total_seconds, 0), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class DispatchBoard:
    """Route cards from creation to completion."""

    CLOSED_STATUSES = {RouteStatus.COMPLETED, RouteStatus.CANCELLED}

    def __init__(self) -> None:
        self._repo = CollectionRepository(ROUTES, "route")

    def _get(self, route_id: str) -> ActiveRoute:
        return ActiveRoute.model_validate(self._repo.get(route_id))

    def _save(self, route: ActiveRoute) -> ActiveRoute:
        self._repo.replace(route.model_dump(mode="json"))
        return route

    def _validate_stops(self, stops: List[RouteStop]) -> List[RouteStop]:
        limit = get_settings().max_stops_per_route
        if len(stops) > limit:
            raise ValueError(f"A route cannot have more than {limit} stops")
        return [stop if stop.id else stop.model_copy(update={"id": new_id("stop")}) for stop in stops]

    def _ensure_messenger_free(self, messenger_id: str, route_id: Optional[str] = None) -> None:
        for row in self._repo.all():
            if row.get("id") == route_id:
                continue
            if row.get("messenger_id") == messenger_id and row.get("status") == RouteStatus.ACTIVE.value:
                raise ValueError(f"Messenger '{messenger_id}' is already on a running route")

    @staticmethod
    def _messenger_name(messenger_id: str) -> str:
        try:
            return messenger_service.get_messenger(messenger_id).full_name
        except KeyError:
            return "Unknown"

    @staticmethod
    def _vehicle_code(vehicle_id: str) -> str:
        try:
            return vehicle_service.get_vehicle(vehicle_id).code
        except KeyError:
            return "Unknown"

    @staticmethod
    def _client_name(client_id: str) -> str:
        try:
            return client_service.get_client(client_id).location_name
        except KeyError:
            return "Unknown"

    def _card(self, route: ActiveRoute, now: Optional[datetime] = None) -> DispatchCard:
        elapsed = 0
        if route.departure_time:
            end = route.arrival_time or (now or utc_now())
            if route.status != RouteStatus.ACTIVE and not route.arrival_time:
                end = route.departure_time
            elapsed = int((as_utc(end) - as_utc(route.departure_time)).total_seconds())
        return DispatchCard(
            **route.model_dump(),
            messenger_name=self._messenger_name(route.messenger_id),
            vehicle_code=self._vehicle_code(route.vehicle_id),
            elapsed_seconds=max(elapsed, 0),
            chronometer=format_chronometer(elapsed),
        )

    def board(self, status: Optional[RouteStatus] = None, now: Optional[datetime] = None) -> List[DispatchCard]:
        routes = [ActiveRoute.model_validate(row) for row in self._repo.all()]
        if status:
            routes = [route for route in routes if route.status == status]
        return [self._card(route, now=now) for route in routes]

    def get_card(self, route_id: str, now: Optional[datetime] = None) -> DispatchCard:
        return self._card(self._get(route_id), now=now)

    def create_route(self, request: ActiveRouteCreateRequest, actor: str) -> DispatchCard:
        messenger_service.get_messenger(request.messenger_id)
        vehicle_service.get_vehicle(request.vehicle_id)
        self._ensure_messenger_free(request.messenger_id)

        route = ActiveRoute(
            id=new_id("route"),
            messenger_id=request.messenger_id,
            vehicle_id=request.vehicle_id,
            stops=self._validate_stops(request.stops),
            note=request.note,
            created_by=actor,
            created_at=utc_now(),
        )
        self._repo.append(route.model_dump(mode="json"))
        audit_service.log_action(
            "CREATE_ROUTE",
            f"Created route for {self._messenger_name(route.messenger_id)} with {len(route.stops)} stops",
            actor,
            metadata={"route_id": route.id},
        )
        return self._card(route)

    def update_route(self, route_id: str, request: ActiveRouteUpdateRequest, actor: str) -> DispatchCard:
        route = self._get(route_id)
        if route.status in self.CLOSED_STATUSES:
            raise ValueError(f"Route '{route_id}' is {route.status.value} and cannot be edited")

        changes = request.model_dump(exclude_unset=True)
        if "messenger_id" in changes and changes["messenger_id"] != route.messenger_id:
            if route.status == RouteStatus.ACTIVE:
                raise ValueError("Cannot change the messenger of a running route")
            messenger_service.get_messenger(changes["messenger_id"])
            self._ensure_messenger_free(changes["messenger_id"], route_id=route_id)
        if "vehicle_id" in changes:
            vehicle_service.get_vehicle(changes["vehicle_id"])
        if request.stops is not None:
            changes["stops"] = self._validate_stops(request.stops)

        updated = route.model_copy(update={**changes, "modified_by": actor, "modified_at": utc_now()})
        self._save(updated)
        audit_service.log_action(
            "UPDATE_ROUTE",
            f"Updated route {route_id}",
            actor,
            metadata={"route_id": route_id, "fields": sorted(changes)},
        )
        return self._card(updated)

    def mark_departure(self, route_id: str, actor: str, at: Optional[datetime] = None) -> DispatchCard:
        route = self._get(route_id)
        if route.status != RouteStatus.PENDING:
            raise ValueError(f"Route '{route_id}' is {route.status.value}; only pending routes can depart")
        if not route.messenger_id or not route.vehicle_id:
            raise ValueError("A route needs a messenger and a vehicle before departure")
        self._ensure_messenger_free(route.messenger_id, route_id=route_id)

        departed = route.model_copy(
            update={
                "departure_time": as_utc(at or utc_now()),
                "status": RouteStatus.ACTIVE,
                "modified_by": actor,
                "modified_at": utc_now(),
            }
        )
        self._save(departed)
        messenger_service.set_status(route.messenger_id, MessengerStatus.BUSY)
        audit_service.log_action("ROUTE_DEPARTURE", f"Route {route_id} departed", actor, metadata={"route_id": route_id})
        logger.info("Route departed", route_id=route_id, messenger_id=route.messenger_id)
        return self._card(departed)

    def mark_arrival(self, route_id: str, request: ArrivalRequest, actor: str) -> RouteCompletionResult:
        """Close a running route, score each client stop and grant the points."""
        route = self._get(route_id)
        if route.status != RouteStatus.ACTIVE or route.departure_time is None:
            raise ValueError(f"Route '{route_id}' has not departed")
        if not route.stops:
            raise ValueError(f"Route '{route_id}' has no stops")

        arrival = as_utc(request.at or utc_now())
        departure = as_utc(route.departure_time)
        if arrival < departure:
            raise ValueError("Arrival cannot be earlier than departure")

        requested_rating = request.star_rating if request.star_rating is not None else route.star_rating
        rating = effective_star_rating(requested_rating)
        note = request.note if request.note is not None else route.note
        duration = round_half_up((arrival - departure).total_seconds() / 60)
        time_per_stop = round_half_up(duration / len(route.stops))

        messenger_name = self._messenger_name(route.messenger_id)
        vehicle_code = self._vehicle_code(route.vehicle_id)
        history_ids: List[str] = []
        route_points = 0
        for stop in route.stops:
            if not stop.client_id:
                continue
            points = scoring_engine.calculate_route_points(time_per_stop, rating, stop.client_id)
            record = route_history_service.save_route_history(
                RouteHistory(
                    id=new_id("history"),
                    route_id=route.id,
                    messenger_id=route.messenger_id,
                    messenger_name=messenger_name,
                    vehicle_id=route.vehicle_id,
                    vehicle_code=vehicle_code,
                    client_id=stop.client_id,
                    client_name=self._client_name(stop.client_id),
                    start_time=departure,
                    end_time=arrival,
                    duration=time_per_stop,
                    star_rating=rating,
                    note=note,
                    points_earned=points,
                    completed_by=actor,
                    completed_at=arrival,
                )
            )
            history_ids.append(record.id)
            route_points += points

        if history_ids:
            points_ledger.grant_points(
                route.messenger_id,
                route_points,
                PointReason.ROUTE,
                route_id=route.id,
                history_ids=history_ids,
                description=f"{len(history_ids)} stops, {time_per_stop} min each, {rating} stars",
                granted_by=actor,
                granted_at=arrival,
            )

        streak_bonus = 0
        today = local_day(arrival)
        bonus = scoring_engine.check_streak_bonus(route.messenger_id, today=today)
        if bonus > 0 and not points_ledger.has_grant_on(route.messenger_id, PointReason.STREAK, today):
            points_ledger.grant_points(
                route.messenger_id,
                bonus,
                PointReason.STREAK,
                route_id=route.id,
                description="Streak bonus",
                granted_by=actor,
                granted_at=arrival,
            )
            streak_bonus = bonus

        total_points = route_points + streak_bonus
        completed = route.model_copy(
            update={
                "arrival_time": arrival,
                "star_rating": rating,
                "note": note,
                "status": RouteStatus.COMPLETED,
                "points_awarded": total_points,
                "modified_by": actor,
                "modified_at": utc_now(),
            }
        )
        self._save(completed)
        try:
            messenger_service.set_status(route.messenger_id, MessengerStatus.AVAILABLE)
        except KeyError:
            logger.warning("Completed route references a missing messenger", messenger_id=route.messenger_id)

        audit_service.log_action(
            "COMPLETE_ROUTE",
            f"Route {route_id} completed by {messenger_name}: {total_points} points",
            actor,
            metadata={"route_id": route_id, "duration": duration, "history_ids": history_ids},
        )
        logger.info(
            "Route completed",
            route_id=route_id,
            messenger_id=route.messenger_id,
            duration=duration,
            points=route_points,
            streak_bonus=streak_bonus,
        )
        return RouteCompletionResult(
            route_id=route_id,
            messenger_id=route.messenger_id,
            duration=duration,
            star_rating=rating,
            time_per_stop=time_per_stop,
            history_ids=history_ids,
            route_points=route_points,
            streak_bonus=streak_bonus,
            total_points=total_points,
            messenger_total=points_ledger.messenger_total(route.messenger_id),
        )

    def cancel_route(self, route_id: str, actor: str) -> DispatchCard:
        route = self._get(route_id)
        if route.status in self.CLOSED_STATUSES:
            raise ValueError(f"Route '{route_id}' is already {route.status.value}")
        cancelled = route.model_copy(
            update={"status": RouteStatus.CANCELLED, "modified_by": actor, "modified_at": utc_now()}
        )
        self._save(cancelled)
        if route.status == RouteStatus.ACTIVE:
            messenger_service.set_status(route.messenger_id, MessengerStatus.AVAILABLE)
        audit_service.log_action("CANCEL_ROUTE", f"Cancelled route {route_id}", actor, metadata={"route_id": route_id})
        return self._card(cancelled)

    def remove_route(self, route_id: str, actor: str) -> ActiveRoute:
        route = self._get(route_id)
        if route.status == RouteStatus.ACTIVE:
            raise ValueError("Cancel a running route before removing it")
        self._repo.delete(route_id)
        audit_service.log_action("DELETE_ROUTE", f"Removed route {route_id}", actor, metadata={"route_id": route_id})
        return route


dispatch_board = DispatchBoard()
