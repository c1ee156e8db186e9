"""CRUD services for clients, messengers, vehicles, fuel tickets and media files."""
from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel

from logitrack.core.config import get_settings
from logitrack.core.logging import logger
from logitrack.models.fleet import (
    Client,
    ClientCreateRequest,
    ClientUpdateRequest,
    FuelTicket,
    FuelTicketCreateRequest,
    MaintenanceRecord,
    MaintenanceRecordCreate,
    MaintenanceSchedule,
    MediaEntityType,
    MediaFile,
    MediaFileCreateRequest,
    Messenger,
    MessengerCreateRequest,
    MessengerStatus,
    MessengerUpdateRequest,
    MessengerView,
    Vehicle,
    VehicleCreateRequest,
    VehicleUpdateRequest,
)
from logitrack.services.audit import audit_service
from logitrack.services.points_ledger import points_ledger
from logitrack.services.repository import CollectionRepository, new_id, utc_now
from logitrack.services.storage import CLIENTS, FUEL_TICKETS, MEDIA, MESSENGERS, VEHICLES


def _apply_patch(record: BaseModel, patch: BaseModel, actor: str):
    changes = patch.model_dump(exclude_unset=True)
    merged = {**record.model_dump(), **changes, "modified_by": actor, "modified_at": utc_now()}
    return type(record).model_validate(merged), changes


class ClientService:
    def __init__(self) -> None:
        self._repo = CollectionRepository(CLIENTS, "client")

    def list_clients(self) -> List[Client]:
        return [Client.model_validate(row) for row in self._repo.all()]

    def get_client(self, client_id: str) -> Client:
        return Client.model_validate(self._repo.get(client_id))

    def create_client(self, request: ClientCreateRequest, actor: str) -> Client:
        client = Client(id=new_id("client"), created_by=actor, created_at=utc_now(), **request.model_dump())
        self._repo.append(client.model_dump(mode="json"))
        audit_service.log_action("CREATE_CLIENT", f"Created client {client.location_name}", actor)
        return client

    def update_client(self, client_id: str, request: ClientUpdateRequest, actor: str) -> Client:
        updated, changes = _apply_patch(self.get_client(client_id), request, actor)
        self._repo.replace(updated.model_dump(mode="json"))
        audit_service.log_action(
            "UPDATE_CLIENT",
            f"Updated client {updated.location_name}",
            actor,
            metadata={"client_id": client_id, "fields": sorted(changes)},
        )
        return updated

    def delete_client(self, client_id: str, actor: str) -> Client:
        removed = Client.model_validate(self._repo.delete(client_id))
        audit_service.log_action("DELETE_CLIENT", f"Deleted client {removed.location_name}", actor)
        return removed


class MessengerService:
    def __init__(self) -> None:
        self._repo = CollectionRepository(MESSENGERS, "messenger")

    def _view(self, messenger: Messenger) -> MessengerView:
        return MessengerView(**messenger.model_dump(), points=points_ledger.messenger_total(messenger.id))

    def get_messenger(self, messenger_id: str) -> Messenger:
        return Messenger.model_validate(self._repo.get(messenger_id))

    def list_messengers(self) -> List[MessengerView]:
        totals = points_ledger.totals()
        return [
            MessengerView(**Messenger.model_validate(row).model_dump(), points=totals.get(row.get("id"), 0))
            for row in self._repo.all()
        ]

    def get_messenger_view(self, messenger_id: str) -> MessengerView:
        return self._view(self.get_messenger(messenger_id))

    def create_messenger(self, request: MessengerCreateRequest, actor: str) -> MessengerView:
        messenger = Messenger(id=new_id("messenger"), created_by=actor, created_at=utc_now(), **request.model_dump())
        self._repo.append(messenger.model_dump(mode="json"))
        audit_service.log_action("CREATE_MESSENGER", f"Created messenger {messenger.full_name}", actor)
        return self._view(messenger)

    def update_messenger(self, messenger_id: str, request: MessengerUpdateRequest, actor: str) -> MessengerView:
        updated, changes = _apply_patch(self.get_messenger(messenger_id), request, actor)
        self._repo.replace(updated.model_dump(mode="json"))
        audit_service.log_action(
            "UPDATE_MESSENGER",
            f"Updated messenger {updated.full_name}",
            actor,
            metadata={"messenger_id": messenger_id, "fields": sorted(changes)},
        )
        return self._view(updated)

    def set_status(self, messenger_id: str, status: MessengerStatus) -> Messenger:
        messenger = self.get_messenger(messenger_id)
        if messenger.status == status:
            return messenger
        updated = messenger.model_copy(update={"status": status})
        self._repo.replace(updated.model_dump(mode="json"))
        logger.info("Messenger status changed", messenger_id=messenger_id, status=status.value)
        return updated

    def delete_messenger(self, messenger_id: str, actor: str) -> Messenger:
        removed = Messenger.model_validate(self._repo.delete(messenger_id))
        audit_service.log_action("DELETE_MESSENGER", f"Deleted messenger {removed.full_name}", actor)
        return removed


class VehicleService:
    def __init__(self) -> None:
        self._repo = CollectionRepository(VEHICLES, "vehicle")

    def list_vehicles(self) -> List[Vehicle]:
        return [Vehicle.model_validate(row) for row in self._repo.all()]

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        return Vehicle.model_validate(self._repo.get(vehicle_id))

    def next_vehicle_code(self) -> str:
        prefix = get_settings().vehicle_code_prefix
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$", re.IGNORECASE)
        highest = 0
        for row in self._repo.all():
            match = pattern.match(str(row.get("code") or ""))
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}-{highest + 1}"

    def create_vehicle(self, request: VehicleCreateRequest, actor: str) -> Vehicle:
        code = (request.code or "").strip() or self.next_vehicle_code()
        if any(row.get("code") == code for row in self._repo.all()):
            raise ValueError(f"Vehicle code '{code}' already exists")

        payload = request.model_dump(exclude={"code", "maintenance_schedule"})
        schedule = [self._with_id(item) for item in request.maintenance_schedule]
        vehicle = Vehicle(
            id=new_id("vehicle"),
            code=code,
            created_by=actor,
            created_at=utc_now(),
            maintenance_schedule=schedule,
            **payload,
        )
        self._repo.append(vehicle.model_dump(mode="json"))
        audit_service.log_action("CREATE_VEHICLE", f"Created vehicle {code} ({vehicle.model})", actor)
        return vehicle

    def update_vehicle(self, vehicle_id: str, request: VehicleUpdateRequest, actor: str) -> Vehicle:
        updated, changes = _apply_patch(self.get_vehicle(vehicle_id), request, actor)
        self._repo.replace(updated.model_dump(mode="json"))
        audit_service.log_action(
            "UPDATE_VEHICLE",
            f"Updated vehicle {updated.code}",
            actor,
            metadata={"vehicle_id": vehicle_id, "fields": sorted(changes)},
        )
        return updated

    def delete_vehicle(self, vehicle_id: str, actor: str) -> Vehicle:
        removed = Vehicle.model_validate(self._repo.delete(vehicle_id))
        audit_service.log_action("DELETE_VEHICLE", f"Deleted vehicle {removed.code}", actor)
        return removed

    @staticmethod
    def _with_id(schedule: MaintenanceSchedule) -> MaintenanceSchedule:
        if schedule.id:
            return schedule
        return schedule.model_copy(update={"id": new_id("schedule")})

    def add_maintenance_record(self, vehicle_id: str, request: MaintenanceRecordCreate, actor: str) -> Vehicle:
        """Log a maintenance and move the matching schedule entry forward."""
        vehicle = self.get_vehicle(vehicle_id)
        record = MaintenanceRecord(id=new_id("maint"), **request.model_dump())

        schedule = []
        for entry in vehicle.maintenance_schedule:
            if entry.type == record.type:
                changes = {"last_maintenance_date": record.date}
                if record.mileage:
                    changes["last_maintenance_km"] = record.mileage
                entry = entry.model_copy(update=changes)
            schedule.append(entry)

        updated = vehicle.model_copy(
            update={
                "maintenance_log": [*vehicle.maintenance_log, record],
                "maintenance_schedule": schedule,
                "modified_by": actor,
                "modified_at": utc_now(),
            }
        )
        self._repo.replace(updated.model_dump(mode="json"))
        audit_service.log_action(
            "ADD_MAINTENANCE",
            f"Added maintenance {record.type} to vehicle {vehicle.code}",
            actor,
            metadata={"vehicle_id": vehicle_id, "record_id": record.id, "cost": record.cost},
        )
        return updated

    def update_maintenance_schedule(
        self,
        vehicle_id: str,
        schedule: List[MaintenanceSchedule],
        actor: str,
    ) -> Vehicle:
        vehicle = self.get_vehicle(vehicle_id)
        updated = vehicle.model_copy(
            update={
                "maintenance_schedule": [self._with_id(item) for item in schedule],
                "modified_by": actor,
                "modified_at": utc_now(),
            }
        )
        self._repo.replace(updated.model_dump(mode="json"))
        audit_service.log_action(
            "UPDATE_MAINTENANCE_SCHEDULE",
            f"Updated maintenance schedule for {vehicle.code}",
            actor,
        )
        return updated


class FuelService:
    def __init__(self) -> None:
        self._repo = CollectionRepository(FUEL_TICKETS, "fuel")

    def list_tickets(
        self,
        messenger_id: Optional[str] = None,
        vehicle_id: Optional[str] = None,
    ) -> List[FuelTicket]:
        tickets = [FuelTicket.model_validate(row) for row in self._repo.all()]
        if messenger_id:
            tickets = [ticket for ticket in tickets if ticket.messenger_id == messenger_id]
        if vehicle_id:
            tickets = [ticket for ticket in tickets if ticket.vehicle_id == vehicle_id]
        return sorted(tickets, key=lambda ticket: (ticket.date, ticket.time), reverse=True)

    def add_ticket(self, request: FuelTicketCreateRequest, actor: str) -> FuelTicket:
        messenger_service.get_messenger(request.messenger_id)
        vehicle = vehicle_service.get_vehicle(request.vehicle_id)
        ticket = FuelTicket(id=new_id("fuel"), created_by=actor, created_at=utc_now(), **request.model_dump())
        self._repo.append(ticket.model_dump(mode="json"))
        audit_service.log_action(
            "CREATE_FUEL_TICKET",
            f"Fuel ticket {ticket.invoice_number} for {vehicle.code}: {ticket.amount:.2f}",
            actor,
        )
        return ticket

    def delete_ticket(self, ticket_id: str, actor: str) -> FuelTicket:
        removed = FuelTicket.model_validate(self._repo.delete(ticket_id))
        audit_service.log_action("DELETE_FUEL_TICKET", f"Deleted fuel ticket {removed.invoice_number}", actor)
        return removed


class MediaService:
    def __init__(self) -> None:
        self._repo = CollectionRepository(MEDIA, "media")

    @staticmethod
    def _entity_name(entity_type: MediaEntityType, entity_id: str) -> str:
        if entity_type == MediaEntityType.VEHICLE:
            vehicle = vehicle_service.get_vehicle(entity_id)
            return f"{vehicle.code} - {vehicle.model}"
        if entity_type == MediaEntityType.MESSENGER:
            return messenger_service.get_messenger(entity_id).full_name
        return client_service.get_client(entity_id).location_name

    @staticmethod
    def _payload_size(file_url: str) -> int:
        if file_url.startswith("data:") and "," in file_url:
            encoded = file_url.split(",", 1)[1]
            return len(encoded) * 3 // 4
        return 0

    def list_media(
        self,
        entity_type: Optional[MediaEntityType] = None,
        entity_id: Optional[str] = None,
    ) -> List[MediaFile]:
        media = [MediaFile.model_validate(row) for row in self._repo.all()]
        if entity_type:
            media = [item for item in media if item.entity_type == entity_type]
        if entity_id:
            media = [item for item in media if item.entity_id == entity_id]
        return sorted(media, key=lambda item: item.uploaded_at, reverse=True)

    def upload_media(self, request: MediaFileCreateRequest, actor: str) -> MediaFile:
        size = self._payload_size(request.file_url)
        if size > get_settings().max_media_size:
            raise ValueError(f"File too large ({size} bytes)")

        entity_name = self._entity_name(request.entity_type, request.entity_id)
        media = MediaFile(
            id=new_id("media"),
            entity_name=entity_name,
            uploaded_by=actor,
            uploaded_at=utc_now(),
            **request.model_dump(),
        )
        self._repo.append(media.model_dump(mode="json"))
        audit_service.log_action(
            "UPLOAD_MEDIA",
            f"Uploaded {media.file_type.value} for {media.entity_type.value} {entity_name}",
            actor,
        )
        return media

    def delete_media(self, media_id: str, actor: str) -> MediaFile:
        removed = MediaFile.model_validate(self._repo.delete(media_id))
        audit_service.log_action("DELETE_MEDIA", f"Deleted media {removed.file_name}", actor)
        return removed


client_service = ClientService()
messenger_service = MessengerService()
vehicle_service = VehicleService()
fuel_service = FuelService()
media_service = MediaService()
