"""Domain models for fleet resources, dispatch cards, documents, alerts and audit."""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditedRecord(BaseModel):
    """Bookkeeping fields shared by every mutable resource."""

    id: str
    created_by: str = "system"
    created_at: datetime = Field(default_factory=_utcnow)
    modified_by: Optional[str] = None
    modified_at: Optional[datetime] = None


# ==================== CLIENTS ====================

class ClientType(str, Enum):
    FISICA = "fisica"
    JURIDICA = "juridica"


class ClientBase(BaseModel):
    type: ClientType = ClientType.FISICA
    location_name: str = Field(min_length=1)
    full_name: str = ""
    dob: Optional[date] = None
    foundation_date: Optional[date] = None
    cedula: Optional[str] = None
    rnc: Optional[str] = None
    address: Optional[str] = None
    latitude: float = 0.0
    longitude: float = 0.0
    annual_visits: int = Field(default=0, ge=0)
    photo_url: Optional[str] = None
    document_url: Optional[str] = None


class ClientCreateRequest(ClientBase):
    pass


class ClientUpdateRequest(BaseModel):
    type: Optional[ClientType] = None
    location_name: Optional[str] = Field(default=None, min_length=1)
    full_name: Optional[str] = None
    dob: Optional[date] = None
    foundation_date: Optional[date] = None
    cedula: Optional[str] = None
    rnc: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    annual_visits: Optional[int] = Field(default=None, ge=0)
    photo_url: Optional[str] = None
    document_url: Optional[str] = None


class Client(AuditedRecord, ClientBase):
    pass


# ==================== MESSENGERS ====================

class MessengerStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"


class MessengerBase(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = ""
    cedula: str = ""
    dob: Optional[date] = None
    license_expiry: Optional[date] = None
    phone: str = ""
    address: str = ""
    assigned_vehicles: List[str] = Field(default_factory=list)
    photo_url: Optional[str] = None
    license_photo_url: Optional[str] = None


class MessengerCreateRequest(MessengerBase):
    pass


class MessengerUpdateRequest(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = None
    cedula: Optional[str] = None
    dob: Optional[date] = None
    license_expiry: Optional[date] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    assigned_vehicles: Optional[List[str]] = None
    status: Optional[MessengerStatus] = None
    photo_url: Optional[str] = None
    license_photo_url: Optional[str] = None


class Messenger(AuditedRecord, MessengerBase):
    status: MessengerStatus = MessengerStatus.AVAILABLE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class MessengerView(Messenger):
    """Messenger as returned by the API, with its ledger total folded in."""

    points: int = 0


# ==================== VEHICLES ====================

class VehicleType(str, Enum):
    MOTOR = "Motor"
    CARRO = "Carro"
    CAMION = "Camión"
    FURGONETA = "Furgoneta"
    AUTOBUS = "Autobús"
    OTRO = "Otro"


class VehicleStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"


class MaintenanceSchedule(BaseModel):
    id: Optional[str] = None
    type: str = Field(min_length=1)
    frequency_km: Optional[int] = Field(default=None, ge=0)
    frequency_months: Optional[int] = Field(default=None, ge=0)
    last_maintenance_date: Optional[date] = None
    last_maintenance_km: Optional[int] = Field(default=None, ge=0)


class MaintenanceRecordCreate(BaseModel):
    date: date
    type: str = Field(min_length=1)
    description: str = ""
    cost: float = Field(default=0.0, ge=0)
    mileage: Optional[int] = Field(default=None, ge=0)
    performed_by: str = ""
    invoice_number: Optional[str] = None
    notes: Optional[str] = None


class MaintenanceRecord(MaintenanceRecordCreate):
    id: str


class VehicleBase(BaseModel):
    model: str = Field(min_length=1)
    type: VehicleType = VehicleType.MOTOR
    chassis_number: Optional[str] = None
    insurance_expiry: Optional[date] = None
    status: VehicleStatus = VehicleStatus.ACTIVE
    photo_url: Optional[str] = None
    registration_url: Optional[str] = None


class VehicleCreateRequest(VehicleBase):
    code: Optional[str] = None
    maintenance_schedule: List[MaintenanceSchedule] = Field(default_factory=list)


class VehicleUpdateRequest(BaseModel):
    model: Optional[str] = Field(default=None, min_length=1)
    type: Optional[VehicleType] = None
    chassis_number: Optional[str] = None
    insurance_expiry: Optional[date] = None
    status: Optional[VehicleStatus] = None
    photo_url: Optional[str] = None
    registration_url: Optional[str] = None


class Vehicle(AuditedRecord, VehicleBase):
    code: str
    maintenance_schedule: List[MaintenanceSchedule] = Field(default_factory=list)
    maintenance_log: List[MaintenanceRecord] = Field(default_factory=list)


# ==================== FUEL & MEDIA ====================

class FuelTicketCreateRequest(BaseModel):
    date: date
    time: str = ""
    invoice_number: str = Field(min_length=1)
    amount: float = Field(gt=0)
    messenger_id: str
    vehicle_id: str
    order_image_url: Optional[str] = None
    invoice_image_url: Optional[str] = None


class FuelTicket(AuditedRecord, FuelTicketCreateRequest):
    pass


class MediaFileType(str, Enum):
    REGISTRATION = "registration"
    INSURANCE = "insurance"
    LICENSE = "license"
    OTHER = "other"


class MediaEntityType(str, Enum):
    VEHICLE = "vehicle"
    MESSENGER = "messenger"
    CLIENT = "client"


class MediaFileCreateRequest(BaseModel):
    file_name: str = Field(min_length=1)
    file_url: str = Field(min_length=1)
    file_type: MediaFileType = MediaFileType.OTHER
    entity_type: MediaEntityType
    entity_id: str


class MediaFile(MediaFileCreateRequest):
    id: str
    entity_name: str = "Unknown"
    uploaded_by: str = "system"
    uploaded_at: datetime = Field(default_factory=_utcnow)


# ==================== DISPATCH ====================

class StopType(str, Enum):
    CLIENT = "client"
    STOP = "stop"


class RouteStatus(str, Enum):
    """Lifecycle status for a dispatch card."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RouteStop(BaseModel):
    id: Optional[str] = None
    type: StopType = StopType.CLIENT
    client_id: Optional[str] = None
    ticket_number: Optional[str] = None
    address: Optional[str] = None


class ActiveRouteCreateRequest(BaseModel):
    messenger_id: str
    vehicle_id: str
    stops: List[RouteStop] = Field(default_factory=list)
    note: str = ""


class ActiveRouteUpdateRequest(BaseModel):
    messenger_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    stops: Optional[List[RouteStop]] = None
    note: Optional[str] = None
    star_rating: Optional[int] = Field(default=None, ge=0, le=5)


class DepartureRequest(BaseModel):
    """Departure mark; `at` defaults to the server clock."""

    at: Optional[datetime] = None


class ArrivalRequest(BaseModel):
    star_rating: Optional[int] = Field(default=None, ge=0, le=5)
    note: Optional[str] = None
    at: Optional[datetime] = None


class ActiveRoute(AuditedRecord):
    messenger_id: str
    vehicle_id: str
    stops: List[RouteStop] = Field(default_factory=list)
    note: str = ""
    star_rating: int = Field(default=0, ge=0, le=5)
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    status: RouteStatus = RouteStatus.PENDING
    points_awarded: int = 0


class DispatchCard(ActiveRoute):
    """Board view of a route with its chronometer computed at read time."""

    messenger_name: str = "Unknown"
    vehicle_code: str = "Unknown"
    elapsed_seconds: int = 0
    chronometer: str = "00:00:00"


class RouteCompletionResult(BaseModel):
    route_id: str
    messenger_id: str
    duration: int
    star_rating: int
    time_per_stop: int
    history_ids: List[str] = Field(default_factory=list)
    route_points: int = 0
    streak_bonus: int = 0
    total_points: int = 0
    messenger_total: int = 0


# ==================== CORPORATE DOCUMENTS ====================

class DocumentCategory(str, Enum):
    LEGAL = "legal"
    FISCAL = "fiscal"
    LABORAL = "laboral"
    FINANCIERO = "financiero"
    COMPRAS = "compras"


class DocumentStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class ValidityStatus(str, Enum):
    VIGENTE = "vigente"
    POR_VENCER = "por_vencer"
    VENCIDO = "vencido"


class CorporateDocumentUpload(BaseModel):
    """Upload payload; `parent_id` adds a new version to an existing family."""

    parent_id: Optional[str] = None
    name: str = Field(min_length=1)
    category: DocumentCategory
    type: str = "general"
    issue_date: date
    expiry_date: Optional[date] = None
    file_url: str = Field(min_length=1)
    is_template: bool = False
    alert_enabled: bool = True
    notes: Optional[str] = None


class CorporateDocument(BaseModel):
    id: str
    parent_id: str
    name: str
    category: DocumentCategory
    type: str = "general"
    version: int = Field(default=1, ge=1)
    issue_date: date
    expiry_date: Optional[date] = None
    file_url: str
    status: DocumentStatus = DocumentStatus.ACTIVE
    is_template: bool = False
    alert_enabled: bool = True
    notes: Optional[str] = None
    uploaded_by: str = "system"
    uploaded_at: datetime = Field(default_factory=_utcnow)


class CorporateDocumentView(CorporateDocument):
    calculated_status: ValidityStatus = ValidityStatus.VIGENTE
    days_until_expiry: Optional[int] = None


# ==================== ALERTS & AUDIT ====================

class AlertType(str, Enum):
    LICENSE = "license"
    INSURANCE = "insurance"
    MAINTENANCE = "maintenance"
    BIRTHDAY = "birthday"
    ANNIVERSARY = "anniversary"
    DOCUMENT = "document"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class Alert(BaseModel):
    id: str
    type: AlertType
    message: str
    severity: AlertSeverity
    entity_type: str
    entity_id: str
    due_date: Optional[date] = None
    days_remaining: Optional[int] = None


class AuditLog(BaseModel):
    id: str
    action: str
    details: str
    user: str
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class StorageWriteRequest(BaseModel):
    collection: Optional[str] = None
    data: Any = None
