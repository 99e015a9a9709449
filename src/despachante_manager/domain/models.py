"""Domain dataclasses and enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ClientType(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"


class ClientDocStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ServiceStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    WAITING_DOCS = "waiting_docs"
    COMPLETED = "completed"
    CANCELED = "canceled"


TERMINAL_SERVICE_STATUSES = frozenset({ServiceStatus.COMPLETED, ServiceStatus.CANCELED})


class TransactionType(str, Enum):
    REVENUE = "revenue"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class AlertStatus(str, Enum):
    OK = "ok"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


class AlertKind(str, Enum):
    CNH = "cnh"
    LICENSING = "licensing"


class EntityType(str, Enum):
    CLIENT = "client"
    VEHICLE = "vehicle"
    SERVICE = "service"
    TRANSACTION = "transaction"
    DOCUMENT = "document"
    USER = "user"


class AuditAction(str, Enum):
    CLIENT_CREATED = "CLIENT_CREATED"
    CLIENT_UPDATED = "CLIENT_UPDATED"
    CLIENT_DELETED = "CLIENT_DELETED"
    VEHICLE_CREATED = "VEHICLE_CREATED"
    VEHICLE_UPDATED = "VEHICLE_UPDATED"
    VEHICLE_DELETED = "VEHICLE_DELETED"
    VEHICLE_TRANSFERRED = "VEHICLE_TRANSFERRED"
    SERVICE_CREATED = "SERVICE_CREATED"
    SERVICE_UPDATED = "SERVICE_UPDATED"
    SERVICE_STATUS_CHANGED = "SERVICE_STATUS_CHANGED"
    SERVICE_DELETED = "SERVICE_DELETED"
    CHECKLIST_ITEM_ADDED = "CHECKLIST_ITEM_ADDED"
    CHECKLIST_ITEM_TOGGLED = "CHECKLIST_ITEM_TOGGLED"
    TRANSACTION_CREATED = "TRANSACTION_CREATED"
    TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
    TRANSACTION_DELETED = "TRANSACTION_DELETED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


@dataclass(slots=True)
class Client:
    id: Optional[int]
    name: str
    cpf_cnpj: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    client_type: ClientType = ClientType.INDIVIDUAL
    doc_status: ClientDocStatus = ClientDocStatus.PENDING
    marital_status: Optional[str] = None
    profession: Optional[str] = None
    nationality: Optional[str] = None
    naturalness: Optional[str] = None
    cnh_number: Optional[str] = None
    cnh_expiration_date: Optional[str] = None
    trade_name: Optional[str] = None
    contact_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class Vehicle:
    id: Optional[int]
    plate: str
    owner_id: int
    chassis: Optional[str] = None
    renavam: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year_manufacture: Optional[int] = None
    year_model: Optional[int] = None
    color: Optional[str] = None
    fuel_type: Optional[str] = None
    licensing_expiration_date: Optional[str] = None
    image_urls: list[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class Service:
    id: Optional[int]
    name: str
    client_id: int
    vehicle_id: int
    status: ServiceStatus
    due_date: Optional[str]
    price: float
    payer_client_id: Optional[int] = None
    agent_name: Optional[str] = None
    detran_schedule: Optional[str] = None
    contact_phone: Optional[str] = None
    situation_notes: Optional[str] = None
    next_schedule: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def effective_payer_id(self) -> int:
        return self.payer_client_id or self.client_id


@dataclass(slots=True)
class ServiceChecklistItem:
    id: Optional[int]
    service_id: int
    task_description: str
    is_completed: bool = False
    position: int = 0


@dataclass(slots=True)
class Transaction:
    id: Optional[int]
    description: str
    transaction_date: str
    amount: float
    type: TransactionType
    status: TransactionStatus
    category: Optional[str] = None
    due_date: Optional[str] = None
    client_id: Optional[int] = None
    service_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class AuditLogEntry:
    id: Optional[int]
    action: str
    entity_type: str
    entity_id: Optional[str]
    actor_id: str
    created_at: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Attachment:
    id: Optional[int]
    entity_type: EntityType
    entity_id: int
    document_type: str
    file_name: str
    storage_path: str
    public_url: str
    uploaded_at: str


@dataclass(slots=True)
class AppUser:
    id: str
    full_name: str
    email: str
    role: UserRole
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class AlertItem:
    id: str
    kind: AlertKind
    message: str
    date: str
    status: AlertStatus
