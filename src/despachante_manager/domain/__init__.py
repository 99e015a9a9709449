"""Domain models and rules for Despachante Manager."""

from despachante_manager.domain.models import (
    AlertItem,
    AlertKind,
    AlertStatus,
    AppUser,
    Attachment,
    AuditAction,
    AuditLogEntry,
    Client,
    ClientDocStatus,
    ClientType,
    EntityType,
    Service,
    ServiceChecklistItem,
    ServiceStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserRole,
    Vehicle,
)

__all__ = [
    "AlertItem",
    "AlertKind",
    "AlertStatus",
    "AppUser",
    "Attachment",
    "AuditAction",
    "AuditLogEntry",
    "Client",
    "ClientDocStatus",
    "ClientType",
    "EntityType",
    "Service",
    "ServiceChecklistItem",
    "ServiceStatus",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "UserRole",
    "Vehicle",
]
