"""Repositories for data access."""

from despachante_manager.repositories.attachment_repo import AttachmentRepo
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.client_repo import ClientRepo
from despachante_manager.repositories.service_repo import ServiceRepo, ServiceWithNames
from despachante_manager.repositories.transaction_repo import TransactionRepo
from despachante_manager.repositories.user_repo import UserRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo, VehicleWithOwner

__all__ = [
    "AttachmentRepo",
    "AuditLogRepo",
    "ClientRepo",
    "ServiceRepo",
    "ServiceWithNames",
    "TransactionRepo",
    "UserRepo",
    "VehicleRepo",
    "VehicleWithOwner",
]
