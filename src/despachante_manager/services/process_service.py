"""Process service: dispatch services, their lifecycle and checklists."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional

from despachante_manager.config import SERVICE_REVENUE_CATEGORY
from despachante_manager.db.connection import transaction
from despachante_manager.domain.catalog import checklist_template
from despachante_manager.domain.models import (
    AuditAction,
    EntityType,
    Service,
    ServiceChecklistItem,
    ServiceStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from despachante_manager.domain.status import (
    can_transition,
    checklist_progress,
    iso_date,
    to_date,
)
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.client_repo import ClientRepo
from despachante_manager.repositories.service_repo import ServiceRepo, ServiceWithNames
from despachante_manager.repositories.transaction_repo import TransactionRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo
from despachante_manager.services.auth import require_actor
from despachante_manager.services.errors import (
    NotFoundError,
    ValidationError,
    store_errors,
)
from despachante_manager.state.data_bus import DataEventBus, emit_change

STATUS_LABELS = {
    ServiceStatus.TODO: "A Fazer",
    ServiceStatus.IN_PROGRESS: "Em Andamento",
    ServiceStatus.WAITING_DOCS: "Aguardando Documentação",
    ServiceStatus.COMPLETED: "Concluído",
    ServiceStatus.CANCELED: "Cancelado",
}


class ProcessService:
    """Service for dispatch processes (``services`` table)."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        data_bus: Optional[DataEventBus] = None,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = ServiceRepo(connection)
        self._clients = ClientRepo(connection)
        self._vehicles = VehicleRepo(connection)
        self._transactions = TransactionRepo(connection)
        self._audit = AuditLogRepo(connection)
        self._bus = data_bus
        self._logger = get_logger(self.__class__.__name__)

    def list_services(self) -> list[Service]:
        with store_errors("buscar serviços"):
            return self._repo.list_all()

    def search_services(
        self,
        *,
        status: Optional[ServiceStatus] = None,
        client_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        due_from: Optional[str] = None,
        due_to: Optional[str] = None,
        term: Optional[str] = None,
    ) -> list[ServiceWithNames]:
        with store_errors("buscar serviços"):
            return self._repo.search(
                status=status,
                client_id=client_id,
                vehicle_id=vehicle_id,
                due_from=due_from,
                due_to=due_to,
                term=term,
            )

    def get_service(self, service_id: int) -> Service:
        with store_errors("buscar serviço"):
            service = self._repo.get_by_id(service_id)
        if service is None:
            raise NotFoundError("Serviço não encontrado.")
        return service

    def get_checklist(self, service_id: int) -> list[ServiceChecklistItem]:
        self.get_service(service_id)
        with store_errors("buscar checklist"):
            return self._repo.list_checklist(service_id)

    def progress(self, service_id: int) -> float:
        return checklist_progress(self.get_checklist(service_id))

    def create_service(
        self,
        actor_id: str,
        service: Service,
        checklist: Optional[Iterable[str]] = None,
    ) -> Service:
        """Open a new process.

        The checklist defaults to the catalog template for the service name.
        A priced service also gets a pending revenue entry for its payer.
        """
        actor = require_actor(actor_id)
        service = self._normalize(service)
        plate = self._validate(service)
        tasks = [
            task.strip()
            for task in (checklist if checklist is not None else checklist_template(service.name))
            if task and task.strip()
        ]
        with store_errors("inserir serviço"):
            with transaction(self._connection):
                created = self._repo.create(service)
                if tasks:
                    self._repo.add_checklist_items(created.id, tasks)
                entry = None
                if created.price > 0:
                    entry = self._transactions.create(
                        Transaction(
                            id=None,
                            description=f"Serviço: {created.name} - {plate}",
                            category=SERVICE_REVENUE_CATEGORY,
                            transaction_date=date.today().isoformat(),
                            amount=created.price,
                            type=TransactionType.REVENUE,
                            status=TransactionStatus.PENDING,
                            due_date=created.due_date,
                            client_id=created.effective_payer_id,
                            service_id=created.id,
                        )
                    )
                self._audit.append(
                    AuditAction.SERVICE_CREATED,
                    EntityType.SERVICE,
                    created.id,
                    actor,
                    {
                        "name": created.name,
                        "client_id": created.client_id,
                        "vehicle_id": created.vehicle_id,
                        "transaction_id": entry.id if entry else None,
                    },
                )
        self._logger.info("Service created id=%s name=%s", created.id, created.name)
        emit_change(self._bus, EntityType.SERVICE.value, created.id, "created")
        if entry is not None:
            emit_change(self._bus, EntityType.TRANSACTION.value, entry.id, "created")
        return created

    def update_service(self, actor_id: str, service: Service) -> Service:
        actor = require_actor(actor_id)
        if service.id is None:
            raise ValidationError("Serviço sem identificador.")
        existing = self.get_service(service.id)
        service = self._normalize(service)
        self._validate(service)
        if existing.status != service.status:
            self._check_transition(existing.status, service.status)
        with store_errors("atualizar serviço"):
            with transaction(self._connection):
                updated = self._repo.update(service)
                if updated is None:
                    raise NotFoundError("Serviço não encontrado.")
                details = {"name": updated.name}
                if existing.status != updated.status:
                    details["from"] = existing.status.value
                    details["to"] = updated.status.value
                self._audit.append(
                    AuditAction.SERVICE_UPDATED,
                    EntityType.SERVICE,
                    updated.id,
                    actor,
                    details,
                )
        emit_change(self._bus, EntityType.SERVICE.value, updated.id, "updated")
        return updated

    def change_status(
        self,
        actor_id: str,
        service_id: int,
        status: ServiceStatus,
    ) -> Service:
        actor = require_actor(actor_id)
        service = self.get_service(service_id)
        target = ServiceStatus(status)
        if service.status == target:
            return service
        self._check_transition(service.status, target)
        with store_errors("atualizar status do serviço"):
            with transaction(self._connection):
                self._repo.set_status(service_id, target)
                self._audit.append(
                    AuditAction.SERVICE_STATUS_CHANGED,
                    EntityType.SERVICE,
                    service_id,
                    actor,
                    {"from": service.status.value, "to": target.value},
                )
                updated = self._repo.get_by_id(service_id)
        emit_change(self._bus, EntityType.SERVICE.value, service_id, "updated")
        return updated

    def delete_service(self, actor_id: str, service_id: int) -> bool:
        """Delete a process; its checklist goes with it, ledger entries stay unlinked."""
        actor = require_actor(actor_id)
        service = self.get_service(service_id)
        with store_errors("excluir serviço"):
            with transaction(self._connection):
                deleted = self._repo.delete(service_id)
                self._audit.append(
                    AuditAction.SERVICE_DELETED,
                    EntityType.SERVICE,
                    service_id,
                    actor,
                    {"name": service.name, "client_id": service.client_id},
                )
        emit_change(self._bus, EntityType.SERVICE.value, service_id, "deleted")
        return deleted

    def add_checklist_item(
        self,
        actor_id: str,
        service_id: int,
        task_description: str,
    ) -> ServiceChecklistItem:
        actor = require_actor(actor_id)
        self.get_service(service_id)
        description = (task_description or "").strip()
        if not description:
            raise ValidationError("Descreva a tarefa do checklist.")
        with store_errors("adicionar tarefa"):
            with transaction(self._connection):
                items = self._repo.add_checklist_items(service_id, [description])
                item = items[-1]
                self._audit.append(
                    AuditAction.CHECKLIST_ITEM_ADDED,
                    EntityType.SERVICE,
                    service_id,
                    actor,
                    {"item_id": item.id, "task": description},
                )
        emit_change(self._bus, EntityType.SERVICE.value, service_id, "updated")
        return item

    def toggle_checklist_item(self, actor_id: str, item_id: int) -> ServiceChecklistItem:
        """Flip one checklist item; items do not depend on each other."""
        actor = require_actor(actor_id)
        with store_errors("buscar tarefa"):
            item = self._repo.get_checklist_item(item_id)
        if item is None:
            raise NotFoundError("Tarefa não encontrada.")
        completed = not item.is_completed
        with store_errors("atualizar tarefa"):
            with transaction(self._connection):
                self._repo.set_checklist_item_completed(item_id, completed)
                self._audit.append(
                    AuditAction.CHECKLIST_ITEM_TOGGLED,
                    EntityType.SERVICE,
                    item.service_id,
                    actor,
                    {"item_id": item_id, "completed": completed},
                )
        emit_change(self._bus, EntityType.SERVICE.value, item.service_id, "updated")
        return replace(item, is_completed=completed)

    def _check_transition(self, current: ServiceStatus, target: ServiceStatus) -> None:
        if not can_transition(current, target):
            raise ValidationError(
                f"Não é possível alterar o status de "
                f"'{STATUS_LABELS[ServiceStatus(current)]}' para "
                f"'{STATUS_LABELS[ServiceStatus(target)]}'."
            )

    def _normalize(self, service: Service) -> Service:
        return replace(
            service,
            name=(service.name or "").strip(),
            due_date=iso_date(service.due_date),
        )

    def _validate(self, service: Service) -> str:
        """Check the form and return the plate of the referenced vehicle."""
        if not service.name:
            raise ValidationError("O nome do serviço é obrigatório.")
        if not service.client_id or not service.vehicle_id:
            raise ValidationError("Selecione o cliente e o veículo do serviço.")
        if service.price is None or service.price < 0:
            raise ValidationError("O valor do serviço não pode ser negativo.")
        if service.due_date and to_date(service.due_date) is None:
            raise ValidationError("Prazo do serviço inválido.")
        with store_errors("buscar cliente"):
            client = self._clients.get_by_id(service.client_id)
            vehicle = self._vehicles.get_by_id(service.vehicle_id)
            payer = (
                self._clients.get_by_id(service.payer_client_id)
                if service.payer_client_id
                else client
            )
        if client is None:
            raise NotFoundError("Cliente não encontrado.")
        if vehicle is None:
            raise NotFoundError("Veículo não encontrado.")
        if payer is None:
            raise NotFoundError("Pagador não encontrado.")
        return vehicle.plate
