"""Finance service for the transaction ledger."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from typing import Optional

from despachante_manager.config import CASH_FLOW_MONTHS
from despachante_manager.db.connection import transaction
from despachante_manager.domain.finance import (
    FinancialSummary,
    MonthlyCashFlow,
    monthly_cash_flow,
    summarize_transactions,
)
from despachante_manager.domain.models import (
    AuditAction,
    EntityType,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from despachante_manager.domain.status import iso_date, to_date
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.transaction_repo import TransactionRepo
from despachante_manager.services.auth import require_actor
from despachante_manager.services.errors import (
    NotFoundError,
    ValidationError,
    store_errors,
)
from despachante_manager.state.data_bus import DataEventBus, emit_change


class FinanceService:
    """Service for revenue and expense entries."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        data_bus: Optional[DataEventBus] = None,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = TransactionRepo(connection)
        self._audit = AuditLogRepo(connection)
        self._bus = data_bus
        self._logger = get_logger(self.__class__.__name__)

    def list_transactions(
        self,
        *,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        client_id: Optional[int] = None,
        service_id: Optional[int] = None,
    ) -> list[Transaction]:
        with store_errors("buscar transações"):
            return self._repo.list_transactions(
                type=type,
                status=status,
                start_date=start_date,
                end_date=end_date,
                client_id=client_id,
                service_id=service_id,
            )

    def list_receivables(self) -> list[Transaction]:
        return self.list_transactions(
            type=TransactionType.REVENUE, status=TransactionStatus.PENDING
        )

    def list_payables(self) -> list[Transaction]:
        return self.list_transactions(
            type=TransactionType.EXPENSE, status=TransactionStatus.PENDING
        )

    def list_categories(self) -> list[str]:
        with store_errors("buscar categorias"):
            return self._repo.list_categories()

    def get_transaction(self, transaction_id: int) -> Transaction:
        with store_errors("buscar transação"):
            entry = self._repo.get_by_id(transaction_id)
        if entry is None:
            raise NotFoundError("Transação não encontrada.")
        return entry

    def summary(self) -> FinancialSummary:
        """Headline figures, recomputed from every stored transaction."""
        return summarize_transactions(self.list_transactions())

    def cash_flow(self, months: Optional[int] = CASH_FLOW_MONTHS) -> list[MonthlyCashFlow]:
        return monthly_cash_flow(self.list_transactions(), limit=months)

    def create_transaction(self, actor_id: str, entry: Transaction) -> Transaction:
        actor = require_actor(actor_id)
        entry = self._normalize(entry)
        self._validate(entry)
        with store_errors("inserir transação"):
            with transaction(self._connection):
                created = self._repo.create(entry)
                self._audit.append(
                    AuditAction.TRANSACTION_CREATED,
                    EntityType.TRANSACTION,
                    created.id,
                    actor,
                    {
                        "type": created.type.value,
                        "status": created.status.value,
                        "amount": created.amount,
                    },
                )
        emit_change(self._bus, EntityType.TRANSACTION.value, created.id, "created")
        return created

    def update_transaction(self, actor_id: str, entry: Transaction) -> Transaction:
        actor = require_actor(actor_id)
        if entry.id is None:
            raise ValidationError("Transação sem identificador.")
        self.get_transaction(entry.id)
        entry = self._normalize(entry)
        self._validate(entry)
        with store_errors("atualizar transação"):
            with transaction(self._connection):
                updated = self._repo.update(entry)
                if updated is None:
                    raise NotFoundError("Transação não encontrada.")
                self._audit.append(
                    AuditAction.TRANSACTION_UPDATED,
                    EntityType.TRANSACTION,
                    updated.id,
                    actor,
                    {"status": updated.status.value, "amount": updated.amount},
                )
        emit_change(self._bus, EntityType.TRANSACTION.value, updated.id, "updated")
        return updated

    def mark_paid(self, actor_id: str, transaction_id: int) -> Transaction:
        actor = require_actor(actor_id)
        entry = self.get_transaction(transaction_id)
        if entry.status == TransactionStatus.PAID:
            return entry
        with store_errors("baixar transação"):
            with transaction(self._connection):
                self._repo.set_status(transaction_id, TransactionStatus.PAID)
                self._audit.append(
                    AuditAction.TRANSACTION_UPDATED,
                    EntityType.TRANSACTION,
                    transaction_id,
                    actor,
                    {"status": TransactionStatus.PAID.value},
                )
                updated = self._repo.get_by_id(transaction_id)
        emit_change(self._bus, EntityType.TRANSACTION.value, transaction_id, "updated")
        return updated

    def delete_transaction(self, actor_id: str, transaction_id: int) -> bool:
        actor = require_actor(actor_id)
        entry = self.get_transaction(transaction_id)
        with store_errors("excluir transação"):
            with transaction(self._connection):
                deleted = self._repo.delete(transaction_id)
                self._audit.append(
                    AuditAction.TRANSACTION_DELETED,
                    EntityType.TRANSACTION,
                    transaction_id,
                    actor,
                    {"description": entry.description, "amount": entry.amount},
                )
        emit_change(self._bus, EntityType.TRANSACTION.value, transaction_id, "deleted")
        return deleted

    def _normalize(self, entry: Transaction) -> Transaction:
        category = (entry.category or "").strip() or None
        return replace(
            entry,
            description=(entry.description or "").strip(),
            category=category,
            transaction_date=iso_date(entry.transaction_date),
            due_date=iso_date(entry.due_date),
        )

    def _validate(self, entry: Transaction) -> None:
        if not entry.description:
            raise ValidationError("A descrição da transação é obrigatória.")
        if not entry.transaction_date or to_date(entry.transaction_date) is None:
            raise ValidationError("A data da transação é obrigatória.")
        if entry.amount is None or entry.amount <= 0:
            raise ValidationError("O valor da transação deve ser maior que zero.")
        if entry.due_date and to_date(entry.due_date) is None:
            raise ValidationError("Data de vencimento inválida.")
