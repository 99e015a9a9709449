"""Repository for ledger transactions."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from despachante_manager.domain.models import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.mappers import (
    TRANSACTION_COLUMNS,
    transaction_from_row,
    transaction_to_record,
)


class TransactionRepo:
    """Data access for transactions."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(self, transaction: Transaction) -> Transaction:
        created_at = datetime.now().isoformat(timespec="seconds")
        record = transaction_to_record(transaction)
        record["created_at"] = created_at
        record["updated_at"] = created_at
        columns = TRANSACTION_COLUMNS + ("created_at", "updated_at")
        placeholders = ", ".join(["?"] * len(columns))
        try:
            cursor = self._connection.execute(
                f"INSERT INTO transactions ({', '.join(columns)}) VALUES ({placeholders})",
                [record[column] for column in columns],
            )
        except Exception:
            self._logger.exception("Failed to create transaction")
            raise
        return self.get_by_id(int(cursor.lastrowid))

    def update(self, transaction: Transaction) -> Optional[Transaction]:
        if transaction.id is None:
            raise ValueError("Transaction id is required for update")
        record = transaction_to_record(transaction)
        record["updated_at"] = datetime.now().isoformat(timespec="seconds")
        columns = TRANSACTION_COLUMNS + ("updated_at",)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        try:
            cursor = self._connection.execute(
                f"UPDATE transactions SET {assignments} WHERE id = ?",
                [record[column] for column in columns] + [transaction.id],
            )
        except Exception:
            self._logger.exception("Failed to update transaction id=%s", transaction.id)
            raise
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(transaction.id)

    def set_status(self, transaction_id: int, status: TransactionStatus) -> bool:
        try:
            cursor = self._connection.execute(
                """
                UPDATE transactions
                SET status = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    TransactionStatus(status).value,
                    datetime.now().isoformat(timespec="seconds"),
                    transaction_id,
                ),
            )
        except Exception:
            self._logger.exception(
                "Failed to update transaction status id=%s", transaction_id
            )
            raise
        return cursor.rowcount > 0

    def delete(self, transaction_id: int) -> bool:
        try:
            cursor = self._connection.execute(
                "DELETE FROM transactions WHERE id = ?",
                (transaction_id,),
            )
        except Exception:
            self._logger.exception("Failed to delete transaction id=%s", transaction_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        try:
            row = self._connection.execute(
                "SELECT * FROM transactions WHERE id = ?",
                (transaction_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch transaction id=%s", transaction_id)
            raise
        return transaction_from_row(row) if row else None

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
        filters: list[str] = []
        params: list[object] = []
        if type is not None:
            filters.append("type = ?")
            params.append(TransactionType(type).value)
        if status is not None:
            filters.append("status = ?")
            params.append(TransactionStatus(status).value)
        if start_date:
            filters.append("date(transaction_date) >= date(?)")
            params.append(start_date)
        if end_date:
            filters.append("date(transaction_date) <= date(?)")
            params.append(end_date)
        if client_id is not None:
            filters.append("client_id = ?")
            params.append(client_id)
        if service_id is not None:
            filters.append("service_id = ?")
            params.append(service_id)
        where_clause = f"WHERE {' AND '.join(filters)}" if filters else ""
        try:
            rows = self._connection.execute(
                f"""
                SELECT *
                FROM transactions
                {where_clause}
                ORDER BY date(transaction_date) DESC, id DESC
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list transactions")
            raise
        return [transaction_from_row(row) for row in rows]

    def list_categories(self) -> list[str]:
        try:
            rows = self._connection.execute(
                """
                SELECT DISTINCT category
                FROM transactions
                WHERE category IS NOT NULL
                  AND trim(category) != ''
                ORDER BY category
                """
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list transaction categories")
            raise
        return [row["category"] for row in rows if row["category"]]
