"""Repository for client persistence."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from despachante_manager.domain.models import Client, ClientDocStatus, ClientType
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.mappers import (
    CLIENT_COLUMNS,
    client_from_row,
    client_to_record,
)


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class ClientRepo:
    """CRUD operations for clients.

    Writes are left uncommitted; the calling service owns the transaction.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(self, client: Client) -> Client:
        created_at = _now_iso()
        record = client_to_record(client)
        record["created_at"] = created_at
        record["updated_at"] = created_at
        columns = CLIENT_COLUMNS + ("created_at", "updated_at")
        placeholders = ", ".join(["?"] * len(columns))
        try:
            cursor = self._connection.execute(
                f"INSERT INTO clients ({', '.join(columns)}) VALUES ({placeholders})",
                [record[column] for column in columns],
            )
        except Exception:
            self._logger.exception("Failed to create client")
            raise
        return self.get_by_id(int(cursor.lastrowid))

    def update(self, client: Client) -> Optional[Client]:
        if client.id is None:
            raise ValueError("Client id is required for update")
        record = client_to_record(client)
        record["updated_at"] = _now_iso()
        columns = CLIENT_COLUMNS + ("updated_at",)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        try:
            cursor = self._connection.execute(
                f"UPDATE clients SET {assignments} WHERE id = ?",
                [record[column] for column in columns] + [client.id],
            )
        except Exception:
            self._logger.exception("Failed to update client id=%s", client.id)
            raise
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(client.id)

    def delete(self, client_id: int) -> bool:
        try:
            cursor = self._connection.execute(
                "DELETE FROM clients WHERE id = ?",
                (client_id,),
            )
        except Exception:
            self._logger.exception("Failed to delete client id=%s", client_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, client_id: int) -> Optional[Client]:
        try:
            row = self._connection.execute(
                "SELECT * FROM clients WHERE id = ?",
                (client_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get client id=%s", client_id)
            raise
        return client_from_row(row) if row else None

    def list_all(self) -> List[Client]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM clients ORDER BY name COLLATE NOCASE, id"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list clients")
            raise
        return [client_from_row(row) for row in rows]

    def search(
        self,
        term: Optional[str] = None,
        *,
        doc_status: Optional[ClientDocStatus] = None,
        client_type: Optional[ClientType] = None,
    ) -> List[Client]:
        filters: list[str] = []
        params: list[object] = []
        term = (term or "").strip()
        if term:
            filters.append(
                "(name LIKE ? OR trade_name LIKE ? OR cpf_cnpj LIKE ? OR email LIKE ?)"
            )
            params.extend([f"%{term}%"] * 4)
        if doc_status is not None:
            filters.append("doc_status = ?")
            params.append(ClientDocStatus(doc_status).value)
        if client_type is not None:
            filters.append("client_type = ?")
            params.append(ClientType(client_type).value)
        where_clause = f"WHERE {' AND '.join(filters)}" if filters else ""
        try:
            rows = self._connection.execute(
                f"SELECT * FROM clients {where_clause} ORDER BY name COLLATE NOCASE, id",
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to search clients term=%s", term)
            raise
        return [client_from_row(row) for row in rows]

    def count(self) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM clients"
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count clients")
            raise
        return int(row["total"] or 0) if row else 0
