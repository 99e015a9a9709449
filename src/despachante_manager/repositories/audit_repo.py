"""Append-only repository for the audit log."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, Mapping, Optional

from despachante_manager.domain.models import AuditAction, AuditLogEntry, EntityType
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.mappers import audit_entry_from_row


class AuditLogRepo:
    """Writes and reads audit entries. There is no update or delete."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def append(
        self,
        action: AuditAction | str,
        entity_type: EntityType | str,
        entity_id: Optional[int | str],
        actor_id: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> AuditLogEntry:
        created_at = datetime.now().isoformat(timespec="seconds")
        action_value = action.value if isinstance(action, AuditAction) else str(action)
        entity_value = (
            entity_type.value if isinstance(entity_type, EntityType) else str(entity_type)
        )
        entity_key = None if entity_id is None else str(entity_id)
        payload = dict(details or {})
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO audit_log (
                    action,
                    entity_type,
                    entity_id,
                    actor_id,
                    created_at,
                    details
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    action_value,
                    entity_value,
                    entity_key,
                    actor_id,
                    created_at,
                    json.dumps(payload, ensure_ascii=False, default=str),
                ),
            )
        except Exception:
            self._logger.exception(
                "Failed to append audit entry action=%s entity=%s:%s",
                action_value,
                entity_value,
                entity_key,
            )
            raise
        return AuditLogEntry(
            id=int(cursor.lastrowid),
            action=action_value,
            entity_type=entity_value,
            entity_id=entity_key,
            actor_id=actor_id,
            created_at=created_at,
            details=payload,
        )

    def list_for_entity(
        self,
        entity_type: EntityType | str,
        entity_id: int | str,
    ) -> list[AuditLogEntry]:
        entity_value = (
            entity_type.value if isinstance(entity_type, EntityType) else str(entity_type)
        )
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM audit_log
                WHERE entity_type = ?
                  AND entity_id = ?
                ORDER BY created_at, id
                """,
                (entity_value, str(entity_id)),
            ).fetchall()
        except Exception:
            self._logger.exception(
                "Failed to list audit entries entity=%s:%s", entity_value, entity_id
            )
            raise
        return [audit_entry_from_row(row) for row in rows]

    def list_recent(
        self,
        limit: int = 20,
        *,
        action: Optional[AuditAction | str] = None,
    ) -> list[AuditLogEntry]:
        params: list[object] = []
        where_clause = ""
        if action is not None:
            where_clause = "WHERE action = ?"
            params.append(action.value if isinstance(action, AuditAction) else str(action))
        params.append(limit)
        try:
            rows = self._connection.execute(
                f"""
                SELECT *
                FROM audit_log
                {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list recent audit entries")
            raise
        return [audit_entry_from_row(row) for row in rows]
