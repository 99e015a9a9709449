"""Repository for documents attached to clients and vehicles."""

from __future__ import annotations

import sqlite3
from typing import Optional

from despachante_manager.domain.models import Attachment, EntityType
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.mappers import attachment_from_row


class AttachmentRepo:
    """Data access for uploaded documents."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def add(self, attachment: Attachment) -> Attachment:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO attachments (
                    entity_type,
                    entity_id,
                    document_type,
                    file_name,
                    storage_path,
                    public_url,
                    uploaded_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    attachment.entity_type.value,
                    attachment.entity_id,
                    attachment.document_type,
                    attachment.file_name,
                    attachment.storage_path,
                    attachment.public_url,
                    attachment.uploaded_at,
                ),
            )
        except Exception:
            self._logger.exception(
                "Failed to insert attachment entity=%s:%s type=%s",
                attachment.entity_type,
                attachment.entity_id,
                attachment.document_type,
            )
            raise
        return Attachment(
            id=int(cursor.lastrowid) if cursor.lastrowid else None,
            entity_type=attachment.entity_type,
            entity_id=attachment.entity_id,
            document_type=attachment.document_type,
            file_name=attachment.file_name,
            storage_path=attachment.storage_path,
            public_url=attachment.public_url,
            uploaded_at=attachment.uploaded_at,
        )

    def get_by_id(self, attachment_id: int) -> Optional[Attachment]:
        try:
            row = self._connection.execute(
                "SELECT * FROM attachments WHERE id = ?",
                (attachment_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch attachment id=%s", attachment_id)
            raise
        return attachment_from_row(row) if row else None

    def list_for_entity(
        self,
        entity_type: EntityType,
        entity_id: int,
    ) -> list[Attachment]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM attachments
                WHERE entity_type = ?
                  AND entity_id = ?
                ORDER BY uploaded_at DESC, id DESC
                """,
                (EntityType(entity_type).value, entity_id),
            ).fetchall()
        except Exception:
            self._logger.exception(
                "Failed to list attachments entity=%s:%s", entity_type, entity_id
            )
            raise
        return [attachment_from_row(row) for row in rows]

    def delete(self, attachment_id: int) -> bool:
        try:
            cursor = self._connection.execute(
                "DELETE FROM attachments WHERE id = ?",
                (attachment_id,),
            )
        except Exception:
            self._logger.exception("Failed to delete attachment id=%s", attachment_id)
            raise
        return cursor.rowcount > 0

    def delete_for_entity(self, entity_type: EntityType, entity_id: int) -> list[Attachment]:
        """Delete every attachment of an entity and return what was removed."""
        removed = self.list_for_entity(entity_type, entity_id)
        try:
            self._connection.execute(
                "DELETE FROM attachments WHERE entity_type = ? AND entity_id = ?",
                (EntityType(entity_type).value, entity_id),
            )
        except Exception:
            self._logger.exception(
                "Failed to delete attachments entity=%s:%s", entity_type, entity_id
            )
            raise
        return removed
