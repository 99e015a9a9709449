"""Document service: files attached to clients and vehicles."""

from __future__ import annotations

import re
import sqlite3
import time
from datetime import datetime
from pathlib import PurePosixPath
from typing import Optional

from despachante_manager.config import DOCUMENTS_BUCKET
from despachante_manager.db.connection import transaction
from despachante_manager.domain.models import Attachment, AuditAction, EntityType
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.attachment_repo import AttachmentRepo
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.client_repo import ClientRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo
from despachante_manager.services.auth import require_actor
from despachante_manager.services.errors import (
    NotFoundError,
    ValidationError,
    store_errors,
)
from despachante_manager.services.storage_service import StorageService
from despachante_manager.state.data_bus import DataEventBus, emit_change

ATTACHABLE_ENTITIES = (EntityType.CLIENT, EntityType.VEHICLE)


def sanitize_filename(value: str) -> str:
    """Normalize a file name so it is safe as a storage path segment."""
    path = PurePosixPath(value.strip().replace("\\", "/"))
    stem = " ".join(path.stem.split()).replace(" ", "_")
    stem = re.sub(r"[^A-Za-z0-9_-]", "", stem) or "documento"
    suffix = re.sub(r"[^A-Za-z0-9.]", "", path.suffix.lower())
    return f"{stem}{suffix}"


class DocumentService:
    """Upload, list and remove documents of a client or vehicle."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        storage: StorageService,
        data_bus: Optional[DataEventBus] = None,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = AttachmentRepo(connection)
        self._clients = ClientRepo(connection)
        self._vehicles = VehicleRepo(connection)
        self._audit = AuditLogRepo(connection)
        self._storage = storage
        self._bus = data_bus
        self._logger = get_logger(self.__class__.__name__)

    def list_documents(self, entity_type: EntityType, entity_id: int) -> list[Attachment]:
        kind = self._check_entity_type(entity_type)
        with store_errors("buscar documentos"):
            return self._repo.list_for_entity(kind, entity_id)

    def upload_document(
        self,
        actor_id: str,
        entity_type: EntityType,
        entity_id: int,
        document_type: str,
        file_name: str,
        data: bytes,
    ) -> Attachment:
        """Store the file, then record it; the file is removed if recording fails."""
        actor = require_actor(actor_id)
        kind = self._check_entity_type(entity_type)
        label = (document_type or "").strip()
        if not label:
            raise ValidationError("Informe o tipo do documento.")
        if not file_name or not data:
            raise ValidationError("Selecione um arquivo para enviar.")
        self._check_entity_exists(kind, entity_id)

        safe_name = sanitize_filename(file_name)
        path = f"{kind.value}/{entity_id}/{int(time.time() * 1000)}-{safe_name}"
        url = self._storage.upload_file(data, path, DOCUMENTS_BUCKET)
        try:
            with store_errors("registrar documento"):
                with transaction(self._connection):
                    attachment = self._repo.add(
                        Attachment(
                            id=None,
                            entity_type=kind,
                            entity_id=entity_id,
                            document_type=label,
                            file_name=file_name.strip(),
                            storage_path=path,
                            public_url=url,
                            uploaded_at=datetime.now().isoformat(timespec="seconds"),
                        )
                    )
                    self._audit.append(
                        AuditAction.DOCUMENT_UPLOADED,
                        EntityType.DOCUMENT,
                        attachment.id,
                        actor,
                        {
                            "entity_type": kind.value,
                            "entity_id": entity_id,
                            "document_type": label,
                        },
                    )
        except Exception:
            self._storage.discard_uploads([(path, DOCUMENTS_BUCKET)], "documento")
            raise
        self._logger.info(
            "Document uploaded id=%s entity=%s:%s", attachment.id, kind.value, entity_id
        )
        emit_change(self._bus, EntityType.DOCUMENT.value, attachment.id, "created")
        return attachment

    def delete_document(self, actor_id: str, attachment_id: int) -> bool:
        actor = require_actor(actor_id)
        with store_errors("buscar documento"):
            attachment = self._repo.get_by_id(attachment_id)
        if attachment is None:
            raise NotFoundError("Documento não encontrado.")
        with store_errors("excluir documento"):
            with transaction(self._connection):
                deleted = self._repo.delete(attachment_id)
                self._audit.append(
                    AuditAction.DOCUMENT_DELETED,
                    EntityType.DOCUMENT,
                    attachment_id,
                    actor,
                    {
                        "entity_type": attachment.entity_type.value,
                        "entity_id": attachment.entity_id,
                        "file_name": attachment.file_name,
                    },
                )
        emit_change(self._bus, EntityType.DOCUMENT.value, attachment_id, "deleted")
        self._storage.remove_urls([attachment.public_url], "document_deleted")
        return deleted

    def _check_entity_type(self, entity_type: EntityType | str) -> EntityType:
        kind = EntityType(entity_type)
        if kind not in ATTACHABLE_ENTITIES:
            raise ValidationError("Documentos só podem ser anexados a clientes ou veículos.")
        return kind

    def _check_entity_exists(self, kind: EntityType, entity_id: int) -> None:
        with store_errors("buscar registro"):
            if kind == EntityType.CLIENT:
                found = self._clients.get_by_id(entity_id) is not None
            else:
                found = self._vehicles.get_by_id(entity_id) is not None
        if not found:
            raise NotFoundError("Registro não encontrado para anexar o documento.")
