"""Client service for business rules."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from typing import Optional

from despachante_manager.config import AVATARS_BUCKET
from despachante_manager.db.connection import transaction
from despachante_manager.domain.models import (
    AuditAction,
    Client,
    ClientDocStatus,
    ClientType,
    EntityType,
)
from despachante_manager.domain.status import classify_doc_status, iso_date, to_date
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.attachment_repo import AttachmentRepo
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.client_repo import ClientRepo
from despachante_manager.repositories.service_repo import ServiceRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo
from despachante_manager.services.auth import require_actor
from despachante_manager.services.errors import (
    NotFoundError,
    RemoteOperationError,
    ValidationError,
    store_errors,
)
from despachante_manager.services.storage_service import StorageService, avatar_path
from despachante_manager.state.data_bus import DataEventBus, emit_change


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ClientService:
    """Service for client operations."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        storage: Optional[StorageService] = None,
        data_bus: Optional[DataEventBus] = None,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = ClientRepo(connection)
        self._vehicles = VehicleRepo(connection)
        self._services = ServiceRepo(connection)
        self._attachments = AttachmentRepo(connection)
        self._audit = AuditLogRepo(connection)
        self._storage = storage
        self._bus = data_bus
        self._logger = get_logger(self.__class__.__name__)

    def list_clients(self) -> list[Client]:
        with store_errors("buscar clientes"):
            return self._repo.list_all()

    def search_clients(
        self,
        term: Optional[str] = None,
        *,
        doc_status: Optional[ClientDocStatus] = None,
        client_type: Optional[ClientType] = None,
    ) -> list[Client]:
        with store_errors("buscar clientes"):
            return self._repo.search(term, doc_status=doc_status, client_type=client_type)

    def get_client(self, client_id: int) -> Client:
        with store_errors("buscar cliente"):
            client = self._repo.get_by_id(client_id)
        if client is None:
            raise NotFoundError("Cliente não encontrado.")
        return client

    def find_client(self, client_id: int) -> Optional[Client]:
        with store_errors("buscar cliente"):
            return self._repo.get_by_id(client_id)

    def create_client(self, actor_id: str, client: Client) -> Client:
        actor = require_actor(actor_id)
        client = self._normalize(client)
        self._validate(client)
        with store_errors("inserir cliente"):
            with transaction(self._connection):
                created = self._repo.create(client)
                self._audit.append(
                    AuditAction.CLIENT_CREATED,
                    EntityType.CLIENT,
                    created.id,
                    actor,
                    {"name": created.name, "doc_status": created.doc_status.value},
                )
        self._logger.info("Client created id=%s", created.id)
        emit_change(self._bus, EntityType.CLIENT.value, created.id, "created")
        return created

    def update_client(self, actor_id: str, client: Client) -> Client:
        actor = require_actor(actor_id)
        if client.id is None:
            raise ValidationError("Cliente sem identificador.")
        self.get_client(client.id)
        client = self._normalize(client)
        self._validate(client)
        with store_errors("atualizar cliente"):
            with transaction(self._connection):
                updated = self._repo.update(client)
                if updated is None:
                    raise NotFoundError("Cliente não encontrado.")
                self._audit.append(
                    AuditAction.CLIENT_UPDATED,
                    EntityType.CLIENT,
                    updated.id,
                    actor,
                    {"doc_status": updated.doc_status.value},
                )
        emit_change(self._bus, EntityType.CLIENT.value, updated.id, "updated")
        return updated

    def set_avatar(
        self,
        actor_id: str,
        client_id: int,
        data: bytes,
        file_name: str,
    ) -> Client:
        """Upload a new avatar and point the client at it."""
        actor = require_actor(actor_id)
        if self._storage is None:
            raise RemoteOperationError("Armazenamento de arquivos indisponível.")
        client = self.get_client(client_id)
        path = avatar_path(actor, file_name)
        url = self._storage.upload_file(data, path, AVATARS_BUCKET)
        try:
            updated = self.update_client(actor, replace(client, avatar_url=url))
        except Exception:
            self._storage.discard_uploads([(path, AVATARS_BUCKET)], "avatar do cliente")
            raise
        return updated

    def delete_client(self, actor_id: str, client_id: int) -> bool:
        """Delete a client with no vehicles and no services.

        Attachments go with the client; their files are removed after commit.
        """
        actor = require_actor(actor_id)
        client = self.get_client(client_id)
        with store_errors("excluir cliente"):
            if self._vehicles.count_by_owner(client_id):
                raise ValidationError(
                    "Cliente possui veículos cadastrados e não pode ser excluído."
                )
            if self._services.count_by_client(client_id):
                raise ValidationError(
                    "Cliente possui serviços vinculados e não pode ser excluído."
                )
            with transaction(self._connection):
                removed = self._attachments.delete_for_entity(EntityType.CLIENT, client_id)
                deleted = self._repo.delete(client_id)
                self._audit.append(
                    AuditAction.CLIENT_DELETED,
                    EntityType.CLIENT,
                    client_id,
                    actor,
                    {"name": client.name, "attachments": len(removed)},
                )
        emit_change(self._bus, EntityType.CLIENT.value, client_id, "deleted")
        urls = [item.public_url for item in removed]
        if client.avatar_url:
            urls.append(client.avatar_url)
        if self._storage is not None:
            self._storage.remove_urls(urls, "client_deleted")
        return deleted

    def _normalize(self, client: Client) -> Client:
        return replace(
            client,
            name=(client.name or "").strip(),
            cpf_cnpj=_clean(client.cpf_cnpj),
            email=_clean(client.email),
            phone=_clean(client.phone),
            address=_clean(client.address),
            cnh_expiration_date=iso_date(client.cnh_expiration_date),
            doc_status=classify_doc_status(client, client.client_type),
        )

    def _validate(self, client: Client) -> None:
        if not client.name:
            raise ValidationError("O nome do cliente é obrigatório.")
        if client.cnh_expiration_date and to_date(client.cnh_expiration_date) is None:
            raise ValidationError("Data de validade da CNH inválida.")
