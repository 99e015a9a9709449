"""Vehicle service: registration, images and ownership transfer."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Sequence

from despachante_manager.config import (
    MAX_VEHICLE_IMAGES,
    SERVICE_REVENUE_CATEGORY,
    TRANSFER_SERVICE_NAME,
    VEHICLE_IMAGES_BUCKET,
)
from despachante_manager.db.connection import transaction
from despachante_manager.domain.catalog import checklist_template
from despachante_manager.domain.models import (
    AuditAction,
    EntityType,
    Service,
    ServiceStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    Vehicle,
)
from despachante_manager.domain.status import iso_date, to_date
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.attachment_repo import AttachmentRepo
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.client_repo import ClientRepo
from despachante_manager.repositories.service_repo import ServiceRepo
from despachante_manager.repositories.transaction_repo import TransactionRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo, VehicleWithOwner
from despachante_manager.services.auth import require_actor
from despachante_manager.services.errors import (
    ConflictError,
    NotFoundError,
    RemoteOperationError,
    ValidationError,
    store_errors,
)
from despachante_manager.services.storage_service import (
    StorageService,
    vehicle_image_path,
)
from despachante_manager.state.data_bus import DataEventBus, emit_change


@dataclass(frozen=True)
class VehicleImage:
    file_name: str
    data: bytes


@dataclass(frozen=True)
class TransferRequest:
    vehicle_id: int
    seller_id: int
    new_owner_id: int
    price: float
    due_date: str
    payer_id: int
    agent_name: str
    detran_schedule: Optional[str] = None
    contact_phone: Optional[str] = None
    payment_status: TransactionStatus = TransactionStatus.PENDING
    situation_notes: Optional[str] = None
    next_schedule: Optional[str] = None
    expected_owner_id: Optional[int] = None


@dataclass(frozen=True)
class TransferResult:
    vehicle: Vehicle
    service: Service
    transaction: Transaction


class VehicleService:
    """Service for vehicle operations."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        storage: Optional[StorageService] = None,
        data_bus: Optional[DataEventBus] = None,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = VehicleRepo(connection)
        self._clients = ClientRepo(connection)
        self._services = ServiceRepo(connection)
        self._transactions = TransactionRepo(connection)
        self._attachments = AttachmentRepo(connection)
        self._audit = AuditLogRepo(connection)
        self._storage = storage
        self._bus = data_bus
        self._logger = get_logger(self.__class__.__name__)

    def list_vehicles(self) -> list[Vehicle]:
        with store_errors("buscar veículos"):
            return self._repo.list_all()

    def search_vehicles(self, term: Optional[str] = None) -> list[VehicleWithOwner]:
        with store_errors("buscar veículos"):
            return self._repo.search_with_owner(term)

    def list_by_owner(self, owner_id: int) -> list[Vehicle]:
        with store_errors("buscar veículos"):
            return self._repo.list_by_owner(owner_id)

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        with store_errors("buscar veículo"):
            vehicle = self._repo.get_by_id(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Veículo não encontrado.")
        return vehicle

    def find_vehicle(self, vehicle_id: int) -> Optional[Vehicle]:
        with store_errors("buscar veículo"):
            return self._repo.get_by_id(vehicle_id)

    def create_vehicle(
        self,
        actor_id: str,
        vehicle: Vehicle,
        images: Sequence[VehicleImage] = (),
    ) -> Vehicle:
        """Register a vehicle, uploading its images first.

        When the database write fails the uploaded images are removed again.
        """
        actor = require_actor(actor_id)
        vehicle = self._normalize(vehicle)
        self._validate(vehicle, extra_images=len(images))
        uploads = self._upload_images(actor, vehicle.plate, images)
        vehicle = replace(
            vehicle,
            image_urls=list(vehicle.image_urls) + [url for url, _ in uploads],
        )
        try:
            with store_errors("inserir veículo"):
                with transaction(self._connection):
                    created = self._repo.create(vehicle)
                    self._audit.append(
                        AuditAction.VEHICLE_CREATED,
                        EntityType.VEHICLE,
                        created.id,
                        actor,
                        {"plate": created.plate, "owner_id": created.owner_id},
                    )
        except Exception:
            self._rollback_uploads(uploads)
            raise
        self._logger.info("Vehicle created id=%s plate=%s", created.id, created.plate)
        emit_change(self._bus, EntityType.VEHICLE.value, created.id, "created")
        return created

    def update_vehicle(
        self,
        actor_id: str,
        vehicle: Vehicle,
        images: Sequence[VehicleImage] = (),
    ) -> Vehicle:
        actor = require_actor(actor_id)
        if vehicle.id is None:
            raise ValidationError("Veículo sem identificador.")
        existing = self.get_vehicle(vehicle.id)
        vehicle = self._normalize(vehicle)
        self._validate(vehicle, extra_images=len(images))
        uploads = self._upload_images(actor, vehicle.plate, images)
        vehicle = replace(
            vehicle,
            image_urls=list(vehicle.image_urls) + [url for url, _ in uploads],
        )
        try:
            with store_errors("atualizar veículo"):
                with transaction(self._connection):
                    updated = self._repo.update(vehicle)
                    if updated is None:
                        raise NotFoundError("Veículo não encontrado.")
                    details = {"plate": updated.plate}
                    if existing.owner_id != updated.owner_id:
                        details["previous_owner_id"] = existing.owner_id
                        details["owner_id"] = updated.owner_id
                    self._audit.append(
                        AuditAction.VEHICLE_UPDATED,
                        EntityType.VEHICLE,
                        updated.id,
                        actor,
                        details,
                    )
        except Exception:
            self._rollback_uploads(uploads)
            raise
        emit_change(self._bus, EntityType.VEHICLE.value, updated.id, "updated")
        dropped = [url for url in existing.image_urls if url not in updated.image_urls]
        if dropped and self._storage is not None:
            self._storage.remove_urls(dropped, "vehicle_updated")
        return updated

    def delete_vehicle(self, actor_id: str, vehicle_id: int) -> bool:
        """Delete a vehicle with no services, together with its files."""
        actor = require_actor(actor_id)
        vehicle = self.get_vehicle(vehicle_id)
        with store_errors("excluir veículo"):
            if self._services.count_by_vehicle(vehicle_id):
                raise ValidationError(
                    "Veículo possui serviços vinculados e não pode ser excluído."
                )
            with transaction(self._connection):
                removed = self._attachments.delete_for_entity(EntityType.VEHICLE, vehicle_id)
                deleted = self._repo.delete(vehicle_id)
                self._audit.append(
                    AuditAction.VEHICLE_DELETED,
                    EntityType.VEHICLE,
                    vehicle_id,
                    actor,
                    {"plate": vehicle.plate, "attachments": len(removed)},
                )
        emit_change(self._bus, EntityType.VEHICLE.value, vehicle_id, "deleted")
        if self._storage is not None:
            urls = list(vehicle.image_urls) + [item.public_url for item in removed]
            self._storage.remove_urls(urls, "vehicle_deleted")
        return deleted

    def transfer(self, actor_id: str, request: TransferRequest) -> TransferResult:
        """Transfer ownership of a vehicle.

        The transfer service, its revenue entry, the owner change and the
        audit entry are committed together or not at all. The owner change
        only applies while the vehicle still belongs to ``expected_owner_id``
        (the seller unless given), otherwise ``ConflictError`` is raised.
        """
        actor = require_actor(actor_id)
        self._validate_transfer(request)
        request = replace(request, due_date=iso_date(request.due_date))
        vehicle = self.get_vehicle(request.vehicle_id)
        expected_owner = request.expected_owner_id or request.seller_id
        for client_id in {request.seller_id, request.new_owner_id, request.payer_id}:
            with store_errors("buscar cliente"):
                if self._clients.get_by_id(client_id) is None:
                    raise NotFoundError(f"Cliente {client_id} não encontrado.")
        if request.seller_id != expected_owner:
            raise ValidationError("O vendedor deve ser o proprietário atual do veículo.")
        if vehicle.owner_id != expected_owner:
            raise ConflictError(
                "O proprietário do veículo foi alterado. Recarregue os dados e tente novamente."
            )

        with store_errors("transferir veículo"):
            with transaction(self._connection):
                service = self._services.create(
                    Service(
                        id=None,
                        name=TRANSFER_SERVICE_NAME,
                        client_id=request.seller_id,
                        vehicle_id=vehicle.id,
                        status=ServiceStatus.TODO,
                        due_date=request.due_date,
                        price=float(request.price),
                        payer_client_id=request.payer_id,
                        agent_name=request.agent_name.strip(),
                        detran_schedule=request.detran_schedule,
                        contact_phone=request.contact_phone,
                        situation_notes=request.situation_notes,
                        next_schedule=request.next_schedule,
                    )
                )
                self._services.add_checklist_items(
                    service.id, checklist_template(TRANSFER_SERVICE_NAME)
                )
                entry = self._transactions.create(
                    Transaction(
                        id=None,
                        description=f"Serviço: {TRANSFER_SERVICE_NAME} - {vehicle.plate}",
                        category=SERVICE_REVENUE_CATEGORY,
                        transaction_date=date.today().isoformat(),
                        amount=float(request.price),
                        type=TransactionType.REVENUE,
                        status=TransactionStatus(request.payment_status),
                        due_date=request.due_date,
                        client_id=request.payer_id,
                        service_id=service.id,
                    )
                )
                changed = self._repo.change_owner(
                    vehicle.id,
                    request.new_owner_id,
                    expected_owner_id=expected_owner,
                )
                if not changed:
                    raise ConflictError(
                        "O proprietário do veículo foi alterado. "
                        "Recarregue os dados e tente novamente."
                    )
                self._audit.append(
                    AuditAction.VEHICLE_TRANSFERRED,
                    EntityType.VEHICLE,
                    vehicle.id,
                    actor,
                    {
                        "plate": vehicle.plate,
                        "seller_id": request.seller_id,
                        "new_owner_id": request.new_owner_id,
                        "payer_id": request.payer_id,
                        "service_id": service.id,
                        "transaction_id": entry.id,
                        "price": float(request.price),
                    },
                )
                updated = self._repo.get_by_id(vehicle.id)
        self._logger.info(
            "Vehicle transferred id=%s from=%s to=%s service=%s",
            vehicle.id,
            request.seller_id,
            request.new_owner_id,
            service.id,
        )
        emit_change(self._bus, EntityType.VEHICLE.value, vehicle.id, "updated")
        emit_change(self._bus, EntityType.SERVICE.value, service.id, "created")
        emit_change(self._bus, EntityType.TRANSACTION.value, entry.id, "created")
        return TransferResult(vehicle=updated, service=service, transaction=entry)

    def _upload_images(
        self,
        actor: str,
        plate: str,
        images: Sequence[VehicleImage],
    ) -> list[tuple[str, str]]:
        if not images:
            return []
        if self._storage is None:
            raise RemoteOperationError("Armazenamento de arquivos indisponível.")
        uploads: list[tuple[str, str]] = []
        try:
            for index, image in enumerate(images):
                path = vehicle_image_path(actor, plate, image.file_name, index=index)
                url = self._storage.upload_file(image.data, path, VEHICLE_IMAGES_BUCKET)
                uploads.append((url, path))
        except Exception:
            self._rollback_uploads(uploads)
            raise
        return uploads

    def _rollback_uploads(self, uploads: list[tuple[str, str]]) -> None:
        if not uploads or self._storage is None:
            return
        self._storage.discard_uploads(
            [(path, VEHICLE_IMAGES_BUCKET) for _, path in uploads],
            "imagens do veículo",
        )

    def _normalize(self, vehicle: Vehicle) -> Vehicle:
        return replace(
            vehicle,
            plate=(vehicle.plate or "").strip().upper(),
            chassis=(vehicle.chassis or "").strip().upper() or None,
            renavam=(vehicle.renavam or "").strip() or None,
            licensing_expiration_date=iso_date(vehicle.licensing_expiration_date),
        )

    def _validate(self, vehicle: Vehicle, *, extra_images: int = 0) -> None:
        if not vehicle.plate:
            raise ValidationError("A placa do veículo é obrigatória.")
        if not vehicle.owner_id:
            raise ValidationError("Selecione o proprietário do veículo.")
        with store_errors("buscar cliente"):
            owner = self._clients.get_by_id(vehicle.owner_id)
        if owner is None:
            raise NotFoundError("Proprietário não encontrado.")
        if len(vehicle.image_urls) + extra_images > MAX_VEHICLE_IMAGES:
            raise ValidationError(
                f"É permitido no máximo {MAX_VEHICLE_IMAGES} imagens por veículo."
            )
        if vehicle.licensing_expiration_date and to_date(vehicle.licensing_expiration_date) is None:
            raise ValidationError("Data de vencimento do licenciamento inválida.")

    def _validate_transfer(self, request: TransferRequest) -> None:
        if not all(
            [
                request.vehicle_id,
                request.seller_id,
                request.new_owner_id,
                request.payer_id,
                request.price,
                request.due_date,
                (request.agent_name or "").strip(),
            ]
        ):
            raise ValidationError("Preencha todos os campos obrigatórios.")
        if request.price <= 0:
            raise ValidationError("O valor do serviço deve ser maior que zero.")
        if to_date(request.due_date) is None:
            raise ValidationError("Prazo final do serviço inválido.")
        if request.seller_id == request.new_owner_id:
            raise ValidationError("O comprador deve ser diferente do vendedor.")
        if request.payer_id not in (request.seller_id, request.new_owner_id):
            raise ValidationError("O pagador deve ser o vendedor ou o comprador.")
