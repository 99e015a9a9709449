"""SQLite row mappers for domain models."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict

from despachante_manager.domain.models import (
    AppUser,
    Attachment,
    AuditLogEntry,
    Client,
    ClientType,
    EntityType,
    Service,
    ServiceChecklistItem,
    ServiceStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserRole,
    Vehicle,
)
from despachante_manager.domain.status import classify_doc_status

CLIENT_COLUMNS = (
    "name",
    "cpf_cnpj",
    "email",
    "phone",
    "address",
    "avatar_url",
    "client_type",
    "doc_status",
    "marital_status",
    "profession",
    "nationality",
    "naturalness",
    "cnh_number",
    "cnh_expiration_date",
    "trade_name",
    "contact_name",
)

VEHICLE_COLUMNS = (
    "plate",
    "chassis",
    "renavam",
    "brand",
    "model",
    "year_manufacture",
    "year_model",
    "color",
    "fuel_type",
    "owner_id",
    "licensing_expiration_date",
    "image_urls",
)

SERVICE_COLUMNS = (
    "name",
    "client_id",
    "vehicle_id",
    "status",
    "due_date",
    "price",
    "payer_client_id",
    "agent_name",
    "detran_schedule",
    "contact_phone",
    "situation_notes",
    "next_schedule",
)

TRANSACTION_COLUMNS = (
    "description",
    "category",
    "transaction_date",
    "amount",
    "type",
    "status",
    "due_date",
    "client_id",
    "service_id",
)


def _row_value(row: sqlite3.Row, key: str) -> Any:
    return row[key] if key in row.keys() else None


def _load_json(raw: Any, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return default


def client_from_row(row: sqlite3.Row) -> Client:
    client = Client(
        id=_row_value(row, "id"),
        name=row["name"] or "",
        cpf_cnpj=_row_value(row, "cpf_cnpj"),
        email=_row_value(row, "email"),
        phone=_row_value(row, "phone"),
        address=_row_value(row, "address"),
        avatar_url=_row_value(row, "avatar_url"),
        client_type=ClientType(_row_value(row, "client_type") or ClientType.INDIVIDUAL.value),
        marital_status=_row_value(row, "marital_status"),
        profession=_row_value(row, "profession"),
        nationality=_row_value(row, "nationality"),
        naturalness=_row_value(row, "naturalness"),
        cnh_number=_row_value(row, "cnh_number"),
        cnh_expiration_date=_row_value(row, "cnh_expiration_date"),
        trade_name=_row_value(row, "trade_name"),
        contact_name=_row_value(row, "contact_name"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )
    # The stored column only serves filtering; the fields are authoritative.
    client.doc_status = classify_doc_status(client, client.client_type)
    return client


def client_to_record(client: Client) -> Dict[str, Any]:
    return {
        "id": client.id,
        "name": client.name,
        "cpf_cnpj": client.cpf_cnpj,
        "email": client.email,
        "phone": client.phone,
        "address": client.address,
        "avatar_url": client.avatar_url,
        "client_type": ClientType(client.client_type).value,
        "doc_status": classify_doc_status(client, client.client_type).value,
        "marital_status": client.marital_status,
        "profession": client.profession,
        "nationality": client.nationality,
        "naturalness": client.naturalness,
        "cnh_number": client.cnh_number,
        "cnh_expiration_date": client.cnh_expiration_date,
        "trade_name": client.trade_name,
        "contact_name": client.contact_name,
        "created_at": client.created_at,
        "updated_at": client.updated_at,
    }


def vehicle_from_row(row: sqlite3.Row) -> Vehicle:
    return Vehicle(
        id=_row_value(row, "id"),
        plate=row["plate"],
        owner_id=row["owner_id"],
        chassis=_row_value(row, "chassis"),
        renavam=_row_value(row, "renavam"),
        brand=_row_value(row, "brand"),
        model=_row_value(row, "model"),
        year_manufacture=_row_value(row, "year_manufacture"),
        year_model=_row_value(row, "year_model"),
        color=_row_value(row, "color"),
        fuel_type=_row_value(row, "fuel_type"),
        licensing_expiration_date=_row_value(row, "licensing_expiration_date"),
        image_urls=list(_load_json(_row_value(row, "image_urls"), [])),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def vehicle_to_record(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "plate": vehicle.plate,
        "chassis": vehicle.chassis,
        "renavam": vehicle.renavam,
        "brand": vehicle.brand,
        "model": vehicle.model,
        "year_manufacture": vehicle.year_manufacture,
        "year_model": vehicle.year_model,
        "color": vehicle.color,
        "fuel_type": vehicle.fuel_type,
        "owner_id": vehicle.owner_id,
        "licensing_expiration_date": vehicle.licensing_expiration_date,
        "image_urls": json.dumps(list(vehicle.image_urls)),
        "created_at": vehicle.created_at,
        "updated_at": vehicle.updated_at,
    }


def service_from_row(row: sqlite3.Row) -> Service:
    return Service(
        id=_row_value(row, "id"),
        name=row["name"],
        client_id=row["client_id"],
        vehicle_id=row["vehicle_id"],
        status=ServiceStatus(row["status"]),
        due_date=_row_value(row, "due_date"),
        price=float(row["price"] or 0),
        payer_client_id=_row_value(row, "payer_client_id"),
        agent_name=_row_value(row, "agent_name"),
        detran_schedule=_row_value(row, "detran_schedule"),
        contact_phone=_row_value(row, "contact_phone"),
        situation_notes=_row_value(row, "situation_notes"),
        next_schedule=_row_value(row, "next_schedule"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def service_to_record(service: Service) -> Dict[str, Any]:
    return {
        "id": service.id,
        "name": service.name,
        "client_id": service.client_id,
        "vehicle_id": service.vehicle_id,
        "status": ServiceStatus(service.status).value,
        "due_date": service.due_date,
        "price": service.price,
        "payer_client_id": service.payer_client_id,
        "agent_name": service.agent_name,
        "detran_schedule": service.detran_schedule,
        "contact_phone": service.contact_phone,
        "situation_notes": service.situation_notes,
        "next_schedule": service.next_schedule,
        "created_at": service.created_at,
        "updated_at": service.updated_at,
    }


def checklist_item_from_row(row: sqlite3.Row) -> ServiceChecklistItem:
    return ServiceChecklistItem(
        id=_row_value(row, "id"),
        service_id=row["service_id"],
        task_description=row["task_description"],
        is_completed=bool(row["is_completed"]),
        position=int(_row_value(row, "position") or 0),
    )


def transaction_from_row(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=_row_value(row, "id"),
        description=row["description"],
        category=_row_value(row, "category"),
        transaction_date=row["transaction_date"],
        amount=float(row["amount"]),
        type=TransactionType(row["type"]),
        status=TransactionStatus(row["status"]),
        due_date=_row_value(row, "due_date"),
        client_id=_row_value(row, "client_id"),
        service_id=_row_value(row, "service_id"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def transaction_to_record(transaction: Transaction) -> Dict[str, Any]:
    return {
        "id": transaction.id,
        "description": transaction.description,
        "category": transaction.category,
        "transaction_date": transaction.transaction_date,
        "amount": transaction.amount,
        "type": TransactionType(transaction.type).value,
        "status": TransactionStatus(transaction.status).value,
        "due_date": transaction.due_date,
        "client_id": transaction.client_id,
        "service_id": transaction.service_id,
        "created_at": transaction.created_at,
        "updated_at": transaction.updated_at,
    }


def audit_entry_from_row(row: sqlite3.Row) -> AuditLogEntry:
    return AuditLogEntry(
        id=_row_value(row, "id"),
        action=row["action"],
        entity_type=row["entity_type"],
        entity_id=_row_value(row, "entity_id"),
        actor_id=row["actor_id"],
        created_at=row["created_at"],
        details=dict(_load_json(_row_value(row, "details"), {})),
    )


def attachment_from_row(row: sqlite3.Row) -> Attachment:
    return Attachment(
        id=_row_value(row, "id"),
        entity_type=EntityType(row["entity_type"]),
        entity_id=row["entity_id"],
        document_type=row["document_type"],
        file_name=row["file_name"],
        storage_path=row["storage_path"],
        public_url=row["public_url"],
        uploaded_at=row["uploaded_at"],
    )


def user_from_row(row: sqlite3.Row) -> AppUser:
    return AppUser(
        id=row["id"],
        full_name=row["full_name"],
        email=row["email"],
        role=UserRole(row["role"]),
        avatar_url=_row_value(row, "avatar_url"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )
