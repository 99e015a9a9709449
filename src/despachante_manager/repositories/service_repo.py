"""Repository for services (processes) and their checklist items."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from despachante_manager.domain.models import (
    Service,
    ServiceChecklistItem,
    ServiceStatus,
    TERMINAL_SERVICE_STATUSES,
)
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.mappers import (
    SERVICE_COLUMNS,
    checklist_item_from_row,
    service_from_row,
    service_to_record,
)


@dataclass(frozen=True)
class ServiceWithNames:
    service: Service
    client_name: str
    vehicle_plate: str


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class ServiceRepo:
    """Data access for services and checklist items."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(self, service: Service) -> Service:
        created_at = _now_iso()
        record = service_to_record(service)
        record["created_at"] = created_at
        record["updated_at"] = created_at
        columns = SERVICE_COLUMNS + ("created_at", "updated_at")
        placeholders = ", ".join(["?"] * len(columns))
        try:
            cursor = self._connection.execute(
                f"INSERT INTO services ({', '.join(columns)}) VALUES ({placeholders})",
                [record[column] for column in columns],
            )
        except Exception:
            self._logger.exception(
                "Failed to create service client_id=%s vehicle_id=%s",
                service.client_id,
                service.vehicle_id,
            )
            raise
        return self.get_by_id(int(cursor.lastrowid))

    def update(self, service: Service) -> Optional[Service]:
        if service.id is None:
            raise ValueError("Service id is required for update")
        record = service_to_record(service)
        record["updated_at"] = _now_iso()
        columns = SERVICE_COLUMNS + ("updated_at",)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        try:
            cursor = self._connection.execute(
                f"UPDATE services SET {assignments} WHERE id = ?",
                [record[column] for column in columns] + [service.id],
            )
        except Exception:
            self._logger.exception("Failed to update service id=%s", service.id)
            raise
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(service.id)

    def set_status(self, service_id: int, status: ServiceStatus) -> bool:
        try:
            cursor = self._connection.execute(
                "UPDATE services SET status = ?, updated_at = ? WHERE id = ?",
                (ServiceStatus(status).value, _now_iso(), service_id),
            )
        except Exception:
            self._logger.exception("Failed to update service status id=%s", service_id)
            raise
        return cursor.rowcount > 0

    def delete(self, service_id: int) -> bool:
        try:
            cursor = self._connection.execute(
                "DELETE FROM services WHERE id = ?",
                (service_id,),
            )
        except Exception:
            self._logger.exception("Failed to delete service id=%s", service_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, service_id: int) -> Optional[Service]:
        try:
            row = self._connection.execute(
                "SELECT * FROM services WHERE id = ?",
                (service_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get service id=%s", service_id)
            raise
        return service_from_row(row) if row else None

    def list_all(self) -> List[Service]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM services ORDER BY created_at DESC, id DESC"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list services")
            raise
        return [service_from_row(row) for row in rows]

    def search(
        self,
        *,
        status: Optional[ServiceStatus] = None,
        client_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        due_from: Optional[str] = None,
        due_to: Optional[str] = None,
        term: Optional[str] = None,
    ) -> List[ServiceWithNames]:
        """List services with client name and plate, filtered by any combination."""
        filters: list[str] = []
        params: list[object] = []
        if status is not None:
            filters.append("s.status = ?")
            params.append(ServiceStatus(status).value)
        if client_id is not None:
            filters.append("s.client_id = ?")
            params.append(client_id)
        if vehicle_id is not None:
            filters.append("s.vehicle_id = ?")
            params.append(vehicle_id)
        if due_from:
            filters.append("date(s.due_date) >= date(?)")
            params.append(due_from)
        if due_to:
            filters.append("date(s.due_date) <= date(?)")
            params.append(due_to)
        term = (term or "").strip()
        if term:
            filters.append("(s.name LIKE ? OR c.name LIKE ? OR v.plate LIKE ?)")
            params.extend([f"%{term}%"] * 3)
        where_clause = f"WHERE {' AND '.join(filters)}" if filters else ""
        query = f"""
            SELECT
                s.*,
                COALESCE(c.name, 'Desconhecido') AS client_name,
                COALESCE(v.plate, 'Desconhecido') AS vehicle_plate
            FROM services s
            LEFT JOIN clients c ON c.id = s.client_id
            LEFT JOIN vehicles v ON v.id = s.vehicle_id
            {where_clause}
            ORDER BY s.due_date IS NULL, s.due_date, s.id
        """
        try:
            rows = self._connection.execute(query, params).fetchall()
        except Exception:
            self._logger.exception("Failed to search services")
            raise
        return [
            ServiceWithNames(
                service=service_from_row(row),
                client_name=row["client_name"],
                vehicle_plate=row["vehicle_plate"],
            )
            for row in rows
        ]

    def count_by_client(self, client_id: int) -> int:
        try:
            row = self._connection.execute(
                """
                SELECT COUNT(*) AS total
                FROM services
                WHERE client_id = ? OR payer_client_id = ?
                """,
                (client_id, client_id),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count services client_id=%s", client_id)
            raise
        return int(row["total"] or 0) if row else 0

    def count_by_vehicle(self, vehicle_id: int) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM services WHERE vehicle_id = ?",
                (vehicle_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count services vehicle_id=%s", vehicle_id)
            raise
        return int(row["total"] or 0) if row else 0

    def count_active(self) -> int:
        terminal = [status.value for status in TERMINAL_SERVICE_STATUSES]
        placeholders = ", ".join(["?"] * len(terminal))
        try:
            row = self._connection.execute(
                f"SELECT COUNT(*) AS total FROM services WHERE status NOT IN ({placeholders})",
                terminal,
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count active services")
            raise
        return int(row["total"] or 0) if row else 0

    def add_checklist_items(
        self,
        service_id: int,
        descriptions: Iterable[str],
    ) -> List[ServiceChecklistItem]:
        try:
            row = self._connection.execute(
                """
                SELECT COALESCE(MAX(position), -1) AS last_position
                FROM service_checklist_items
                WHERE service_id = ?
                """,
                (service_id,),
            ).fetchone()
            position = int(row["last_position"]) + 1
            for description in descriptions:
                self._connection.execute(
                    """
                    INSERT INTO service_checklist_items (
                        service_id,
                        task_description,
                        is_completed,
                        position
                    )
                    VALUES (?, ?, 0, ?)
                    """,
                    (service_id, description, position),
                )
                position += 1
        except Exception:
            self._logger.exception(
                "Failed to add checklist items service_id=%s", service_id
            )
            raise
        return self.list_checklist(service_id)

    def list_checklist(self, service_id: int) -> List[ServiceChecklistItem]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM service_checklist_items
                WHERE service_id = ?
                ORDER BY position, id
                """,
                (service_id,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list checklist service_id=%s", service_id)
            raise
        return [checklist_item_from_row(row) for row in rows]

    def get_checklist_item(self, item_id: int) -> Optional[ServiceChecklistItem]:
        try:
            row = self._connection.execute(
                "SELECT * FROM service_checklist_items WHERE id = ?",
                (item_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get checklist item id=%s", item_id)
            raise
        return checklist_item_from_row(row) if row else None

    def set_checklist_item_completed(self, item_id: int, completed: bool) -> bool:
        try:
            cursor = self._connection.execute(
                "UPDATE service_checklist_items SET is_completed = ? WHERE id = ?",
                (int(completed), item_id),
            )
        except Exception:
            self._logger.exception("Failed to toggle checklist item id=%s", item_id)
            raise
        return cursor.rowcount > 0
