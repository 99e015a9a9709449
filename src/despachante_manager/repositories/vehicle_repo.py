"""Repository for vehicle persistence."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from despachante_manager.domain.models import Vehicle
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.mappers import (
    VEHICLE_COLUMNS,
    vehicle_from_row,
    vehicle_to_record,
)


@dataclass(frozen=True)
class VehicleWithOwner:
    vehicle: Vehicle
    owner_name: str


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class VehicleRepo:
    """Data access for vehicles."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(self, vehicle: Vehicle) -> Vehicle:
        created_at = _now_iso()
        record = vehicle_to_record(vehicle)
        record["created_at"] = created_at
        record["updated_at"] = created_at
        columns = VEHICLE_COLUMNS + ("created_at", "updated_at")
        placeholders = ", ".join(["?"] * len(columns))
        try:
            cursor = self._connection.execute(
                f"INSERT INTO vehicles ({', '.join(columns)}) VALUES ({placeholders})",
                [record[column] for column in columns],
            )
        except Exception:
            self._logger.exception("Failed to create vehicle plate=%s", vehicle.plate)
            raise
        return self.get_by_id(int(cursor.lastrowid))

    def update(self, vehicle: Vehicle) -> Optional[Vehicle]:
        if vehicle.id is None:
            raise ValueError("Vehicle id is required for update")
        record = vehicle_to_record(vehicle)
        record["updated_at"] = _now_iso()
        columns = VEHICLE_COLUMNS + ("updated_at",)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        try:
            cursor = self._connection.execute(
                f"UPDATE vehicles SET {assignments} WHERE id = ?",
                [record[column] for column in columns] + [vehicle.id],
            )
        except Exception:
            self._logger.exception("Failed to update vehicle id=%s", vehicle.id)
            raise
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(vehicle.id)

    def set_image_urls(self, vehicle_id: int, image_urls: list[str]) -> bool:
        try:
            cursor = self._connection.execute(
                "UPDATE vehicles SET image_urls = ?, updated_at = ? WHERE id = ?",
                (json.dumps(list(image_urls)), _now_iso(), vehicle_id),
            )
        except Exception:
            self._logger.exception("Failed to update images vehicle id=%s", vehicle_id)
            raise
        return cursor.rowcount > 0

    def change_owner(
        self,
        vehicle_id: int,
        new_owner_id: int,
        *,
        expected_owner_id: int,
    ) -> bool:
        """Move the vehicle to a new owner only if the owner is still the expected one."""
        try:
            cursor = self._connection.execute(
                """
                UPDATE vehicles
                SET owner_id = ?,
                    updated_at = ?
                WHERE id = ?
                  AND owner_id = ?
                """,
                (new_owner_id, _now_iso(), vehicle_id, expected_owner_id),
            )
        except Exception:
            self._logger.exception("Failed to change owner vehicle id=%s", vehicle_id)
            raise
        return cursor.rowcount > 0

    def delete(self, vehicle_id: int) -> bool:
        try:
            cursor = self._connection.execute(
                "DELETE FROM vehicles WHERE id = ?",
                (vehicle_id,),
            )
        except Exception:
            self._logger.exception("Failed to delete vehicle id=%s", vehicle_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, vehicle_id: int) -> Optional[Vehicle]:
        try:
            row = self._connection.execute(
                "SELECT * FROM vehicles WHERE id = ?",
                (vehicle_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get vehicle id=%s", vehicle_id)
            raise
        return vehicle_from_row(row) if row else None

    def list_all(self) -> List[Vehicle]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM vehicles ORDER BY plate, id"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list vehicles")
            raise
        return [vehicle_from_row(row) for row in rows]

    def list_by_owner(self, owner_id: int) -> List[Vehicle]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM vehicles WHERE owner_id = ? ORDER BY plate, id",
                (owner_id,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list vehicles owner_id=%s", owner_id)
            raise
        return [vehicle_from_row(row) for row in rows]

    def search_with_owner(self, term: Optional[str] = None) -> List[VehicleWithOwner]:
        params: list[object] = []
        where_clause = ""
        term = (term or "").strip()
        if term:
            where_clause = """
                WHERE v.plate LIKE ?
                   OR v.model LIKE ?
                   OR v.brand LIKE ?
                   OR v.chassis LIKE ?
                   OR c.name LIKE ?
            """
            params.extend([f"%{term}%"] * 5)
        try:
            rows = self._connection.execute(
                f"""
                SELECT v.*, COALESCE(c.name, 'Desconhecido') AS owner_name
                FROM vehicles v
                LEFT JOIN clients c ON c.id = v.owner_id
                {where_clause}
                ORDER BY v.plate, v.id
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to search vehicles term=%s", term)
            raise
        return [
            VehicleWithOwner(vehicle=vehicle_from_row(row), owner_name=row["owner_name"])
            for row in rows
        ]

    def count_by_owner(self, owner_id: int) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM vehicles WHERE owner_id = ?",
                (owner_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count vehicles owner_id=%s", owner_id)
            raise
        return int(row["total"] or 0) if row else 0
