"""Repository for application user profiles."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime
from typing import Optional

from despachante_manager.domain.models import AppUser, UserRole
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.mappers import user_from_row


class UserRepo:
    """Data access for user profiles."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        full_name: str,
        email: str,
        role: UserRole,
        avatar_url: Optional[str] = None,
        *,
        user_id: Optional[str] = None,
    ) -> AppUser:
        created_at = datetime.now().isoformat(timespec="seconds")
        new_id = user_id or str(uuid.uuid4())
        try:
            self._connection.execute(
                """
                INSERT INTO users (id, full_name, email, role, avatar_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id,
                    full_name,
                    email,
                    UserRole(role).value,
                    avatar_url,
                    created_at,
                    created_at,
                ),
            )
        except Exception:
            self._logger.exception("Failed to create user email=%s", email)
            raise
        return AppUser(
            id=new_id,
            full_name=full_name,
            email=email,
            role=UserRole(role),
            avatar_url=avatar_url,
            created_at=created_at,
            updated_at=created_at,
        )

    def update(
        self,
        user_id: str,
        full_name: str,
        role: UserRole,
        avatar_url: Optional[str],
    ) -> Optional[AppUser]:
        try:
            cursor = self._connection.execute(
                """
                UPDATE users
                SET full_name = ?,
                    role = ?,
                    avatar_url = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    full_name,
                    UserRole(role).value,
                    avatar_url,
                    datetime.now().isoformat(timespec="seconds"),
                    user_id,
                ),
            )
        except Exception:
            self._logger.exception("Failed to update user id=%s", user_id)
            raise
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def delete(self, user_id: str) -> bool:
        try:
            cursor = self._connection.execute(
                "DELETE FROM users WHERE id = ?",
                (user_id,),
            )
        except Exception:
            self._logger.exception("Failed to delete user id=%s", user_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, user_id: str) -> Optional[AppUser]:
        try:
            row = self._connection.execute(
                "SELECT * FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch user id=%s", user_id)
            raise
        return user_from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[AppUser]:
        try:
            row = self._connection.execute(
                "SELECT * FROM users WHERE lower(email) = lower(?)",
                (email.strip(),),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch user email=%s", email)
            raise
        return user_from_row(row) if row else None

    def list_all(self) -> list[AppUser]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM users ORDER BY full_name COLLATE NOCASE"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list users")
            raise
        return [user_from_row(row) for row in rows]

    def count_by_role(self, role: UserRole) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM users WHERE role = ?",
                (UserRole(role).value,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count users role=%s", role)
            raise
        return int(row["total"] or 0) if row else 0
