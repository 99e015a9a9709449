"""User service: operator profiles, roles and page permissions."""

from __future__ import annotations

import re
import sqlite3
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Optional

from despachante_manager.db.connection import transaction
from despachante_manager.domain.models import AppUser, AuditAction, EntityType, UserRole
from despachante_manager.logging_config import get_logger
from despachante_manager.paths import get_config_path
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.user_repo import UserRepo
from despachante_manager.services.auth import require_actor
from despachante_manager.services.errors import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    store_errors,
)
from despachante_manager.state.data_bus import DataEventBus, emit_change
from despachante_manager.utils.settings import (
    AppSettings,
    Page,
    load_settings,
    save_settings,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserService:
    """Administration of user profiles. Every change requires an admin actor."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        config_path: Optional[Path] = None,
        data_bus: Optional[DataEventBus] = None,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = UserRepo(connection)
        self._audit = AuditLogRepo(connection)
        self._config_path = config_path
        self._bus = data_bus
        self._logger = get_logger(self.__class__.__name__)

    def list_users(self) -> list[AppUser]:
        with store_errors("buscar usuários"):
            return self._repo.list_all()

    def get_user(self, user_id: str) -> AppUser:
        with store_errors("buscar usuário"):
            user = self._repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("Usuário não encontrado.")
        return user

    def bootstrap_admin(self, full_name: str, email: str) -> AppUser:
        """Create the first administrator of an empty installation."""
        full_name, email = self._validate(full_name, email)
        with store_errors("criar administrador"):
            if self._repo.list_all():
                raise ValidationError("Já existem usuários cadastrados.")
            with transaction(self._connection):
                user = self._repo.create(full_name, email, UserRole.ADMIN)
                self._audit.append(
                    AuditAction.USER_CREATED,
                    EntityType.USER,
                    user.id,
                    user.id,
                    {"email": email, "role": UserRole.ADMIN.value},
                )
        self._logger.info("Bootstrap administrator created id=%s", user.id)
        return user

    def create_user(
        self,
        actor_id: str,
        full_name: str,
        email: str,
        role: UserRole,
        avatar_url: Optional[str] = None,
    ) -> AppUser:
        actor = self._require_admin(actor_id)
        full_name, email = self._validate(full_name, email)
        with store_errors("criar usuário"):
            if self._repo.get_by_email(email) is not None:
                raise ValidationError("Já existe um usuário com este e-mail.")
            with transaction(self._connection):
                user = self._repo.create(full_name, email, UserRole(role), avatar_url)
                self._audit.append(
                    AuditAction.USER_CREATED,
                    EntityType.USER,
                    user.id,
                    actor,
                    {"email": email, "role": user.role.value},
                )
        emit_change(self._bus, EntityType.USER.value, user.id, "created")
        return user

    def update_user(
        self,
        actor_id: str,
        user_id: str,
        full_name: str,
        role: UserRole,
        avatar_url: Optional[str] = None,
    ) -> AppUser:
        actor = self._require_admin(actor_id)
        existing = self.get_user(user_id)
        full_name, _ = self._validate(full_name, existing.email)
        role = UserRole(role)
        if existing.role == UserRole.ADMIN and role != UserRole.ADMIN:
            self._ensure_other_admin(user_id)
        with store_errors("atualizar usuário"):
            with transaction(self._connection):
                updated = self._repo.update(user_id, full_name, role, avatar_url)
                if updated is None:
                    raise NotFoundError("Usuário não encontrado.")
                self._audit.append(
                    AuditAction.USER_UPDATED,
                    EntityType.USER,
                    user_id,
                    actor,
                    {"role": role.value},
                )
        emit_change(self._bus, EntityType.USER.value, user_id, "updated")
        return updated

    def delete_user(self, actor_id: str, user_id: str) -> bool:
        actor = self._require_admin(actor_id)
        if actor == user_id:
            raise ValidationError("Você não pode excluir o próprio usuário.")
        user = self.get_user(user_id)
        if user.role == UserRole.ADMIN:
            self._ensure_other_admin(user_id)
        with store_errors("excluir usuário"):
            with transaction(self._connection):
                deleted = self._repo.delete(user_id)
                self._audit.append(
                    AuditAction.USER_DELETED,
                    EntityType.USER,
                    user_id,
                    actor,
                    {"email": user.email},
                )
        emit_change(self._bus, EntityType.USER.value, user_id, "deleted")
        return deleted

    def load_settings(self) -> AppSettings:
        return load_settings(self._settings_path())

    def can_access(self, user_id: str, page: Page | str) -> bool:
        user = self.get_user(user_id)
        return self.load_settings().can_access(user.role, page)

    def update_permissions(
        self,
        actor_id: str,
        permissions: Mapping[UserRole, frozenset[Page]],
    ) -> AppSettings:
        """Replace the page permission map; administrators always see every page."""
        self._require_admin(actor_id)
        current = self.load_settings()
        merged = dict(current.permissions)
        for role, pages in permissions.items():
            merged[UserRole(role)] = frozenset(Page(page) for page in pages)
        merged[UserRole.ADMIN] = frozenset(Page)
        settings = replace(current, permissions=merged)
        with store_errors("salvar permissões"):
            save_settings(self._settings_path(), settings)
        self._logger.info("Permissions updated by actor=%s", actor_id)
        return settings

    def _settings_path(self) -> Path:
        return self._config_path or get_config_path()

    def _require_admin(self, actor_id: str) -> str:
        actor = require_actor(actor_id)
        with store_errors("buscar usuário"):
            user = self._repo.get_by_id(actor)
        if user is None or user.role != UserRole.ADMIN:
            raise PermissionDeniedError(
                "Apenas administradores podem gerenciar usuários."
            )
        return actor

    def _ensure_other_admin(self, user_id: str) -> None:
        with store_errors("buscar usuários"):
            admins = self._repo.count_by_role(UserRole.ADMIN)
        if admins <= 1:
            raise ValidationError("O sistema precisa de pelo menos um administrador.")

    def _validate(self, full_name: str, email: str) -> tuple[str, str]:
        full_name = (full_name or "").strip()
        email = (email or "").strip().lower()
        if not full_name:
            raise ValidationError("O nome do usuário é obrigatório.")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Informe um e-mail válido.")
        return full_name, email
