"""Session handling for the signed-in operator."""

from __future__ import annotations

import sqlite3
from typing import Optional

from despachante_manager.domain.models import AppUser
from despachante_manager.logging_config import get_logger
from despachante_manager.repositories.user_repo import UserRepo
from despachante_manager.services.errors import NotAuthenticatedError, NotFoundError


def require_actor(actor_id: Optional[str]) -> str:
    """Return the actor id or fail when nobody is signed in."""
    if actor_id is None or not str(actor_id).strip():
        raise NotAuthenticatedError("Usuário não autenticado.")
    return str(actor_id)


class AuthSession:
    """Tracks which user profile is operating the application.

    Credentials are not handled here; signing in only selects a registered
    profile by e-mail.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._users = UserRepo(connection)
        self._current: Optional[AppUser] = None
        self._logger = get_logger(self.__class__.__name__)

    @property
    def current_user(self) -> Optional[AppUser]:
        return self._current

    def sign_in(self, email: str) -> AppUser:
        user = self._users.get_by_email(email)
        if user is None:
            raise NotFoundError("Usuário não encontrado.")
        self._current = user
        self._logger.info("User signed in id=%s", user.id)
        return user

    def sign_out(self) -> None:
        if self._current is not None:
            self._logger.info("User signed out id=%s", self._current.id)
        self._current = None

    def current_actor_id(self) -> str:
        if self._current is None:
            raise NotAuthenticatedError("Usuário não autenticado.")
        return self._current.id
