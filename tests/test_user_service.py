"""Tests for users, the session and page permissions."""

import pytest

from despachante_manager.domain.models import UserRole
from despachante_manager.services.errors import (
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from despachante_manager.utils.settings import Page


class TestSession:
    """Tests for AuthSession."""

    def test_no_actor_before_sign_in(self, services, admin):
        with pytest.raises(NotAuthenticatedError):
            services.session.current_actor_id()

    def test_sign_in_is_case_insensitive(self, services, admin):
        user = services.session.sign_in("ADMIN@example.com")
        assert services.session.current_actor_id() == user.id == admin.id
        services.session.sign_out()
        assert services.session.current_user is None

    def test_unknown_email(self, services):
        with pytest.raises(NotFoundError):
            services.session.sign_in("ninguem@example.com")


class TestUserAdministration:
    """Tests for admin-only user management."""

    def test_bootstrap_only_once(self, services, admin):
        with pytest.raises(ValidationError):
            services.user_service.bootstrap_admin("Outro", "outro@example.com")

    def test_create_and_update(self, services, actor):
        user = services.user_service.create_user(actor, "Gustavo", "Gustavo@Example.com", UserRole.USER)
        assert user.email == "gustavo@example.com"
        updated = services.user_service.update_user(actor, user.id, "Gustavo Lima", UserRole.MANAGER)
        assert updated.role == UserRole.MANAGER
        assert updated.full_name == "Gustavo Lima"

    def test_duplicate_email(self, services, actor):
        services.user_service.create_user(actor, "A", "a@example.com", UserRole.USER)
        with pytest.raises(ValidationError):
            services.user_service.create_user(actor, "B", "a@example.com", UserRole.USER)

    def test_invalid_email(self, services, actor):
        with pytest.raises(ValidationError):
            services.user_service.create_user(actor, "A", "sem-arroba", UserRole.USER)

    def test_non_admin_denied(self, services, actor):
        user = services.user_service.create_user(actor, "Comum", "comum@example.com", UserRole.USER)
        with pytest.raises(PermissionDeniedError):
            services.user_service.create_user(user.id, "X", "x@example.com", UserRole.USER)

    def test_cannot_delete_self(self, services, actor):
        with pytest.raises(ValidationError):
            services.user_service.delete_user(actor, actor)

    def test_last_admin_cannot_be_demoted(self, services, actor):
        with pytest.raises(ValidationError):
            services.user_service.update_user(actor, actor, "Ana Admin", UserRole.USER)

    def test_delete_other_user(self, services, actor):
        user = services.user_service.create_user(actor, "Temp", "temp@example.com", UserRole.USER)
        assert services.user_service.delete_user(actor, user.id)
        assert [u.id for u in services.user_service.list_users()] == [actor]


class TestPermissions:
    """Tests for the role page permission map."""

    def test_defaults(self, services, actor):
        user = services.user_service.create_user(actor, "Comum", "comum@example.com", UserRole.USER)
        assert services.user_service.can_access(actor, Page.SETTINGS)
        assert services.user_service.can_access(user.id, Page.CLIENTS)
        assert not services.user_service.can_access(user.id, Page.FINANCIAL)

    def test_update_persists_and_admin_keeps_everything(self, services, actor):
        services.user_service.update_permissions(
            actor,
            {UserRole.USER: frozenset({Page.FINANCIAL}), UserRole.ADMIN: frozenset()},
        )
        settings = services.user_service.load_settings()
        assert settings.permissions[UserRole.USER] == frozenset({Page.FINANCIAL})
        assert settings.can_access(UserRole.ADMIN, Page.SETTINGS)
        assert not settings.can_access(UserRole.USER, Page.CLIENTS)
