"""Tests for the JSON settings file."""

import json
from dataclasses import replace

from despachante_manager.config import DEFAULT_COMPANY_PROFILE
from despachante_manager.domain.models import UserRole
from despachante_manager.utils.settings import (
    DEFAULT_PERMISSIONS,
    AppSettings,
    Page,
    load_settings,
    save_settings,
)


class TestSettings:
    """Tests for load_settings and save_settings."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "config.json")
        assert settings.company == DEFAULT_COMPANY_PROFILE
        assert settings.auto_backup_on_start is False
        assert settings.permissions == DEFAULT_PERMISSIONS

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{nao e json", encoding="utf-8")
        assert load_settings(path) == AppSettings()

    def test_round_trip_keeps_unknown_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
        permissions = dict(DEFAULT_PERMISSIONS)
        permissions[UserRole.MANAGER] = frozenset({Page.REPORTS})
        settings = AppSettings(
            company=replace(DEFAULT_COMPANY_PROFILE, name="Despachante Central"),
            auto_backup_on_start=True,
            permissions=permissions,
        )

        save_settings(path, settings)
        loaded = load_settings(path)

        assert loaded.company.name == "Despachante Central"
        assert loaded.auto_backup_on_start is True
        assert loaded.permissions[UserRole.MANAGER] == frozenset({Page.REPORTS})
        assert json.loads(path.read_text(encoding="utf-8"))["theme"] == "dark"

    def test_admin_cannot_be_locked_out(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({"permissions": {"admin": {page.value: False for page in Page}}}),
            encoding="utf-8",
        )
        settings = load_settings(path)
        assert all(settings.can_access(UserRole.ADMIN, page) for page in Page)
        assert not settings.can_access(UserRole.USER, Page.SETTINGS)
