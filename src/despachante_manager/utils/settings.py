"""User-editable settings persisted as JSON."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from despachante_manager.config import DEFAULT_COMPANY_PROFILE, CompanyProfile
from despachante_manager.domain.models import UserRole
from despachante_manager.logging_config import get_logger

logger = get_logger(__name__)


class Page(str, Enum):
    DASHBOARD = "dashboard"
    CLIENTS = "clients"
    VEHICLES = "vehicles"
    SERVICES = "services"
    FINANCIAL = "financial"
    REPORTS = "reports"
    SETTINGS = "settings"


PAGE_LABELS = {
    Page.DASHBOARD: "Painel Admin",
    Page.CLIENTS: "Clientes",
    Page.VEHICLES: "Veículos",
    Page.SERVICES: "Serviços",
    Page.FINANCIAL: "Financeiro",
    Page.REPORTS: "Relatórios",
    Page.SETTINGS: "Configurações",
}

DEFAULT_PERMISSIONS: dict[UserRole, frozenset[Page]] = {
    UserRole.ADMIN: frozenset(Page),
    UserRole.MANAGER: frozenset(Page) - {Page.SETTINGS},
    UserRole.USER: frozenset(
        {Page.DASHBOARD, Page.CLIENTS, Page.VEHICLES, Page.SERVICES}
    ),
}


@dataclass(frozen=True)
class AppSettings:
    """Everything the settings screen can change."""

    company: CompanyProfile = DEFAULT_COMPANY_PROFILE
    auto_backup_on_start: bool = False
    permissions: Mapping[UserRole, frozenset[Page]] = field(
        default_factory=lambda: dict(DEFAULT_PERMISSIONS)
    )

    def can_access(self, role: UserRole | str, page: Page | str) -> bool:
        role = UserRole(role)
        if role == UserRole.ADMIN:
            return True
        return Page(page) in self.permissions.get(role, frozenset())


def load_config_data(config_path: Path) -> dict[str, Any]:
    """Load configuration JSON data from disk; empty when missing or corrupt."""
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Ignoring unreadable settings file %s", config_path)
        return {}
    return data if isinstance(data, dict) else {}


def save_config_data(config_path: Path, data: dict[str, Any]) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8"
    )


def _load_company(raw: Any) -> CompanyProfile:
    if not isinstance(raw, dict):
        return DEFAULT_COMPANY_PROFILE
    defaults = asdict(DEFAULT_COMPANY_PROFILE)
    values = {
        key: str(raw.get(key) or default) if key in raw else default
        for key, default in defaults.items()
    }
    return CompanyProfile(**values)


def _load_permissions(raw: Any) -> dict[UserRole, frozenset[Page]]:
    permissions = dict(DEFAULT_PERMISSIONS)
    if not isinstance(raw, dict):
        return permissions
    for role in UserRole:
        pages = raw.get(role.value)
        if not isinstance(pages, dict):
            continue
        allowed = set()
        for page in Page:
            if bool(pages.get(page.value, page in permissions[role])):
                allowed.add(page)
        permissions[role] = frozenset(allowed)
    permissions[UserRole.ADMIN] = frozenset(Page)
    return permissions


def load_settings(config_path: Path) -> AppSettings:
    data = load_config_data(config_path)
    return AppSettings(
        company=_load_company(data.get("company")),
        auto_backup_on_start=bool(data.get("auto_backup_on_start", False)),
        permissions=_load_permissions(data.get("permissions")),
    )


def save_settings(config_path: Path, settings: AppSettings) -> None:
    """Persist settings, keeping unrelated keys already in the file."""
    payload = load_config_data(config_path)
    payload["company"] = asdict(settings.company)
    payload["auto_backup_on_start"] = settings.auto_backup_on_start
    payload["permissions"] = {
        role.value: {
            page.value: page in settings.permissions.get(role, frozenset())
            for page in Page
        }
        for role in UserRole
    }
    save_config_data(config_path, payload)
