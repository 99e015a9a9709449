"""Filesystem paths for Despachante Manager."""

from __future__ import annotations

import os
from pathlib import Path

from despachante_manager.config import (
    APP_DATA_DIRNAME,
    APP_HOME_ENV,
    BACKUP_DIRNAME,
    CONFIG_FILENAME,
    DB_FILENAME,
    LOGS_DIRNAME,
    PDF_DIRNAME,
    STORAGE_DIRNAME,
)


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_app_data_dir() -> Path:
    """Create and return the app data directory for the current user.

    ``DESPACHANTE_HOME`` wins over ``APPDATA`` so tests and scripts can point
    the whole application at a scratch directory.
    """
    override = os.getenv(APP_HOME_ENV)
    if override:
        return _ensure_dir(Path(override))
    appdata = os.getenv("APPDATA")
    if appdata:
        base_dir = Path(appdata)
    else:
        base_dir = Path.home() / ".despachante_manager"
    return _ensure_dir(base_dir / APP_DATA_DIRNAME)


def get_db_path() -> Path:
    """Return the path to the SQLite database file."""
    return get_app_data_dir() / DB_FILENAME


def get_config_path() -> Path:
    """Return the path to the JSON settings file."""
    return get_app_data_dir() / CONFIG_FILENAME


def get_backup_dir() -> Path:
    """Create and return the backup directory inside the app data folder."""
    return _ensure_dir(get_app_data_dir() / BACKUP_DIRNAME)


def get_logs_dir() -> Path:
    """Create and return the log directory inside the app data folder."""
    return _ensure_dir(get_app_data_dir() / LOGS_DIRNAME)


def get_pdfs_dir() -> Path:
    """Create and return the PDFs directory inside the app data folder."""
    return _ensure_dir(get_app_data_dir() / PDF_DIRNAME)


def get_storage_dir() -> Path:
    """Create and return the root folder that holds the storage buckets."""
    return _ensure_dir(get_app_data_dir() / STORAGE_DIRNAME)
