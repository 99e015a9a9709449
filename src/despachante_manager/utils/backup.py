"""Backup utilities for the SQLite database."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from despachante_manager.config import BACKUP_RETENTION_COUNT
from despachante_manager.logging_config import get_logger

EXPECTED_TABLES = {
    "clients",
    "vehicles",
    "services",
    "service_checklist_items",
    "transactions",
    "audit_log",
}
logger = get_logger(__name__)


@dataclass(frozen=True)
class RestoreResult:
    """Outcome details for a restore operation."""

    restored_path: Path
    safety_backup_path: Path
    integrity_check_results: list[str]


def export_backup(
    db_path: Path | str,
    backup_dir: Path | str,
    *,
    label: Optional[str] = None,
    retention_count: Optional[int] = BACKUP_RETENTION_COUNT,
) -> Path:
    """Write a timestamped snapshot of the database into ``backup_dir``.

    The SQLite online backup API is used, so the snapshot is consistent even
    while the application holds the database open.
    """
    database_path = Path(db_path)
    target_dir = Path(backup_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    if not database_path.exists():
        raise FileNotFoundError("Banco de dados não encontrado.")
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    suffix = f"_{label}" if label else ""
    backup_path = target_dir / f"{database_path.stem}_{timestamp}{suffix}.db"
    _copy_database(database_path, backup_path)
    logger.info("Backup written to %s", backup_path)
    prune_old_backups(target_dir, retention_count)
    return backup_path


def restore_backup(
    backup_file: Path | str,
    db_path: Path | str,
    backup_dir: Path | str,
    *,
    confirm_overwrite: Callable[[], bool],
) -> RestoreResult:
    """Replace the database with a backup after taking a safety snapshot."""
    if not confirm_overwrite():
        raise PermissionError("Restauração cancelada pelo usuário.")
    backup_path = Path(backup_file)
    if not backup_path.is_file():
        raise FileNotFoundError("Arquivo de backup não encontrado.")
    if backup_path.suffix.lower() != ".db":
        raise ValueError("O arquivo selecionado não é um banco de dados .db.")
    _validate_backup_contents(backup_path, EXPECTED_TABLES)

    database_path = Path(db_path)
    safety_backup = export_backup(
        database_path, backup_dir, label="pre_restore", retention_count=None
    )
    _copy_database(backup_path, database_path)
    results = run_integrity_check(database_path)
    logger.info("Integrity check after restore: %s", "; ".join(results))
    return RestoreResult(
        restored_path=database_path,
        safety_backup_path=safety_backup,
        integrity_check_results=results,
    )


def list_backups(backup_dir: Path | str) -> list[Path]:
    """Return backup files, newest first."""
    target_dir = Path(backup_dir)
    if not target_dir.exists():
        return []
    return sorted(
        (path for path in target_dir.glob("*.db") if path.is_file()),
        key=lambda path: (path.stat().st_mtime, path.name),
        reverse=True,
    )


def prune_old_backups(
    backup_dir: Path | str,
    retention_count: Optional[int] = BACKUP_RETENTION_COUNT,
) -> list[Path]:
    """Delete the oldest backups beyond ``retention_count``."""
    if retention_count is None or retention_count <= 0:
        return []
    stale = list_backups(backup_dir)[retention_count:]
    for path in stale:
        path.unlink(missing_ok=True)
    if stale:
        logger.info("Pruned %s old backup(s)", len(stale))
    return stale


def run_integrity_check(db_path: Path | str) -> list[str]:
    """Run ``PRAGMA integrity_check`` and return its result rows."""
    try:
        connection = sqlite3.connect(Path(db_path))
    except sqlite3.Error as exc:
        raise ValueError("Não foi possível abrir o banco para verificação.") from exc
    try:
        return [row[0] for row in connection.execute("PRAGMA integrity_check;")]
    finally:
        connection.close()


def _copy_database(source_path: Path, target_path: Path) -> None:
    source = sqlite3.connect(source_path)
    try:
        target = sqlite3.connect(target_path)
        try:
            source.backup(target)
        finally:
            target.close()
    finally:
        source.close()


def _validate_backup_contents(backup_path: Path, expected_tables: Iterable[str]) -> None:
    try:
        connection = sqlite3.connect(backup_path)
    except sqlite3.Error as exc:
        raise ValueError("Não foi possível abrir o arquivo de backup.") from exc
    try:
        tables = {
            row[0]
            for row in connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
        }
    except sqlite3.DatabaseError as exc:
        raise ValueError("O arquivo selecionado não é um banco de dados válido.") from exc
    finally:
        connection.close()
    missing = set(expected_tables) - tables
    if missing:
        raise ValueError(
            "O backup selecionado não contém as tabelas esperadas: "
            f"{', '.join(sorted(missing))}."
        )
