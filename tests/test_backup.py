"""Tests for database backup and restore."""

import sqlite3

import pytest

from despachante_manager.db.connection import get_connection
from despachante_manager.db.migrations import apply_migrations
from despachante_manager.utils.backup import (
    export_backup,
    list_backups,
    prune_old_backups,
    restore_backup,
    run_integrity_check,
)


@pytest.fixture
def database(tmp_path):
    path = tmp_path / "app.db"
    conn = get_connection(path)
    apply_migrations(conn)
    conn.close()
    return path


def _client_names(path):
    conn = sqlite3.connect(path)
    try:
        return [row[0] for row in conn.execute("SELECT name FROM clients ORDER BY id")]
    finally:
        conn.close()


def _insert_client(path, name):
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "INSERT INTO clients (name, client_type, doc_status, created_at, updated_at)"
            " VALUES (?, 'individual', 'pending', '2024-01-01', '2024-01-01')",
            (name,),
        )
        conn.commit()
    finally:
        conn.close()


class TestExportBackup:
    """Tests for export_backup and retention."""

    def test_export_and_list(self, database, tmp_path):
        backup_dir = tmp_path / "backups"
        path = export_backup(database, backup_dir)
        assert path.exists()
        assert path.name.startswith("app_")
        assert list_backups(backup_dir) == [path]
        assert run_integrity_check(path) == ["ok"]

    def test_retention(self, database, tmp_path):
        backup_dir = tmp_path / "backups"
        for _ in range(3):
            export_backup(database, backup_dir, retention_count=2)
        assert len(list_backups(backup_dir)) == 2
        assert prune_old_backups(backup_dir, 1)
        assert len(list_backups(backup_dir)) == 1

    def test_missing_database(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            export_backup(tmp_path / "nada.db", tmp_path / "backups")


class TestRestoreBackup:
    """Tests for restore_backup."""

    def test_restore_replaces_data(self, database, tmp_path):
        backup_dir = tmp_path / "backups"
        snapshot = export_backup(database, backup_dir)
        _insert_client(database, "Depois do backup")

        result = restore_backup(snapshot, database, backup_dir, confirm_overwrite=lambda: True)

        assert _client_names(database) == []
        assert result.integrity_check_results == ["ok"]
        assert _client_names(result.safety_backup_path) == ["Depois do backup"]

    def test_requires_confirmation(self, database, tmp_path):
        snapshot = export_backup(database, tmp_path / "backups")
        with pytest.raises(PermissionError):
            restore_backup(snapshot, database, tmp_path / "backups", confirm_overwrite=lambda: False)

    def test_rejects_foreign_database(self, database, tmp_path):
        other = tmp_path / "other.db"
        conn = sqlite3.connect(other)
        conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY)")
        conn.commit()
        conn.close()
        with pytest.raises(ValueError):
            restore_backup(other, database, tmp_path / "backups", confirm_overwrite=lambda: True)

    def test_rejects_other_extensions(self, database, tmp_path):
        text = tmp_path / "backup.txt"
        text.write_text("x")
        with pytest.raises(ValueError):
            restore_backup(text, database, tmp_path / "backups", confirm_overwrite=lambda: True)
