"""Tests for the connection helpers."""

import sqlite3

import pytest

from despachante_manager.db.connection import get_connection, transaction


@pytest.fixture
def notes(tmp_path):
    conn = get_connection(tmp_path / "nested" / "notes.db")
    conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT NOT NULL)")
    conn.commit()
    yield conn
    conn.close()


def _bodies(conn):
    return [row["body"] for row in conn.execute("SELECT body FROM notes ORDER BY id")]


class TestGetConnection:
    """Tests for get_connection."""

    def test_creates_parent_folder_and_enforces_foreign_keys(self, tmp_path, notes):
        assert (tmp_path / "nested" / "notes.db").exists()
        assert notes.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert notes.execute("PRAGMA busy_timeout").fetchone()[0] > 0


class TestTransaction:
    """Tests for the transaction scope."""

    def test_commits_on_success(self, notes):
        with transaction(notes):
            notes.execute("INSERT INTO notes (body) VALUES ('a')")
            notes.execute("INSERT INTO notes (body) VALUES ('b')")
        assert not notes.in_transaction
        assert _bodies(notes) == ["a", "b"]

    def test_rolls_back_every_statement_on_failure(self, notes):
        with pytest.raises(sqlite3.IntegrityError):
            with transaction(notes):
                notes.execute("INSERT INTO notes (body) VALUES ('a')")
                notes.execute("INSERT INTO notes (body) VALUES (NULL)")
        assert _bodies(notes) == []
