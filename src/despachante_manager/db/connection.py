"""Database connection helpers."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from despachante_manager.logging_config import get_logger

BUSY_TIMEOUT_MS = 5000

logger = get_logger(__name__)


def get_connection(database_path: Path | str) -> sqlite3.Connection:
    """Open the office database.

    The parent folder is created when missing. Foreign keys are enforced,
    since checklist cleanup and ledger unlinking rely on the ``ON DELETE``
    rules. A busy timeout lets the CLI wait for a backup holding the file.
    """
    path = Path(database_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(path)
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA foreign_keys = ON;")
    connection.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS};")
    return connection


@contextmanager
def transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Commit everything written inside the block, or none of it.

    Repositories never commit; services open one of these per operation so
    multi-table workflows such as a vehicle transfer land atomically.
    """
    try:
        yield connection
    except Exception as exc:
        connection.rollback()
        logger.warning("Transaction rolled back: %s", exc.__class__.__name__)
        raise
    connection.commit()
