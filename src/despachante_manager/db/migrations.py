"""Database migrations for SQLite schema versioning."""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3

from despachante_manager.db.connection import transaction
from despachante_manager.logging_config import get_logger


@dataclass(frozen=True)
class Migration:
    version: int
    script: str
    requires_foreign_keys_off: bool = False


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        script="""
        CREATE TABLE IF NOT EXISTS clients (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL DEFAULT '',
            cpf_cnpj TEXT,
            email TEXT,
            phone TEXT,
            address TEXT,
            avatar_url TEXT,
            client_type TEXT NOT NULL DEFAULT 'individual'
                CHECK (client_type IN ('individual', 'company')),
            doc_status TEXT NOT NULL DEFAULT 'pending'
                CHECK (doc_status IN ('pending', 'in_progress', 'completed')),
            marital_status TEXT,
            profession TEXT,
            nationality TEXT,
            naturalness TEXT,
            cnh_number TEXT,
            cnh_expiration_date TEXT,
            trade_name TEXT,
            contact_name TEXT,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS vehicles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            plate TEXT NOT NULL,
            chassis TEXT,
            renavam TEXT,
            brand TEXT,
            model TEXT,
            year_manufacture INTEGER,
            year_model INTEGER,
            color TEXT,
            fuel_type TEXT,
            owner_id INTEGER NOT NULL,
            licensing_expiration_date TEXT,
            image_urls TEXT NOT NULL DEFAULT '[]',
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (owner_id) REFERENCES clients(id) ON DELETE RESTRICT
        );

        CREATE TABLE IF NOT EXISTS services (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            client_id INTEGER NOT NULL,
            vehicle_id INTEGER NOT NULL,
            status TEXT NOT NULL
                CHECK (status IN ('todo', 'in_progress', 'waiting_docs', 'completed', 'canceled')),
            due_date TEXT,
            price REAL NOT NULL DEFAULT 0 CHECK (price >= 0),
            payer_client_id INTEGER,
            agent_name TEXT,
            detran_schedule TEXT,
            contact_phone TEXT,
            situation_notes TEXT,
            next_schedule TEXT,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE RESTRICT,
            FOREIGN KEY (vehicle_id) REFERENCES vehicles(id) ON DELETE RESTRICT,
            FOREIGN KEY (payer_client_id) REFERENCES clients(id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS service_checklist_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            service_id INTEGER NOT NULL,
            task_description TEXT NOT NULL,
            is_completed INTEGER NOT NULL DEFAULT 0,
            position INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY (service_id) REFERENCES services(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            description TEXT NOT NULL,
            category TEXT,
            transaction_date TEXT NOT NULL,
            amount REAL NOT NULL CHECK (amount > 0),
            type TEXT NOT NULL CHECK (type IN ('revenue', 'expense')),
            status TEXT NOT NULL CHECK (status IN ('pending', 'paid')),
            due_date TEXT,
            client_id INTEGER,
            service_id INTEGER,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE SET NULL,
            FOREIGN KEY (service_id) REFERENCES services(id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS audit_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            action TEXT NOT NULL,
            entity_type TEXT NOT NULL,
            entity_id TEXT,
            actor_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            details TEXT NOT NULL DEFAULT '{}'
        );

        CREATE INDEX IF NOT EXISTS idx_clients_name ON clients(name);
        CREATE INDEX IF NOT EXISTS idx_clients_doc_status ON clients(doc_status);
        CREATE INDEX IF NOT EXISTS idx_vehicles_owner_id ON vehicles(owner_id);
        CREATE INDEX IF NOT EXISTS idx_vehicles_plate ON vehicles(plate);
        CREATE INDEX IF NOT EXISTS idx_services_client_id ON services(client_id);
        CREATE INDEX IF NOT EXISTS idx_services_vehicle_id ON services(vehicle_id);
        CREATE INDEX IF NOT EXISTS idx_services_status ON services(status);
        CREATE INDEX IF NOT EXISTS idx_services_due_date ON services(due_date);
        CREATE INDEX IF NOT EXISTS idx_checklist_service_id
            ON service_checklist_items(service_id);
        CREATE INDEX IF NOT EXISTS idx_transactions_date
            ON transactions(transaction_date);
        CREATE INDEX IF NOT EXISTS idx_transactions_service_id
            ON transactions(service_id);
        CREATE INDEX IF NOT EXISTS idx_audit_log_entity
            ON audit_log(entity_type, entity_id);
        CREATE INDEX IF NOT EXISTS idx_audit_log_created_at
            ON audit_log(created_at);
        """,
    ),
    Migration(
        version=2,
        script="""
        CREATE TABLE IF NOT EXISTS attachments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            entity_type TEXT NOT NULL CHECK (entity_type IN ('client', 'vehicle')),
            entity_id INTEGER NOT NULL,
            document_type TEXT NOT NULL,
            file_name TEXT NOT NULL,
            storage_path TEXT NOT NULL,
            public_url TEXT NOT NULL,
            uploaded_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_attachments_entity
            ON attachments(entity_type, entity_id);

        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            role TEXT NOT NULL CHECK (role IN ('admin', 'manager', 'user')),
            avatar_url TEXT,
            created_at TEXT,
            updated_at TEXT
        );
        """,
    ),
]


def _fetch_schema_version(connection: sqlite3.Connection) -> int:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS app_meta (
            schema_version INTEGER NOT NULL
        );
        """
    )
    row = connection.execute(
        "SELECT schema_version FROM app_meta LIMIT 1"
    ).fetchone()
    if row is None:
        connection.execute("INSERT INTO app_meta (schema_version) VALUES (0)")
        return 0
    return int(row[0])


def apply_migrations(connection: sqlite3.Connection) -> int:
    """Apply pending database migrations and return the schema version."""
    logger = get_logger("migrations")
    with transaction(connection):
        current_version = _fetch_schema_version(connection)

    for migration in MIGRATIONS:
        if migration.version <= current_version:
            continue

        if migration.requires_foreign_keys_off:
            connection.execute("PRAGMA foreign_keys = OFF;")

        with transaction(connection):
            connection.executescript(migration.script)
            connection.execute(
                "UPDATE app_meta SET schema_version = ?",
                (migration.version,),
            )

        if migration.requires_foreign_keys_off:
            connection.execute("PRAGMA foreign_keys = ON;")

        logger.info("Applied schema migration version=%s", migration.version)
        current_version = migration.version
    return current_version
