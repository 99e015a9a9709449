"""Shared fixtures: a migrated scratch database and a signed-in admin."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from despachante_manager.app_services import build_services
from despachante_manager.db.connection import get_connection
from despachante_manager.db.migrations import apply_migrations
from despachante_manager.domain.models import Client, ClientType, Service, ServiceStatus, Vehicle


@pytest.fixture(autouse=True)
def app_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    monkeypatch.setenv("DESPACHANTE_HOME", str(home))
    return home


@pytest.fixture
def connection(app_home):
    conn = get_connection(app_home.parent / "test.db")
    apply_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def services(connection, tmp_path):
    return build_services(
        connection,
        storage_root=tmp_path / "storage",
        config_path=tmp_path / "config.json",
    )


@pytest.fixture
def admin(services):
    return services.user_service.bootstrap_admin("Ana Admin", "admin@example.com")


@pytest.fixture
def actor(admin, services):
    services.session.sign_in(admin.email)
    return services.session.current_actor_id()


@pytest.fixture
def make_client(services, actor):
    def factory(name="Maria Silva", cpf_cnpj="123.456.789-00", **fields):
        fields.setdefault("client_type", ClientType.INDIVIDUAL)
        client = Client(id=None, name=name, cpf_cnpj=cpf_cnpj, **fields)
        return services.client_service.create_client(actor, client)

    return factory


@pytest.fixture
def make_vehicle(services, actor):
    def factory(owner_id, plate="ABC1D23", **fields):
        vehicle = Vehicle(id=None, plate=plate, owner_id=owner_id, **fields)
        return services.vehicle_service.create_vehicle(actor, vehicle)

    return factory


@pytest.fixture
def make_service(services, actor):
    def factory(client_id, vehicle_id, name="Licenciamento anual de veículos", price=150.0, **fields):
        fields.setdefault("status", ServiceStatus.TODO)
        fields.setdefault("due_date", (date.today() + timedelta(days=7)).isoformat())
        service = Service(
            id=None,
            name=name,
            client_id=client_id,
            vehicle_id=vehicle_id,
            price=price,
            **fields,
        )
        return services.process_service.create_service(actor, service)

    return factory
