"""Tests for ProcessService."""

from dataclasses import replace

import pytest

from despachante_manager.domain.models import (
    Service,
    ServiceStatus,
    TransactionStatus,
    TransactionType,
)
from despachante_manager.services.errors import NotFoundError, ValidationError


@pytest.fixture
def client_and_vehicle(make_client, make_vehicle):
    client = make_client()
    vehicle = make_vehicle(client.id, plate="SRV1A11")
    return client, vehicle


class TestCreateService:
    """Tests for opening a process."""

    def test_checklist_from_catalog(self, services, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id, name="Renovação de CNH")
        tasks = services.process_service.get_checklist(service.id)
        assert [task.task_description for task in tasks][0] == "Agendar exame médico"
        assert [task.position for task in tasks] == list(range(len(tasks)))

    def test_explicit_checklist(self, services, actor, client_and_vehicle):
        client, vehicle = client_and_vehicle
        service = services.process_service.create_service(
            actor,
            Service(
                id=None,
                name="Serviço avulso",
                client_id=client.id,
                vehicle_id=vehicle.id,
                status=ServiceStatus.TODO,
                due_date=None,
                price=0,
            ),
            checklist=["Ligar para o cliente", " ", "Enviar guia"],
        )
        tasks = services.process_service.get_checklist(service.id)
        assert [task.task_description for task in tasks] == ["Ligar para o cliente", "Enviar guia"]

    def test_revenue_entry_for_payer(self, services, client_and_vehicle, make_client, make_service):
        client, vehicle = client_and_vehicle
        payer = make_client(name="Empresa Pagadora", cpf_cnpj="999")
        service = make_service(client.id, vehicle.id, price=320.0, payer_client_id=payer.id)
        entries = services.finance_service.list_transactions(service_id=service.id)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.client_id == payer.id
        assert entry.amount == 320.0
        assert entry.type == TransactionType.REVENUE
        assert entry.status == TransactionStatus.PENDING
        assert entry.description == "Serviço: Licenciamento anual de veículos - SRV1A11"

    def test_free_service_has_no_entry(self, services, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id, price=0)
        assert services.finance_service.list_transactions(service_id=service.id) == []

    def test_vehicle_must_exist(self, services, actor, client_and_vehicle):
        client, _ = client_and_vehicle
        with pytest.raises(NotFoundError):
            services.process_service.create_service(
                actor,
                Service(
                    id=None,
                    name="X",
                    client_id=client.id,
                    vehicle_id=404,
                    status=ServiceStatus.TODO,
                    due_date=None,
                    price=10,
                ),
            )


class TestLifecycle:
    """Tests for status changes."""

    def test_walk_to_completion(self, services, actor, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id)
        for status in (ServiceStatus.IN_PROGRESS, ServiceStatus.WAITING_DOCS, ServiceStatus.COMPLETED):
            service = services.process_service.change_status(actor, service.id, status)
        assert service.status == ServiceStatus.COMPLETED

    def test_terminal_state_is_final(self, services, actor, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id)
        services.process_service.change_status(actor, service.id, ServiceStatus.CANCELED)
        with pytest.raises(ValidationError):
            services.process_service.change_status(actor, service.id, ServiceStatus.IN_PROGRESS)

    def test_update_checks_transition(self, services, actor, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id)
        with pytest.raises(ValidationError):
            services.process_service.update_service(
                actor, replace(service, status=ServiceStatus.COMPLETED)
            )
        updated = services.process_service.update_service(
            actor, replace(service, agent_name="Fernanda")
        )
        assert updated.agent_name == "Fernanda"


class TestChecklist:
    """Tests for checklist toggling and progress."""

    def test_toggle_independent_items(self, services, actor, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id, name="Renovação de CNH")
        tasks = services.process_service.get_checklist(service.id)
        last = services.process_service.toggle_checklist_item(actor, tasks[-1].id)
        assert last.is_completed
        assert services.process_service.progress(service.id) == 100 / len(tasks)
        again = services.process_service.toggle_checklist_item(actor, tasks[-1].id)
        assert not again.is_completed
        assert services.process_service.progress(service.id) == 0

    def test_add_item(self, services, actor, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id, name="Sem modelo")
        item = services.process_service.add_checklist_item(actor, service.id, "Conferir multas")
        assert item.task_description == "Conferir multas"
        assert services.process_service.progress(service.id) == 0

    def test_toggle_unknown_item(self, services, actor):
        with pytest.raises(NotFoundError):
            services.process_service.toggle_checklist_item(actor, 12345)


class TestDeleteService:
    """Tests for the service deletion policy."""

    def test_cascades_checklist_and_unlinks_entries(self, services, actor, connection, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        service = make_service(client.id, vehicle.id, price=90)
        assert services.process_service.delete_service(actor, service.id)
        items = connection.execute(
            "SELECT COUNT(*) FROM service_checklist_items WHERE service_id = ?", (service.id,)
        ).fetchone()[0]
        assert items == 0
        entries = services.finance_service.list_transactions(client_id=client.id)
        assert len(entries) == 1
        assert entries[0].service_id is None

    def test_client_with_services_cannot_be_deleted(self, services, actor, client_and_vehicle, make_service):
        client, vehicle = client_and_vehicle
        make_service(client.id, vehicle.id)
        with pytest.raises(ValidationError):
            services.client_service.delete_client(actor, client.id)
