"""Tests for VehicleService, including the ownership transfer."""

import sqlite3
from dataclasses import replace

import pytest

from despachante_manager.domain.models import (
    AuditAction,
    EntityType,
    ServiceStatus,
    TransactionStatus,
    TransactionType,
    Vehicle,
)
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo
from despachante_manager.services.errors import (
    ConflictError,
    NotFoundError,
    RemoteOperationError,
    ValidationError,
)
from despachante_manager.services.vehicle_service import TransferRequest, VehicleImage


def _count(connection, table):
    return connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _request(vehicle, seller, buyer, **overrides):
    values = dict(
        vehicle_id=vehicle.id,
        seller_id=seller.id,
        new_owner_id=buyer.id,
        price=200.0,
        due_date="2030-01-15",
        payer_id=buyer.id,
        agent_name="Rafael",
    )
    values.update(overrides)
    return TransferRequest(**values)


class TestVehicleCrud:
    """Tests for registering vehicles."""

    def test_plate_normalized(self, services, actor, make_client):
        owner = make_client()
        vehicle = services.vehicle_service.create_vehicle(
            actor, Vehicle(id=None, plate=" abc1d23 ", owner_id=owner.id)
        )
        assert vehicle.plate == "ABC1D23"

    def test_licensing_date_stored_canonically(self, make_client, make_vehicle):
        owner = make_client()
        vehicle = make_vehicle(owner.id, licensing_expiration_date="20250630")
        assert vehicle.licensing_expiration_date == "2025-06-30"

    def test_owner_must_exist(self, services, actor):
        with pytest.raises(NotFoundError):
            services.vehicle_service.create_vehicle(actor, Vehicle(id=None, plate="AAA0000", owner_id=42))

    def test_images_uploaded(self, services, actor, make_client):
        owner = make_client()
        images = [VehicleImage(file_name=f"foto{i}.jpg", data=b"jpg") for i in range(2)]
        vehicle = services.vehicle_service.create_vehicle(
            actor, Vehicle(id=None, plate="IMG1A23", owner_id=owner.id), images
        )
        assert len(vehicle.image_urls) == 2
        assert len(set(vehicle.image_urls)) == 2
        for url in vehicle.image_urls:
            bucket, path = services.storage.locate(url)
            assert bucket == "vehicle_images"
            assert (services.storage.root / bucket / path).read_bytes() == b"jpg"

    def test_at_most_four_images(self, services, actor, make_client):
        owner = make_client()
        images = [VehicleImage(file_name="a.jpg", data=b"x")] * 5
        with pytest.raises(ValidationError):
            services.vehicle_service.create_vehicle(
                actor, Vehicle(id=None, plate="IMG1A23", owner_id=owner.id), images
            )

    def test_uploads_removed_when_insert_fails(self, services, actor, make_client, monkeypatch):
        owner = make_client()

        def broken_create(self, vehicle):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(VehicleRepo, "create", broken_create)
        with pytest.raises(RemoteOperationError):
            services.vehicle_service.create_vehicle(
                actor,
                Vehicle(id=None, plate="IMG1A23", owner_id=owner.id),
                [VehicleImage(file_name="a.jpg", data=b"x")],
            )
        bucket_dir = services.storage.root / "vehicle_images"
        assert not any(path.is_file() for path in bucket_dir.rglob("*"))

    def test_delete_rejected_with_services(self, services, actor, make_client, make_vehicle, make_service):
        owner = make_client()
        vehicle = make_vehicle(owner.id)
        make_service(owner.id, vehicle.id)
        with pytest.raises(ValidationError):
            services.vehicle_service.delete_vehicle(actor, vehicle.id)

    def test_search_by_owner_name(self, services, make_client, make_vehicle):
        owner = make_client(name="Helena Prado")
        make_vehicle(owner.id, plate="HEL0A01")
        results = services.vehicle_service.search_vehicles("prado")
        assert [entry.vehicle.plate for entry in results] == ["HEL0A01"]
        assert results[0].owner_name == "Helena Prado"


class TestTransfer:
    """Tests for the vehicle ownership transfer."""

    def test_transfer_applies_all_effects(self, services, actor, connection, make_client, make_vehicle):
        seller = make_client(name="Alice")
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        vehicle = make_vehicle(seller.id)
        services_before = _count(connection, "services")
        transactions_before = _count(connection, "transactions")

        result = services.vehicle_service.transfer(actor, _request(vehicle, seller, buyer))

        assert result.vehicle.owner_id == buyer.id
        assert services.vehicle_service.get_vehicle(vehicle.id).owner_id == buyer.id
        assert _count(connection, "services") == services_before + 1
        assert _count(connection, "transactions") == transactions_before + 1
        assert result.service.client_id == seller.id
        assert result.service.price == 200
        assert result.service.status == ServiceStatus.TODO
        assert result.transaction.status == TransactionStatus.PENDING
        assert result.transaction.type == TransactionType.REVENUE
        assert result.transaction.amount == 200
        assert result.transaction.client_id == buyer.id
        assert result.transaction.service_id == result.service.id
        entries = AuditLogRepo(connection).list_for_entity(EntityType.VEHICLE, vehicle.id)
        transfers = [e for e in entries if e.action == AuditAction.VEHICLE_TRANSFERRED.value]
        assert len(transfers) == 1
        assert transfers[0].details["new_owner_id"] == buyer.id
        assert transfers[0].details["service_id"] == result.service.id

    def test_transfer_due_date_stored_canonically(self, services, actor, make_client, make_vehicle):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        vehicle = make_vehicle(seller.id)
        result = services.vehicle_service.transfer(
            actor, _request(vehicle, seller, buyer, due_date="20300115")
        )
        assert result.service.due_date == "2030-01-15"
        assert result.transaction.due_date == "2030-01-15"

    def test_transfer_creates_checklist(self, services, actor, make_client, make_vehicle):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        vehicle = make_vehicle(seller.id)
        result = services.vehicle_service.transfer(actor, _request(vehicle, seller, buyer))
        checklist = services.process_service.get_checklist(result.service.id)
        assert checklist
        assert services.process_service.progress(result.service.id) == 0

    def test_failure_rolls_everything_back(self, services, actor, connection, make_client, make_vehicle, monkeypatch):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        vehicle = make_vehicle(seller.id)
        services_before = _count(connection, "services")
        transactions_before = _count(connection, "transactions")

        def broken_append(self, action, *args, **kwargs):
            if action == AuditAction.VEHICLE_TRANSFERRED:
                raise sqlite3.OperationalError("database is locked")
            return original(self, action, *args, **kwargs)

        original = AuditLogRepo.append
        monkeypatch.setattr(AuditLogRepo, "append", broken_append)
        with pytest.raises(RemoteOperationError):
            services.vehicle_service.transfer(actor, _request(vehicle, seller, buyer))

        assert services.vehicle_service.get_vehicle(vehicle.id).owner_id == seller.id
        assert _count(connection, "services") == services_before
        assert _count(connection, "transactions") == transactions_before
        assert _count(connection, "service_checklist_items") == 0

    def test_stale_owner_is_a_conflict(self, services, actor, connection, make_client, make_vehicle):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        other = make_client(name="Clara", cpf_cnpj="333")
        vehicle = make_vehicle(seller.id)
        services.vehicle_service.update_vehicle(actor, replace(vehicle, owner_id=other.id))
        with pytest.raises(ConflictError):
            services.vehicle_service.transfer(actor, _request(vehicle, seller, buyer))
        assert _count(connection, "services") == 0

    def test_owner_guard_in_repository(self, connection, services, make_client, make_vehicle):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        vehicle = make_vehicle(seller.id)
        repo = VehicleRepo(connection)
        assert not repo.change_owner(vehicle.id, buyer.id, expected_owner_id=buyer.id)
        assert repo.change_owner(vehicle.id, buyer.id, expected_owner_id=seller.id)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"price": 0},
            {"agent_name": " "},
            {"due_date": ""},
        ],
    )
    def test_required_fields(self, services, actor, make_client, make_vehicle, overrides):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        vehicle = make_vehicle(seller.id)
        with pytest.raises(ValidationError):
            services.vehicle_service.transfer(actor, _request(vehicle, seller, buyer, **overrides))

    def test_seller_cannot_buy(self, services, actor, make_client, make_vehicle):
        seller = make_client()
        vehicle = make_vehicle(seller.id)
        with pytest.raises(ValidationError):
            services.vehicle_service.transfer(actor, _request(vehicle, seller, seller))

    def test_payer_must_be_a_party(self, services, actor, make_client, make_vehicle):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        third = make_client(name="Clara", cpf_cnpj="333")
        vehicle = make_vehicle(seller.id)
        with pytest.raises(ValidationError):
            services.vehicle_service.transfer(
                actor, _request(vehicle, seller, buyer, payer_id=third.id)
            )

    def test_paid_transfer(self, services, actor, make_client, make_vehicle):
        seller = make_client()
        buyer = make_client(name="Bruno", cpf_cnpj="222")
        vehicle = make_vehicle(seller.id)
        result = services.vehicle_service.transfer(
            actor,
            _request(vehicle, seller, buyer, payer_id=seller.id, payment_status=TransactionStatus.PAID),
        )
        assert result.transaction.status == TransactionStatus.PAID
        assert result.transaction.client_id == seller.id
        assert services.finance_service.summary().total_revenue == 200
