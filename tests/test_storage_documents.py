"""Tests for bucket storage and attached documents."""

import sqlite3

import pytest

from despachante_manager.domain.models import EntityType
from despachante_manager.repositories.attachment_repo import AttachmentRepo
from despachante_manager.services.document_service import sanitize_filename
from despachante_manager.services.errors import (
    NotFoundError,
    RemoteOperationError,
    ValidationError,
)
from despachante_manager.services.storage_service import (
    StorageService,
    avatar_path,
    vehicle_image_path,
)


class TestStorageService:
    """Tests for StorageService."""

    def test_upload_and_delete(self, tmp_path):
        storage = StorageService(tmp_path)
        url = storage.upload_file(b"abc", "u1/avatars/1.png", "avatars")
        assert url.startswith("file://")
        assert storage.locate(url) == ("avatars", "u1/avatars/1.png")
        assert storage.delete_file("u1/avatars/1.png", "avatars")
        assert not storage.delete_file("u1/avatars/1.png", "avatars")

    @pytest.mark.parametrize("path", ["../fora.txt", "/etc/passwd", "a/../../b", ""])
    def test_rejects_escaping_paths(self, tmp_path, path):
        with pytest.raises(ValidationError):
            StorageService(tmp_path).upload_file(b"x", path, "documents")

    def test_unknown_bucket(self, tmp_path):
        with pytest.raises(ValidationError):
            StorageService(tmp_path).upload_file(b"x", "a.txt", "segredos")

    def test_foreign_url_is_ignored(self, tmp_path):
        assert StorageService(tmp_path).locate("https://example.com/a.png") is None

    def test_path_helpers(self):
        assert avatar_path("u1", "Foto.PNG", timestamp=5) == "u1/avatars/5.png"
        assert vehicle_image_path("u1", "abc1d23", "a.jpg", timestamp=5) == "u1/ABC1D23/5.jpg"
        assert vehicle_image_path("u1", "abc1d23", "a.jpg", timestamp=5, index=2) == "u1/ABC1D23/5-2.jpg"


class TestDocumentService:
    """Tests for DocumentService."""

    def test_upload_list_delete(self, services, actor, make_client):
        client = make_client()
        doc = services.document_service.upload_document(
            actor, EntityType.CLIENT, client.id, "RG", "rg frente.pdf", b"%PDF"
        )
        assert doc.storage_path.endswith("-rg_frente.pdf")
        listed = services.document_service.list_documents(EntityType.CLIENT, client.id)
        assert [item.id for item in listed] == [doc.id]
        stored = services.storage.root / "documents" / doc.storage_path
        assert stored.read_bytes() == b"%PDF"
        assert services.document_service.delete_document(actor, doc.id)
        assert not stored.exists()
        assert services.document_service.list_documents(EntityType.CLIENT, client.id) == []

    def test_document_type_required(self, services, actor, make_client):
        client = make_client()
        with pytest.raises(ValidationError):
            services.document_service.upload_document(
                actor, EntityType.CLIENT, client.id, " ", "a.pdf", b"x"
            )

    def test_only_clients_and_vehicles(self, services, actor):
        with pytest.raises(ValidationError):
            services.document_service.upload_document(
                actor, EntityType.SERVICE, 1, "Guia", "a.pdf", b"x"
            )

    def test_unknown_entity(self, services, actor):
        with pytest.raises(NotFoundError):
            services.document_service.upload_document(
                actor, EntityType.VEHICLE, 77, "CRLV", "a.pdf", b"x"
            )

    def test_file_removed_when_record_fails(self, services, actor, make_client, monkeypatch):
        client = make_client()

        def broken_add(self, attachment):
            raise sqlite3.OperationalError("readonly database")

        monkeypatch.setattr(AttachmentRepo, "add", broken_add)
        with pytest.raises(RemoteOperationError):
            services.document_service.upload_document(
                actor, EntityType.CLIENT, client.id, "RG", "rg.pdf", b"x"
            )
        bucket_dir = services.storage.root / "documents"
        assert not any(path.is_file() for path in bucket_dir.rglob("*"))

    def test_documents_removed_with_vehicle(self, services, actor, make_client, make_vehicle):
        owner = make_client()
        vehicle = make_vehicle(owner.id)
        doc = services.document_service.upload_document(
            actor, EntityType.VEHICLE, vehicle.id, "CRLV", "crlv.pdf", b"x"
        )
        services.vehicle_service.delete_vehicle(actor, vehicle.id)
        assert not (services.storage.root / "documents" / doc.storage_path).exists()
        assert services.document_service.list_documents(EntityType.VEHICLE, vehicle.id) == []


def test_sanitize_filename():
    assert sanitize_filename("  Contrato  de venda (1).PDF ") == "Contrato_de_venda_1.pdf"
    assert sanitize_filename("..\\..\\x.txt") == "x.txt"
