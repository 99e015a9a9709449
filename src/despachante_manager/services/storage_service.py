"""Local bucket storage for avatars, vehicle images and documents."""

from __future__ import annotations

import time
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

from despachante_manager.config import STORAGE_BUCKETS
from despachante_manager.logging_config import get_logger
from despachante_manager.paths import get_storage_dir
from despachante_manager.services.errors import (
    PartialWorkflowError,
    RemoteOperationError,
    ValidationError,
    store_errors,
)


def _extension(file_name: str) -> str:
    suffix = PurePosixPath(file_name).suffix.lstrip(".").lower()
    return suffix or "bin"


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def avatar_path(actor_id: str, file_name: str, timestamp: Optional[int] = None) -> str:
    """Object path for an avatar: ``<actor>/avatars/<ts>.<ext>``."""
    stamp = timestamp if timestamp is not None else _timestamp_ms()
    return f"{actor_id}/avatars/{stamp}.{_extension(file_name)}"


def vehicle_image_path(
    actor_id: str,
    plate: str,
    file_name: str,
    timestamp: Optional[int] = None,
    *,
    index: int = 0,
) -> str:
    """Object path for a vehicle image: ``<actor>/<plate>/<ts>.<ext>``.

    Images after the first in one batch get an ``-<index>`` suffix on the
    timestamp so they do not overwrite each other.
    """
    stamp = timestamp if timestamp is not None else _timestamp_ms()
    name = f"{stamp}-{index}" if index else str(stamp)
    return f"{actor_id}/{plate.strip().upper()}/{name}.{_extension(file_name)}"


class StorageService:
    """Stores files under ``<root>/<bucket>/<path>`` and hands out file URIs."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = Path(root) if root is not None else get_storage_dir()
        self._logger = get_logger(self.__class__.__name__)

    @property
    def root(self) -> Path:
        return self._root

    def upload_file(self, data: bytes, path: str, bucket: str) -> str:
        target = self._resolve(path, bucket)
        with store_errors("enviar arquivo"):
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        self._logger.info("Stored file bucket=%s path=%s", bucket, path)
        return self.public_url(path, bucket)

    def delete_file(self, path: str, bucket: str) -> bool:
        target = self._resolve(path, bucket)
        if not target.exists():
            return False
        with store_errors("remover arquivo"):
            target.unlink()
        self._logger.info("Removed file bucket=%s path=%s", bucket, path)
        return True

    def public_url(self, path: str, bucket: str) -> str:
        return self._resolve(path, bucket).as_uri()

    def locate(self, public_url: str) -> Optional[tuple[str, str]]:
        """Map a URL issued by this storage back to ``(bucket, path)``."""
        parsed = urlparse(public_url)
        if parsed.scheme != "file":
            return None
        candidate = Path(unquote(parsed.path)).resolve()
        root = self._root.resolve()
        try:
            relative = candidate.relative_to(root)
        except ValueError:
            return None
        parts = relative.parts
        if len(parts) < 2 or parts[0] not in STORAGE_BUCKETS:
            return None
        return parts[0], "/".join(parts[1:])

    def delete_url(self, public_url: str) -> bool:
        location = self.locate(public_url)
        if location is None:
            return False
        bucket, path = location
        return self.delete_file(path, bucket)

    def _resolve(self, path: str, bucket: str) -> Path:
        if bucket not in STORAGE_BUCKETS:
            raise ValidationError(f"Bucket de armazenamento inválido: {bucket}.")
        relative = PurePosixPath(path.strip())
        if not path.strip() or relative.is_absolute() or ".." in relative.parts:
            raise ValidationError("Caminho de arquivo inválido.")
        bucket_dir = (self._root / bucket).resolve()
        target = (bucket_dir / Path(*relative.parts)).resolve()
        try:
            target.relative_to(bucket_dir)
        except ValueError as exc:
            raise ValidationError("Caminho de arquivo inválido.") from exc
        return target

    def discard_uploads(self, uploads: list[tuple[str, str]], label: str) -> None:
        """Undo uploads after a failed database write.

        Raises ``PartialWorkflowError`` when a file cannot be removed, since
        the upload is then left orphaned in the bucket.
        """
        leftovers: list[str] = []
        for path, bucket in uploads:
            try:
                self.delete_file(path, bucket)
            except RemoteOperationError:
                self._logger.exception(
                    "Failed to discard upload bucket=%s path=%s", bucket, path
                )
                leftovers.append(path)
        if leftovers:
            raise PartialWorkflowError(
                f"Falha ao salvar {label}; {len(leftovers)} arquivo(s) enviado(s) "
                "não puderam ser removidos.",
                ["file_uploaded"],
            )

    def remove_urls(self, urls: list[str], completed_step: str) -> None:
        """Remove files of a record that was already deleted."""
        leftovers: list[str] = []
        for url in urls:
            try:
                self.delete_url(url)
            except RemoteOperationError:
                self._logger.exception("Failed to remove stored file url=%s", url)
                leftovers.append(url)
        if leftovers:
            raise PartialWorkflowError(
                f"Registro excluído, mas {len(leftovers)} arquivo(s) não foram removidos.",
                [completed_step],
            )
