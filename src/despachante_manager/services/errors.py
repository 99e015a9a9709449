"""Custom service layer errors."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager


class ServiceError(Exception):
    """Base error for service-layer failures."""


class ValidationError(ServiceError):
    """Raised when a business rule validation fails."""


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""


class NotAuthenticatedError(ServiceError):
    """Raised when a mutating operation has no signed-in actor."""


class PermissionDeniedError(ServiceError):
    """Raised when the actor's role does not allow the operation."""


class ConflictError(ServiceError):
    """Raised when the stored state changed since the caller last read it."""


class RemoteOperationError(ServiceError):
    """Raised when the database or the file storage rejects an operation."""


class PartialWorkflowError(ServiceError):
    """Raised when a workflow failed after some steps were already durable."""

    def __init__(self, message: str, completed_steps: Sequence[str]) -> None:
        super().__init__(message)
        self.completed_steps = list(completed_steps)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise store and filesystem failures as ``RemoteOperationError``."""
    try:
        yield
    except (sqlite3.Error, OSError) as exc:
        raise RemoteOperationError(f"Falha ao {operation}: {exc}") from exc
