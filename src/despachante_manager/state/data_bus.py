"""Shared event bus for data change notifications."""

from __future__ import annotations

from typing import Optional

from PySide6 import QtCore


class DataEventBus(QtCore.QObject):
    """Global signal emitter for data change events.

    ``entity_changed`` carries ``(entity_type, entity_id, change)`` where
    ``change`` is one of ``created``, ``updated`` or ``deleted``.
    """

    data_changed = QtCore.Signal()
    entity_changed = QtCore.Signal(str, object, str)


def emit_change(
    bus: Optional[DataEventBus],
    entity_type: str,
    entity_id: object,
    change: str,
) -> None:
    if bus is None:
        return
    bus.entity_changed.emit(str(entity_type), entity_id, change)
    bus.data_changed.emit()
