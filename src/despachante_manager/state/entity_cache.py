"""In-memory cache of entities kept fresh by data bus events."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Generic, Optional, TypeVar

from despachante_manager.logging_config import get_logger
from despachante_manager.state.data_bus import DataEventBus

T = TypeVar("T")


class EntityCache(Generic[T]):
    """Entities of one type keyed by id.

    Only the entity named in a change event is reloaded; the rest of the
    cache is left untouched.
    """

    def __init__(
        self,
        entity_type: str,
        load_all: Callable[[], Iterable[T]],
        load_one: Callable[[object], Optional[T]],
        key: Callable[[T], object] = lambda item: getattr(item, "id"),
        bus: Optional[DataEventBus] = None,
    ) -> None:
        self._entity_type = entity_type
        self._load_all = load_all
        self._load_one = load_one
        self._key = key
        self._items: dict[object, T] = {}
        self._loaded = False
        self._logger = get_logger(self.__class__.__name__)
        if bus is not None:
            bus.entity_changed.connect(self.handle_change)

    def refresh(self) -> None:
        self._items = {self._key(item): item for item in self._load_all()}
        self._loaded = True

    def items(self) -> list[T]:
        if not self._loaded:
            self.refresh()
        return list(self._items.values())

    def get(self, entity_id: object) -> Optional[T]:
        if not self._loaded:
            self.refresh()
        return self._items.get(entity_id)

    def handle_change(self, entity_type: str, entity_id: object, change: str) -> None:
        if entity_type != self._entity_type or not self._loaded:
            return
        if change == "deleted":
            self._items.pop(entity_id, None)
            return
        item = self._load_one(entity_id)
        if item is None:
            self._items.pop(entity_id, None)
        else:
            self._items[entity_id] = item
        self._logger.debug(
            "Cache updated entity=%s id=%s change=%s", entity_type, entity_id, change
        )
