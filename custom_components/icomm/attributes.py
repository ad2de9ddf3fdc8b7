"""Per-entity attribute state with change notification.

The store is the only path through which polled state reaches Home
Assistant. Writes that do not change a value are dropped so listeners only
hear about real changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from .const import ACCOUNT_ENTITY_ID, ATTR_STATUS
from .models import Attribute, LocalEntity

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

_LOGGER = logging.getLogger(__name__)


class StoreEventType(StrEnum):
    """Kinds of change the store reports."""

    ENTITY_ADDED = "entity_added"
    ENTITY_REMOVED = "entity_removed"
    ATTRIBUTE_CHANGED = "attribute_changed"
    STATUS_CHANGED = "status_changed"


@dataclass(frozen=True)
class StoreEvent:
    """A change notification emitted by the attribute store."""

    type: StoreEventType
    entity_id: str
    name: str | None = None
    value: Any = None
    unit: str | None = None


class AttributeStore:
    """Key/value attribute state for the account and its water heaters.

    Water heaters are keyed by junction id. The account entity is held
    apart from them, so no junction id can collide with it.
    """

    def __init__(self) -> None:
        """Initialize the store with the account entity."""
        self._account = LocalEntity(entity_id=ACCOUNT_ENTITY_ID, name="iCOMM")
        self._entities: dict[str, LocalEntity] = {}
        self._listeners: list[Callable[[StoreEvent], None]] = []

    def register_listener(
        self,
        callback: Callable[[StoreEvent], None],
    ) -> Callable[[], None]:
        """Register a callback for store events.

        Args:
            callback: Function to call for every store event.

        Returns:
            A function to unregister the callback.

        """
        self._listeners.append(callback)

        def unregister() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unregister

    def _notify(self, event: StoreEvent) -> None:
        for callback in list(self._listeners):
            callback(event)

    @property
    def account(self) -> LocalEntity:
        """Return the account entity."""
        return self._account

    def has_entity(self, entity_id: str) -> bool:
        """Return True if a water heater with this junction id exists."""
        return entity_id in self._entities

    def get_entity(self, entity_id: str) -> LocalEntity | None:
        """Return the water heater with this junction id, if any."""
        return self._entities.get(entity_id)

    def device_entities(self) -> Iterator[LocalEntity]:
        """Iterate over the water heater entities."""
        return iter(list(self._entities.values()))

    def add_entity(self, entity_id: str, name: str) -> LocalEntity:
        """Create a child entity and notify listeners."""
        entity = LocalEntity(entity_id=entity_id, name=name)
        self._entities[entity_id] = entity
        _LOGGER.info("Added child device %s, %s", entity_id, name)
        self._notify(StoreEvent(StoreEventType.ENTITY_ADDED, entity_id))
        return entity

    def remove_entity(self, entity_id: str) -> None:
        """Delete a child entity and notify listeners."""
        entity = self._entities.pop(entity_id, None)
        if entity is None:
            return
        _LOGGER.info("Removing child device %s, %s", entity_id, entity.name)
        self._notify(StoreEvent(StoreEventType.ENTITY_REMOVED, entity_id))

    def get(self, entity_id: str, name: str) -> Any:
        """Return the current value of an attribute, or None."""
        entity = self._entities.get(entity_id)
        if entity is None or name not in entity.attributes:
            return None
        return entity.attributes[name].value

    def get_unit(self, entity_id: str, name: str) -> str | None:
        """Return the unit of an attribute, or None."""
        entity = self._entities.get(entity_id)
        if entity is None or name not in entity.attributes:
            return None
        return entity.attributes[name].unit

    def upsert(
        self,
        entity_id: str,
        name: str,
        value: Any,
        unit: str | None = None,
    ) -> bool:
        """Write a water heater attribute if its value changed.

        Args:
            entity_id: Junction id of the heater owning the attribute.
            name: Attribute name.
            value: New value.
            unit: Optional unit of measurement.

        Returns:
            True if the value changed and listeners were notified.

        """
        entity = self._entities.get(entity_id)
        if entity is None:
            _LOGGER.debug("Ignoring %s for unknown entity %s", name, entity_id)
            return False
        return self._write(
            entity, StoreEventType.ATTRIBUTE_CHANGED, name, value, unit
        )

    def _write(
        self,
        entity: LocalEntity,
        event_type: StoreEventType,
        name: str,
        value: Any,
        unit: str | None,
    ) -> bool:
        current = entity.attributes.get(name)
        if current is not None and current.value == value:
            return False

        entity.attributes[name] = Attribute(value=value, unit=unit)
        if unit is not None:
            _LOGGER.info("Event: %s = %s%s", name, value, unit)
        else:
            _LOGGER.info("Event: %s = %s", name, value)
        self._notify(
            StoreEvent(
                event_type,
                entity.entity_id,
                name=name,
                value=value,
                unit=unit,
            )
        )
        return True

    @property
    def status(self) -> str | None:
        """Return the account connection status."""
        attribute = self._account.attributes.get(ATTR_STATUS)
        return attribute.value if attribute is not None else None

    def set_status(self, status: str) -> bool:
        """Write the account connection status."""
        return self._write(
            self._account, StoreEventType.STATUS_CHANGED, ATTR_STATUS, status, None
        )
