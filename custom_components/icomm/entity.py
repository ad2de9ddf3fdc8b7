"""Base entity for iCOMM water heaters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity import Entity

from .attributes import StoreEvent, StoreEventType
from .const import (
    ATTR_BRAND,
    ATTR_FIRMWARE_VERSION,
    ATTR_MODEL,
    ATTR_ONLINE,
    ATTR_SERIAL_NUMBER,
    BRANDS,
    DOMAIN,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import IcommCoordinator
    from .models import LocalEntity

_LOGGER = logging.getLogger(__name__)


def async_track_water_heaters(
    coordinator: IcommCoordinator,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
    factory: Callable[[IcommCoordinator, str], Entity],
) -> None:
    """Add an entity for every current and future water heater.

    Args:
        coordinator: Coordinator owning the attribute store.
        entry: Config entry the entities belong to.
        async_add_entities: Callback adding entities to the platform.
        factory: Builds the platform entity for a junction id.

    """
    known: set[str] = set()

    def _add(junction_ids: list[str]) -> None:
        new_ids = [junction_id for junction_id in junction_ids if junction_id not in known]
        if not new_ids:
            return
        known.update(new_ids)
        async_add_entities([factory(coordinator, junction_id) for junction_id in new_ids])

    def _handle_store_event(event: StoreEvent) -> None:
        if event.type is StoreEventType.ENTITY_ADDED:
            _add([event.entity_id])
        elif event.type is StoreEventType.ENTITY_REMOVED:
            known.discard(event.entity_id)

    _add([entity.entity_id for entity in coordinator.store.device_entities()])
    entry.async_on_unload(coordinator.store.register_listener(_handle_store_event))


class IcommEntity(Entity):
    """An entity mirroring one water heater from the attribute store."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(self, coordinator: IcommCoordinator, junction_id: str) -> None:
        """Initialize the entity.

        Args:
            coordinator: Coordinator owning the attribute store.
            junction_id: Junction id of the mirrored water heater.

        """
        self._coordinator = coordinator
        self._junction_id = junction_id
        self._store_listener_unsub: Callable[[], None] | None = None

    @property
    def local_entity(self) -> LocalEntity | None:
        """Return the local entity backing this entity."""
        return self._coordinator.store.get_entity(self._junction_id)

    def _attribute(self, name: str) -> Any:
        return self._coordinator.store.get(self._junction_id, name)

    @property
    def available(self) -> bool:
        """Return True if the heater is known and online."""
        return self.local_entity is not None and self._attribute(ATTR_ONLINE) == "true"

    @property
    def device_info(self) -> DeviceInfo:
        """Return device information for the device registry."""
        local = self.local_entity
        brand = self._attribute(ATTR_BRAND)
        return DeviceInfo(
            identifiers={(DOMAIN, self._junction_id)},
            name=local.name if local is not None else self._junction_id,
            manufacturer=BRANDS.get(str(brand).lower(), brand),
            model=self._attribute(ATTR_MODEL),
            serial_number=self._attribute(ATTR_SERIAL_NUMBER),
            sw_version=self._attribute(ATTR_FIRMWARE_VERSION),
        )

    async def async_added_to_hass(self) -> None:
        """Subscribe to attribute changes of the heater."""
        await super().async_added_to_hass()
        self._store_listener_unsub = self._coordinator.store.register_listener(
            self._handle_store_event
        )

    async def async_will_remove_from_hass(self) -> None:
        """Unsubscribe from the attribute store."""
        await super().async_will_remove_from_hass()

        if self._store_listener_unsub is not None:
            self._store_listener_unsub()
            self._store_listener_unsub = None

    def _handle_store_event(self, event: StoreEvent) -> None:
        if event.entity_id != self._junction_id:
            return
        if event.type is StoreEventType.ATTRIBUTE_CHANGED:
            self.async_write_ha_state()

    async def async_update(self) -> None:
        """Poll the iCOMM API on demand."""
        await self._coordinator.async_request_refresh()
