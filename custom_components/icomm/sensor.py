"""Sensor entities for iCOMM water heaters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.const import PERCENTAGE

from .attributes import StoreEvent, StoreEventType
from .const import ATTR_LEVEL, DOMAIN
from .entity import IcommEntity, async_track_water_heaters

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import IcommCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the account status sensor and hot water level sensors."""
    coordinator: IcommCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([IcommStatusSensor(coordinator, entry.entry_id)])
    async_track_water_heaters(
        coordinator,
        entry,
        async_add_entities,
        IcommWaterLevelSensor,
    )


class IcommStatusSensor(SensorEntity):
    """Connection status of the iCOMM account."""

    _attr_should_poll = False
    _attr_icon = "mdi:cloud-check-outline"

    def __init__(self, coordinator: IcommCoordinator, entry_id: str) -> None:
        """Initialize the status sensor."""
        self._coordinator = coordinator
        self._attr_unique_id = f"{entry_id}_status"
        self._attr_name = "iCOMM Status"
        self._store_listener_unsub: Callable[[], None] | None = None

    @property
    def native_value(self) -> str | None:
        """Return the account status."""
        return self._coordinator.store.status

    async def async_added_to_hass(self) -> None:
        """Subscribe to status changes."""
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
        if event.type is StoreEventType.STATUS_CHANGED:
            self.async_write_ha_state()


class IcommWaterLevelSensor(IcommEntity, SensorEntity):
    """Remaining hot water of an iCOMM water heater."""

    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_translation_key = "hot_water_level"
    _attr_icon = "mdi:water-percent"

    def __init__(self, coordinator: IcommCoordinator, junction_id: str) -> None:
        """Initialize the hot water level sensor."""
        super().__init__(coordinator, junction_id)
        self._attr_unique_id = f"{junction_id}_hot_water_level"

    @property
    def native_value(self) -> int | float | None:
        """Return the remaining hot water percentage."""
        return self._attribute(ATTR_LEVEL)
