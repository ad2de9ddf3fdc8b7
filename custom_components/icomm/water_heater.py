"""Water heater entities for iCOMM water heaters.

This module exposes every polled iCOMM water heater as a Home Assistant
water heater entity with setpoint and operating mode control.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.components.water_heater import (
    WaterHeaterEntity,
    WaterHeaterEntityFeature,
)
from homeassistant.const import ATTR_TEMPERATURE, PRECISION_WHOLE
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import entity_platform

from .const import (
    ATTR_BRAND,
    ATTR_DAYS,
    ATTR_DEVICE_TYPE,
    ATTR_DSN,
    ATTR_FIRMWARE_VERSION,
    ATTR_HEATING_SETPOINT,
    ATTR_INSTALL_LOCATION,
    ATTR_LEVEL,
    ATTR_MAXIMUM_TEMPERATURE,
    ATTR_MODE,
    ATTR_MODEL,
    ATTR_PREVIOUS_TEMPERATURE,
    ATTR_SERIAL_NUMBER,
    DOMAIN,
    MIN_TEMPERATURE,
    SERVICE_SET_MODE,
)
from .entity import IcommEntity, async_track_water_heaters

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import IcommCoordinator

_LOGGER = logging.getLogger(__name__)

EXTRA_ATTRIBUTES = {
    "brand": ATTR_BRAND,
    "model": ATTR_MODEL,
    "device_type": ATTR_DEVICE_TYPE,
    "dsn": ATTR_DSN,
    "serial_number": ATTR_SERIAL_NUMBER,
    "install_location": ATTR_INSTALL_LOCATION,
    "firmware_version": ATTR_FIRMWARE_VERSION,
    "previous_temperature": ATTR_PREVIOUS_TEMPERATURE,
    "hot_water_level": ATTR_LEVEL,
}

SET_MODE_SCHEMA = {
    vol.Required("mode"): cv.string,
    vol.Optional(ATTR_DAYS): vol.Coerce(int),
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up water heater entities for iCOMM devices."""
    coordinator: IcommCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_track_water_heaters(
        coordinator,
        entry,
        async_add_entities,
        IcommWaterHeaterEntity,
    )

    platform = entity_platform.async_get_current_platform()
    platform.async_register_entity_service(
        SERVICE_SET_MODE,
        SET_MODE_SCHEMA,
        "async_set_mode",
    )


class IcommWaterHeaterEntity(IcommEntity, WaterHeaterEntity):
    """Water heater entity for an iCOMM device."""

    _attr_name = None
    _attr_precision = PRECISION_WHOLE
    _attr_supported_features = (
        WaterHeaterEntityFeature.TARGET_TEMPERATURE
        | WaterHeaterEntityFeature.OPERATION_MODE
    )

    def __init__(self, coordinator: IcommCoordinator, junction_id: str) -> None:
        """Initialize the water heater entity."""
        super().__init__(coordinator, junction_id)
        self._attr_unique_id = junction_id

    @property
    def temperature_unit(self) -> str:
        """Return the unit the heater reports temperatures in."""
        return (
            self._coordinator.store.get_unit(self._junction_id, ATTR_HEATING_SETPOINT)
            or self.hass.config.units.temperature_unit
        )

    @property
    def target_temperature(self) -> float | None:
        """Return the heating setpoint."""
        return self._attribute(ATTR_HEATING_SETPOINT)

    @property
    def min_temp(self) -> float:
        """Return the lowest accepted setpoint."""
        return MIN_TEMPERATURE

    @property
    def max_temp(self) -> float:
        """Return the highest accepted setpoint."""
        maximum = self._attribute(ATTR_MAXIMUM_TEMPERATURE)
        return maximum if maximum is not None else super().max_temp

    @property
    def current_operation(self) -> str | None:
        """Return the current operating mode."""
        return self._attribute(ATTR_MODE)

    @property
    def operation_list(self) -> list[str]:
        """Return the modes the heater supports."""
        local = self.local_entity
        if local is None:
            return []
        return [mode.mode for mode in local.supported_modes]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the descriptive attributes of the heater."""
        return {
            key: self._attribute(name)
            for key, name in EXTRA_ATTRIBUTES.items()
            if self._attribute(name) is not None
        }

    async def async_set_temperature(self, **kwargs: Any) -> None:
        """Set the heating setpoint.

        Args:
            **kwargs: Keyword arguments containing temperature data.

        """
        await self._coordinator.async_set_heating_setpoint(
            self._junction_id,
            kwargs.get(ATTR_TEMPERATURE),
        )

    async def async_set_operation_mode(self, operation_mode: str) -> None:
        """Set the operating mode.

        Args:
            operation_mode: The mode to set.

        """
        await self._coordinator.async_set_mode(self._junction_id, operation_mode)

    async def async_set_mode(self, mode: str, days: int | None = None) -> None:
        """Set the operating mode with an optional day count.

        Args:
            mode: The mode to set.
            days: Number of days for modes that take one.

        """
        await self._coordinator.async_set_mode(self._junction_id, mode, days)
