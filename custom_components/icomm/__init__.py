from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import (
    CONF_EMAIL,
    CONF_PASSWORD,
    CONF_SCAN_INTERVAL,
    Platform,
)
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import device_registry as dr

from .api import create_session_client
from .attributes import StoreEvent, StoreEventType
from .const import BRAND_AOSMITH, CONF_BRAND, DEFAULT_SCAN_INTERVAL, DOMAIN
from .coordinator import IcommCoordinator

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.SENSOR, Platform.WATER_HEATER]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up iCOMM integration for entry %s", entry.entry_id)

    email = entry.data.get(CONF_EMAIL)
    password = entry.data.get(CONF_PASSWORD)
    if not email or not password:
        _LOGGER.error("Missing credentials in configuration for entry %s", entry.entry_id)
        return False

    scan_interval = entry.data.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)
    coordinator = IcommCoordinator(
        hass,
        create_session_client(hass),
        email,
        password,
        brand=entry.data.get(CONF_BRAND, BRAND_AOSMITH),
        temperature_unit=hass.config.units.temperature_unit,
        scan_interval=scan_interval,
        config_entry=entry,
    )
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    def _handle_store_event(event: StoreEvent) -> None:
        if event.type is not StoreEventType.ENTITY_REMOVED:
            return
        device_registry = dr.async_get(hass)
        device = device_registry.async_get_device(
            identifiers={(DOMAIN, event.entity_id)}
        )
        if device is not None:
            _LOGGER.debug("Removing device %s from registry", event.entity_id)
            device_registry.async_remove_device(device.id)

    entry.async_on_unload(coordinator.store.register_listener(_handle_store_event))

    @callback
    def _handle_coordinator_update() -> None:
        _LOGGER.debug("iCOMM poll finished for entry %s", entry.entry_id)

    # Entities follow the store, this listener keeps the refresh timer running
    entry.async_on_unload(coordinator.async_add_listener(_handle_coordinator_update))

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception as err:
        _LOGGER.error("Failed to setup platforms for entry %s: %s", entry.entry_id, err)
        hass.data[DOMAIN].pop(entry.entry_id, None)
        return False

    await coordinator.async_refresh()

    if scan_interval:
        _LOGGER.info("Refresh rate: %s seconds", scan_interval)
    else:
        _LOGGER.info("Refresh rate: Manual")

    _LOGGER.info("Successfully setup iCOMM integration for entry %s", entry.entry_id)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading iCOMM integration for entry %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not unload_ok:
        _LOGGER.warning("Failed to unload some platforms for entry %s", entry.entry_id)
        return False

    coordinator: IcommCoordinator | None = hass.data.get(DOMAIN, {}).pop(
        entry.entry_id, None
    )
    if coordinator is not None:
        await coordinator.async_shutdown()
        _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)

    _LOGGER.info("Successfully unloaded iCOMM integration for entry %s", entry.entry_id)
    return True
