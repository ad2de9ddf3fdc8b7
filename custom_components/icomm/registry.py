"""Reconcile polled water heaters with local entities."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .const import (
    ATTR_BRAND,
    ATTR_DEVICE_TYPE,
    ATTR_DSN,
    ATTR_FIRMWARE_VERSION,
    ATTR_HEATING_SETPOINT,
    ATTR_INSTALL_LOCATION,
    ATTR_LEVEL,
    ATTR_MAXIMUM_TEMPERATURE,
    ATTR_MODE,
    ATTR_MODEL,
    ATTR_NAME,
    ATTR_ONLINE,
    ATTR_PREVIOUS_TEMPERATURE,
    ATTR_SERIAL_NUMBER,
    ATTR_THERMOSTAT_SETPOINT,
    COMPATIBLE_DEVICE_TYPES,
    DEFAULT_WATER_LEVEL,
    HOT_WATER_LEVELS,
    PENDING_REFRESH_DELAY,
    STATUS_CONNECTED,
    STATUS_NO_DEVICES,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .attributes import AttributeStore
    from .models import RemoteDevice

_LOGGER = logging.getLogger(__name__)


def water_level(hot_water_status: Any) -> int | float:
    """Convert the reported hot water status to a remaining percentage.

    Labels map LOW/MEDIUM/HIGH to 0/50/100. Numeric values grow as hot water
    is used, so they are inverted. Anything else reads as full.
    """
    if isinstance(hot_water_status, str):
        return HOT_WATER_LEVELS.get(hot_water_status, DEFAULT_WATER_LEVEL)
    if isinstance(hot_water_status, (int, float)) and not isinstance(
        hot_water_status, bool
    ):
        return 100 - hot_water_status
    return DEFAULT_WATER_LEVEL


def format_online(is_online: bool | None) -> str:
    """Render the online flag the way it is stored."""
    if is_online is None:
        return "null"
    return str(is_online).lower()


class DeviceRegistry:
    """Keep one local entity per compatible remote water heater."""

    def __init__(
        self,
        store: AttributeStore,
        schedule_refresh: Callable[[float], None],
        temperature_unit: str,
    ) -> None:
        """Initialize the registry.

        Args:
            store: Attribute store holding the local entities.
            schedule_refresh: Schedules one poll of the API after a delay.
            temperature_unit: Unit attached to temperature attributes.

        """
        self._store = store
        self._schedule_refresh = schedule_refresh
        self._temperature_unit = temperature_unit

    def reconcile(self, devices: list[RemoteDevice]) -> None:
        """Create, update and delete local entities to match ``devices``."""
        water_heaters = [
            device
            for device in devices
            if device.data.typename in COMPATIBLE_DEVICE_TYPES
        ]

        if not water_heaters:
            _LOGGER.warning("No compatible water heaters found")
            self._store.set_status(STATUS_NO_DEVICES)
            return

        self._store.set_status(STATUS_CONNECTED)

        pending = False
        for heater in water_heaters:
            if not self._store.has_entity(heater.junction_id):
                self._store.add_entity(heater.junction_id, heater.display_name)
            pending = self.project_attributes(heater) or pending

        present = {heater.junction_id for heater in water_heaters}
        for entity in list(self._store.device_entities()):
            if entity.entity_id not in present:
                self._store.remove_entity(entity.entity_id)

        if pending:
            self._schedule_refresh(PENDING_REFRESH_DELAY)

    def project_attributes(self, device: RemoteDevice) -> bool:
        """Copy a remote device's fields onto its entity's attributes.

        Returns:
            True if the heater still has a mode or setpoint change pending.

        """
        _LOGGER.debug("Water heater raw data %s", device)

        entity_id = device.junction_id
        entity = self._store.get_entity(entity_id)
        if entity is None:
            _LOGGER.debug("No local entity for %s", entity_id)
            return False

        data = device.data
        unit = self._temperature_unit
        upsert = self._store.upsert

        upsert(entity_id, ATTR_BRAND, device.brand)
        upsert(entity_id, ATTR_MODEL, device.model)
        upsert(entity_id, ATTR_DEVICE_TYPE, device.device_type)
        upsert(entity_id, ATTR_DSN, device.dsn)
        if device.name:
            entity.name = device.name
        upsert(entity_id, ATTR_NAME, entity.name)
        upsert(entity_id, ATTR_SERIAL_NUMBER, device.serial)
        upsert(entity_id, ATTR_INSTALL_LOCATION, device.install_location)

        upsert(entity_id, ATTR_THERMOSTAT_SETPOINT, data.temperature_setpoint, unit)
        upsert(entity_id, ATTR_HEATING_SETPOINT, data.temperature_setpoint, unit)
        upsert(
            entity_id, ATTR_MAXIMUM_TEMPERATURE, data.temperature_setpoint_maximum, unit
        )
        upsert(
            entity_id,
            ATTR_PREVIOUS_TEMPERATURE,
            data.temperature_setpoint_previous,
            unit,
        )
        upsert(entity_id, ATTR_MODE, data.mode)
        upsert(entity_id, ATTR_ONLINE, format_online(data.is_online))
        upsert(entity_id, ATTR_FIRMWARE_VERSION, data.firmware_version)
        upsert(entity_id, ATTR_LEVEL, water_level(data.hot_water_status), "%")

        entity.supported_modes = list(data.modes)

        if data.mode_pending or data.temperature_setpoint_pending:
            _LOGGER.info("Pending changes on %s", entity.name)
            return True
        return False
