"""Validate and send mode and setpoint commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .api import extract_mutation_result
from .const import (
    ATTR_HEATING_SETPOINT,
    ATTR_MAXIMUM_TEMPERATURE,
    ATTR_MODE,
    COMMAND_REFRESH_DELAY,
    CONTROLS_SELECT_DAYS,
    MAX_DAYS,
    MIN_DAYS,
    MIN_TEMPERATURE,
    UPDATE_MODE_MUTATION,
    UPDATE_SETPOINT_MUTATION,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .api import IcommGraphQLClient
    from .attributes import AttributeStore

_LOGGER = logging.getLogger(__name__)


def normalize_temperature(
    temperature: float | None,
    maximum: float | None,
    name: str = "water heater",
) -> float:
    """Bring a requested setpoint into the range the heater accepts.

    Args:
        temperature: Requested setpoint, or None.
        maximum: Current maximum setpoint of the heater, if known.
        name: Display name used in log messages.

    Returns:
        The setpoint to send.

    """
    if temperature is None:
        return MIN_TEMPERATURE

    if temperature < MIN_TEMPERATURE:
        _LOGGER.warning(
            "%s on %s is less than minimum temperature %s. "
            "Will set to minimum temperature.",
            temperature,
            name,
            MIN_TEMPERATURE,
        )
        return MIN_TEMPERATURE

    if maximum is not None and temperature > maximum:
        _LOGGER.warning(
            "setHeatingSetpoint(%s) on %s is greater than maximum temperature %s. "
            "Will set to maximum temperature.",
            temperature,
            name,
            maximum,
        )
        _LOGGER.info(
            "You may be able to increase the maximum temperature from the "
            "water heater's control panel."
        )
        return maximum

    return temperature


class CommandDispatcher:
    """Turn user commands into iCOMM mutations.

    Day counts outside the accepted range are rejected unless the dispatcher
    is created with ``clamp_days=True``, in which case they are clamped.
    """

    def __init__(
        self,
        client: IcommGraphQLClient,
        store: AttributeStore,
        schedule_refresh: Callable[[float], None],
        clamp_days: bool = False,
    ) -> None:
        self._client = client
        self._store = store
        self._schedule_refresh = schedule_refresh
        self._clamp_days = clamp_days

    async def async_set_mode(
        self,
        entity_id: str,
        mode: str,
        days: int | None = None,
    ) -> bool:
        """Change the operating mode of a water heater.

        Args:
            entity_id: Junction id of the heater.
            mode: Requested mode name.
            days: Optional day count for modes that take one.

        Returns:
            True if a mutation was submitted.

        """
        entity = self._store.get_entity(entity_id)
        if entity is None:
            _LOGGER.warning("setMode(%s) on unknown water heater %s", mode, entity_id)
            return False

        _LOGGER.info("setMode(%s) on %s invoked.", mode, entity.name)

        target = entity.find_mode(mode)
        if target is None:
            _LOGGER.warning("setMode(%s) on %s is not supported.", mode, entity.name)
            return False

        if target.controls == CONTROLS_SELECT_DAYS:
            if days is None:
                days = MAX_DAYS
            elif days < MIN_DAYS or days > MAX_DAYS:
                _LOGGER.warning(
                    "Mode %s on %s only supports %s-%s days.",
                    mode,
                    entity.name,
                    MIN_DAYS,
                    MAX_DAYS,
                )
                if not self._clamp_days:
                    return False
                days = min(max(days, MIN_DAYS), MAX_DAYS)
        else:
            if days is not None:
                _LOGGER.warning(
                    "Mode %s on %s does not support setting the number of days.",
                    mode,
                    entity.name,
                )
                days = None
            if self._store.get(entity_id, ATTR_MODE) == target.mode:
                _LOGGER.info("%s is already in mode %s", entity.name, mode)
                return False

        mode_payload: dict[str, Any] = {"mode": target.mode}
        if days is not None:
            mode_payload["days"] = int(days)

        await self._client.async_execute(
            UPDATE_MODE_MUTATION,
            {"junctionId": entity_id, "mode": mode_payload},
            self.async_process_mode_change,
        )
        return True

    async def async_set_heating_setpoint(
        self,
        entity_id: str,
        temperature: float | None,
    ) -> bool:
        """Change the heating setpoint of a water heater.

        Args:
            entity_id: Junction id of the heater.
            temperature: Requested setpoint, or None for the minimum.

        Returns:
            True if a mutation was submitted.

        """
        entity = self._store.get_entity(entity_id)
        if entity is None:
            _LOGGER.warning(
                "setHeatingSetpoint(%s) on unknown water heater %s",
                temperature,
                entity_id,
            )
            return False

        _LOGGER.info("setHeatingSetpoint(%s) on %s invoked.", temperature, entity.name)

        value = round(
            normalize_temperature(
                temperature,
                self._store.get(entity_id, ATTR_MAXIMUM_TEMPERATURE),
                entity.name,
            )
        )
        if value == self._store.get(entity_id, ATTR_HEATING_SETPOINT):
            _LOGGER.info("%s is already set to %s", entity.name, value)
            return False

        await self._client.async_execute(
            UPDATE_SETPOINT_MUTATION,
            {"junctionId": entity_id, "value": value},
            self.async_process_setpoint_change,
        )
        return True

    async def async_process_mode_change(self, data: dict[str, Any]) -> None:
        """Handle the updateMode response."""
        self._process_change(data, "updateMode")

    async def async_process_setpoint_change(self, data: dict[str, Any]) -> None:
        """Handle the updateSetpoint response."""
        self._process_change(data, "updateSetpoint")

    def _process_change(self, data: dict[str, Any], field: str) -> None:
        _LOGGER.debug("State change response: %s", data)

        if not extract_mutation_result(data, field):
            _LOGGER.error("Failed to apply %s: %s", field, data)

        self._schedule_refresh(COMMAND_REFRESH_DELAY)
