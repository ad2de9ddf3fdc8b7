"""Coordinator for iCOMM water heater integration."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from . import api
from .api import IcommGraphQLClient, RequestOutcome
from .attributes import AttributeStore
from .commands import CommandDispatcher
from .const import (
    BRAND_AOSMITH,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    GET_DEVICES_QUERY,
    LOGIN_WAIT_DELAY,
    STATUS_MISSING_CREDENTIALS,
)
from .models import SessionState
from .registry import DeviceRegistry
from .scheduler import Scheduler
from .session import IcommSessionManager

if TYPE_CHECKING:
    import httpx
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)

POLL_KEY = "poll"


class IcommCoordinator(DataUpdateCoordinator[None]):
    """Sequence login, device polling and reconciliation for one account.

    The polled state lives in ``store`` rather than in ``data``. Follow-up
    polls (login wait, pending changes, after a command) share one keyed
    continuation, so at most one of them is waiting at any time.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        session: httpx.AsyncClient,
        email: str | None,
        password: str | None,
        brand: str = BRAND_AOSMITH,
        temperature_unit: str = "°F",
        scan_interval: int = DEFAULT_SCAN_INTERVAL,
        config_entry: ConfigEntry | None = None,
        scheduler: Scheduler | None = None,
        store: AttributeStore | None = None,
        clamp_days: bool = False,
    ) -> None:
        """Initialize the coordinator and its collaborators.

        Args:
            hass: Home Assistant instance.
            session: HTTP client session.
            email: Account e-mail address.
            password: Account password.
            brand: Brand identifier of the account.
            temperature_unit: Unit attached to temperature attributes.
            scan_interval: Seconds between polls, 0 for manual refresh only.
            config_entry: Config entry owning the coordinator.
            scheduler: Scheduler for delayed continuations.
            store: Attribute store receiving the polled state.
            clamp_days: Clamp out-of-range day counts instead of rejecting.

        """
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=scan_interval) if scan_interval else None,
        )
        self._email = email
        self._password = password
        self.store = store if store is not None else AttributeStore()
        self.scheduler = scheduler if scheduler is not None else Scheduler(hass)
        self.session_manager = IcommSessionManager(email, password, self.store)
        self.client = IcommGraphQLClient(
            session,
            self.session_manager,
            self.scheduler,
            brand=brand,
            on_error=self.store.set_status,
        )
        self.registry = DeviceRegistry(
            self.store,
            self.schedule_poll,
            temperature_unit,
        )
        self.commands = CommandDispatcher(
            self.client,
            self.store,
            self.schedule_poll,
            clamp_days=clamp_days,
        )

    def can_proceed(self) -> bool:
        """Return True if account credentials are configured."""
        if not self._email or not self._password:
            self.store.set_status(STATUS_MISSING_CREDENTIALS)
            _LOGGER.error("Cannot update without username and password")
            return False
        return True

    def schedule_poll(self, delay: float) -> None:
        """Poll again after ``delay`` seconds, replacing a poll already waiting."""
        self.scheduler.call_later(delay, self.async_poll, key=POLL_KEY)

    async def async_poll(self) -> RequestOutcome:
        """Poll the device list, logging in first when needed.

        Returns:
            The outcome of the devices request. RETRY_SCHEDULED also covers
            a poll deferred until a timed out login has been retried.

        """
        if not self.can_proceed():
            return RequestOutcome.FAILED

        state = await self.session_manager.async_ensure_session(self.client)
        if state is SessionState.PENDING:
            # Wait for the login retry to complete
            self.schedule_poll(LOGIN_WAIT_DELAY)
            return RequestOutcome.RETRY_SCHEDULED
        if state is SessionState.FAILED:
            _LOGGER.warning("Device poll skipped: %s", self.store.status)
            return RequestOutcome.FAILED

        outcome = await self.client.async_execute(
            GET_DEVICES_QUERY,
            {},
            self.async_process_devices_response,
        )
        _LOGGER.debug("Device poll finished: %s", outcome)
        return outcome

    async def _async_update_data(self) -> None:
        """Poll the iCOMM API for the periodic and on-demand refresh."""
        outcome = await self.async_poll()
        if outcome is RequestOutcome.FAILED:
            raise UpdateFailed(self.store.status or "Device poll failed")

    async def async_process_devices_response(self, data: dict[str, Any]) -> None:
        """Parse a devices response and reconcile local entities."""
        _LOGGER.debug("Got response %s", api.json_object(data, "data").get("devices"))

        try:
            devices = api.extract_devices(data)
        except api.IcommApiClientError as err:
            _LOGGER.error("Error connecting to API for status. %s", err)
            self.store.set_status(f"Connection Failed: {err}")
            return

        self.registry.reconcile(devices)

    async def async_set_mode(
        self,
        entity_id: str,
        mode: str,
        days: int | None = None,
    ) -> bool:
        """Change the operating mode of a water heater."""
        return await self.commands.async_set_mode(entity_id, mode, days)

    async def async_set_heating_setpoint(
        self,
        entity_id: str,
        temperature: float | None,
    ) -> bool:
        """Change the heating setpoint of a water heater."""
        return await self.commands.async_set_heating_setpoint(entity_id, temperature)

    async def async_shutdown(self) -> None:
        """Stop the refresh timer and cancel scheduled continuations."""
        await super().async_shutdown()
        await self.scheduler.async_shutdown()
