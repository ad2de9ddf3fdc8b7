"""Delayed continuations on the Home Assistant event loop.

Every "try again later" step of the integration (login wait, request retry,
pending-state and post-command re-polls) is submitted here. A continuation
submitted with a key replaces the one already waiting under that key, so
repeated requests for the same follow-up collapse into one.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_call_later

from .const import DOMAIN

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable
    from datetime import datetime

_LOGGER = logging.getLogger(__name__)


class Scheduler:
    """Run coroutine functions after a delay."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the scheduler.

        Args:
            hass: Home Assistant instance owning the timers.

        """
        self._hass = hass
        self._cancel_callbacks: dict[Hashable, CALLBACK_TYPE] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._sequence = itertools.count()

    @property
    def pending(self) -> int:
        """Return the number of continuations waiting for their delay."""
        return len(self._cancel_callbacks)

    def call_later(
        self,
        delay: float,
        action: Callable[..., Awaitable[Any]],
        *args: Any,
        key: Hashable | None = None,
    ) -> None:
        """Await ``action(*args)`` after ``delay`` seconds.

        Args:
            delay: Seconds to wait before running the action.
            action: Coroutine function to run.
            *args: Positional arguments for the action.
            key: Optional name; a waiting continuation with the same key is
                cancelled and replaced.

        """
        if key is None:
            key = ("call", next(self._sequence))
        elif (cancel := self._cancel_callbacks.pop(key, None)) is not None:
            _LOGGER.debug("Rescheduling %s", key)
            cancel()

        name = getattr(action, "__name__", repr(action))

        @callback
        def _async_fire(_now: datetime) -> None:
            self._cancel_callbacks.pop(key, None)
            task = self._hass.async_create_background_task(
                self._async_run(name, action, *args),
                name=f"{DOMAIN} {name}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        self._cancel_callbacks[key] = async_call_later(self._hass, delay, _async_fire)

    async def _async_run(
        self,
        name: str,
        action: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> None:
        try:
            await action(*args)
        except Exception:
            _LOGGER.exception("Scheduled %s failed", name)

    async def async_shutdown(self) -> None:
        """Cancel every continuation that has not finished yet."""
        for cancel in self._cancel_callbacks.values():
            cancel()
        self._cancel_callbacks.clear()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
