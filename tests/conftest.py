"""Pytest configuration and fixtures for iCOMM tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Hashable
from typing import Any
from unittest.mock import Mock

import pytest

from custom_components.icomm.attributes import AttributeStore

ACCESS_TOKEN = "access_token_value"


class FakeScheduler:
    """Scheduler double that records continuations instead of sleeping."""

    def __init__(self) -> None:
        """Initialize with no pending calls."""
        self.calls: list[tuple[float, Callable[..., Awaitable[Any]], tuple[Any, ...]]] = []
        self.keys: list[Hashable | None] = []

    @property
    def pending(self) -> int:
        """Return the number of recorded continuations."""
        return len(self.calls)

    def call_later(
        self,
        delay: float,
        action: Callable[..., Awaitable[Any]],
        *args: Any,
        key: Hashable | None = None,
    ) -> None:
        """Record a continuation, replacing one recorded under the same key."""
        if key is not None and key in self.keys:
            index = self.keys.index(key)
            del self.calls[index]
            del self.keys[index]
        self.calls.append((delay, action, args))
        self.keys.append(key)

    async def async_run_pending(self) -> None:
        """Run every recorded continuation once, in order."""
        calls, self.calls, self.keys = self.calls, [], []
        for _, action, args in calls:
            await action(*args)

    async def async_shutdown(self) -> None:
        """Drop every recorded continuation."""
        self.calls.clear()
        self.keys.clear()


def make_device(
    junction_id: str = "A",
    typename: str = "NextGenHeatPump",
    **data: Any,
) -> dict[str, Any]:
    """Build a raw device record as returned by the devices query."""
    device_data = {
        "__typename": typename,
        "temperatureSetpoint": 130,
        "temperatureSetpointPending": False,
        "temperatureSetpointPrevious": 125,
        "temperatureSetpointMaximum": 150,
        "modes": [
            {"mode": "HYBRID", "controls": None},
            {"mode": "HEAT_PUMP", "controls": None},
            {"mode": "ELECTRIC", "controls": "SELECT_DAYS"},
            {"mode": "VACATION", "controls": "SELECT_DAYS"},
        ],
        "isOnline": True,
        "firmwareVersion": "1.2.3",
        "hotWaterStatus": "HIGH",
        "mode": "HYBRID",
        "modePending": False,
    }
    device_data.update(data)
    return {
        "brand": "aosmith",
        "model": "HPTS-50",
        "deviceType": "NEXT_GEN_HEAT_PUMP",
        "dsn": f"DSN-{junction_id}",
        "junctionId": junction_id,
        "name": f"Heater {junction_id}",
        "serial": f"SERIAL-{junction_id}",
        "install": {"location": "Basement"},
        "data": device_data,
    }


def devices_response(*devices: dict[str, Any]) -> dict[str, Any]:
    """Wrap raw device records into a devices query response."""
    return {"data": {"devices": list(devices)}}


@pytest.fixture
def mock_hass() -> Mock:
    """Create a mock Home Assistant instance."""
    hass = Mock()
    hass.data = {}
    return hass


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Fixture providing a recording scheduler."""
    return FakeScheduler()


@pytest.fixture
def store() -> AttributeStore:
    """Fixture providing an empty attribute store."""
    return AttributeStore()


@pytest.fixture
def sample_login_response() -> dict:
    """Fixture providing a successful login response."""
    return {
        "data": {
            "login": {
                "user": {
                    "tokens": {
                        "accessToken": ACCESS_TOKEN,
                        "idToken": "id_token_value",
                        "refreshToken": "refresh_token_value",
                    },
                },
            },
        },
    }


@pytest.fixture
def sample_failed_login_response() -> dict:
    """Fixture providing a login response without tokens."""
    return {"data": {"login": None}}


@pytest.fixture
def sample_unauthorized_response() -> dict:
    """Fixture providing a 200 response carrying UNAUTHORIZED_ERROR."""
    return {
        "data": None,
        "errors": [
            {
                "message": "Unauthorized",
                "extensions": {"code": "UNAUTHORIZED_ERROR"},
            },
        ],
    }


@pytest.fixture
def sample_devices_response() -> dict:
    """Fixture providing a devices response with two water heaters."""
    return devices_response(make_device("A"), make_device("B", "RE3Connected"))
