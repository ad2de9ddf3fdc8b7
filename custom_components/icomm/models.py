"""Data models for iCOMM water heater integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class SessionState(StrEnum):
    """Result of making sure a session exists."""

    VALID = "valid"
    PENDING = "pending"
    FAILED = "failed"


@dataclass
class Session:
    """Holds the bearer token for one iCOMM account."""

    access_token: str | None = None

    @property
    def is_valid(self) -> bool:
        """Return True when a token is cached."""
        return self.access_token is not None


@dataclass(frozen=True)
class LoginTokens:
    """Tokens returned by the login query."""

    access_token: str
    id_token: str | None = None
    refresh_token: str | None = None


@dataclass(frozen=True)
class SupportedMode:
    """An operating mode a water heater accepts, with its control style."""

    mode: str
    controls: str | None = None


@dataclass(slots=True)
class WaterHeaterData:
    """Status fields reported under a device's ``data`` node.

    The GraphQL ``__typename`` selects the concrete variant. Unknown type
    names are kept as this base class so they can be filtered out later.
    """

    typename: str | None
    temperature_setpoint: int | float | None = None
    temperature_setpoint_pending: bool = False
    temperature_setpoint_previous: int | float | None = None
    temperature_setpoint_maximum: int | float | None = None
    modes: list[SupportedMode] = field(default_factory=list)
    is_online: bool | None = None
    firmware_version: str | None = None
    hot_water_status: str | int | float | None = None
    mode: str | None = None
    mode_pending: bool = False


@dataclass(slots=True)
class NextGenHeatPumpData(WaterHeaterData):
    """Data for NextGenHeatPump heaters."""


@dataclass(slots=True)
class RE3ConnectedData(WaterHeaterData):
    """Data for RE3Connected heaters."""


DEVICE_DATA_TYPES: dict[str, type[WaterHeaterData]] = {
    "NextGenHeatPump": NextGenHeatPumpData,
    "RE3Connected": RE3ConnectedData,
}


@dataclass(slots=True)
class RemoteDevice:
    """A water heater as returned by the devices query."""

    junction_id: str
    brand: str | None
    model: str | None
    device_type: str | None
    dsn: str | None
    name: str | None
    serial: str | None
    install_location: str | None
    data: WaterHeaterData

    @property
    def display_name(self) -> str:
        """Return the device name, falling back to its install location."""
        return self.name or f"{self.install_location} Water Heater"


@dataclass(slots=True)
class Attribute:
    """A single attribute value held for a local entity."""

    value: Any
    unit: str | None = None


@dataclass
class LocalEntity:
    """Local mirror of one remote device, keyed by junction id."""

    entity_id: str
    name: str
    attributes: dict[str, Attribute] = field(default_factory=dict)
    supported_modes: list[SupportedMode] = field(default_factory=list)

    def find_mode(self, mode: str) -> SupportedMode | None:
        """Return the cached supported mode named ``mode``, if any."""
        return next((m for m in self.supported_modes if m.mode == mode), None)
