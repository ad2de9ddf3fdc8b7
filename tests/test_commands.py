"""Tests for iCOMM mode and setpoint commands."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from conftest import devices_response, make_device

from custom_components.icomm.api import extract_devices
from custom_components.icomm.attributes import AttributeStore
from custom_components.icomm.commands import CommandDispatcher, normalize_temperature
from custom_components.icomm.const import (
    COMMAND_REFRESH_DELAY,
    MIN_TEMPERATURE,
    UPDATE_MODE_MUTATION,
    UPDATE_SETPOINT_MUTATION,
)
from custom_components.icomm.registry import DeviceRegistry


@pytest.fixture
def client() -> MagicMock:
    """Fixture providing a GraphQL client double."""
    mock_client = MagicMock()
    mock_client.async_execute = AsyncMock()
    return mock_client


@pytest.fixture
def schedule_refresh() -> Mock:
    """Fixture providing the delayed poll callback."""
    return Mock()


@pytest.fixture
def populated_store(store: AttributeStore) -> AttributeStore:
    """Fixture providing a store holding heater A in HYBRID mode."""
    DeviceRegistry(store, Mock(), "°F").reconcile(
        extract_devices(devices_response(make_device("A")))
    )
    return store


def _dispatcher(
    client: MagicMock,
    store: AttributeStore,
    schedule_refresh: Mock,
    *,
    clamp_days: bool = False,
) -> CommandDispatcher:
    return CommandDispatcher(
        client, store, schedule_refresh, clamp_days=clamp_days
    )


class TestNormalizeTemperature:
    """Tests for normalize_temperature function."""

    def test_none_becomes_minimum(self) -> None:
        """Test that a missing value is sent as the minimum."""
        assert normalize_temperature(None, 150) == MIN_TEMPERATURE

    def test_below_minimum_is_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that low values are raised to the minimum with a warning."""
        with caplog.at_level(logging.WARNING):
            assert normalize_temperature(80, 150) == MIN_TEMPERATURE
        assert "less than minimum temperature" in caplog.text

    def test_above_maximum_is_lowered(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that high values are lowered to the maximum with a hint."""
        with caplog.at_level(logging.INFO):
            assert normalize_temperature(160, 150) == 150
        assert "greater than maximum temperature" in caplog.text
        assert "control panel" in caplog.text

    def test_in_range_value_is_kept(self) -> None:
        """Test that valid values pass through."""
        assert normalize_temperature(120, 150) == 120
        assert normalize_temperature(150, 150) == 150
        assert normalize_temperature(160, None) == 160


class TestSetMode:
    """Tests for CommandDispatcher.async_set_mode."""

    @pytest.mark.asyncio
    async def test_set_mode_sends_mutation(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that a supported mode change is submitted without days."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_mode("A", "HEAT_PUMP") is True

        client.async_execute.assert_awaited_once_with(
            UPDATE_MODE_MUTATION,
            {"junctionId": "A", "mode": {"mode": "HEAT_PUMP"}},
            dispatcher.async_process_mode_change,
        )

    @pytest.mark.asyncio
    async def test_select_days_mode_defaults_to_maximum_days(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that a day-count mode without days sends 100."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        await dispatcher.async_set_mode("A", "VACATION")

        variables = client.async_execute.await_args.args[1]
        assert variables["mode"] == {"mode": "VACATION", "days": 100}

    @pytest.mark.asyncio
    async def test_select_days_mode_passes_days(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that an in-range day count is sent."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        await dispatcher.async_set_mode("A", "ELECTRIC", 7)

        variables = client.async_execute.await_args.args[1]
        assert variables["mode"] == {"mode": "ELECTRIC", "days": 7}

    @pytest.mark.asyncio
    async def test_out_of_range_days_are_rejected(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that too many days send nothing by default."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_mode("A", "VACATION", 150) is False
        assert await dispatcher.async_set_mode("A", "VACATION", 0) is False
        client.async_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_out_of_range_days_are_clamped_when_enabled(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that clamping sends the nearest bound."""
        dispatcher = _dispatcher(
            client, populated_store, schedule_refresh, clamp_days=True
        )

        await dispatcher.async_set_mode("A", "VACATION", 150)
        await dispatcher.async_set_mode("A", "VACATION", -3)

        sent = [call.args[1]["mode"]["days"] for call in client.async_execute.await_args_list]
        assert sent == [100, 1]

    @pytest.mark.asyncio
    async def test_unsupported_mode_sends_nothing(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a mode absent from the supported list is refused."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        with caplog.at_level(logging.WARNING):
            assert await dispatcher.async_set_mode("A", "TURBO") is False

        client.async_execute.assert_not_awaited()
        assert "is not supported" in caplog.text

    @pytest.mark.asyncio
    async def test_days_are_dropped_for_modes_without_day_control(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that days are ignored with a warning for plain modes."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        with caplog.at_level(logging.WARNING):
            await dispatcher.async_set_mode("A", "HEAT_PUMP", 5)

        variables = client.async_execute.await_args.args[1]
        assert variables["mode"] == {"mode": "HEAT_PUMP"}
        assert "does not support setting the number of days" in caplog.text

    @pytest.mark.asyncio
    async def test_current_mode_is_not_sent_again(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that requesting the current plain mode is a no-op."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_mode("A", "HYBRID") is False
        client.async_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_entity_sends_nothing(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that commands for unknown heaters are dropped."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_mode("Z", "HEAT_PUMP") is False
        assert await dispatcher.async_set_heating_setpoint("Z", 120) is False
        client.async_execute.assert_not_awaited()


class TestSetHeatingSetpoint:
    """Tests for CommandDispatcher.async_set_heating_setpoint."""

    @pytest.mark.asyncio
    async def test_setpoint_is_capped_at_maximum(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that a setpoint above the maximum sends the maximum."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_heating_setpoint("A", 160) is True

        client.async_execute.assert_awaited_once_with(
            UPDATE_SETPOINT_MUTATION,
            {"junctionId": "A", "value": 150},
            dispatcher.async_process_setpoint_change,
        )

    @pytest.mark.asyncio
    async def test_setpoint_sent_as_integer(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that fractional setpoints are sent as whole numbers."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        await dispatcher.async_set_heating_setpoint("A", 120.0)

        value = client.async_execute.await_args.args[1]["value"]
        assert value == 120
        assert isinstance(value, int)

    @pytest.mark.asyncio
    async def test_current_setpoint_is_not_sent_again(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that requesting the current setpoint is a no-op."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_heating_setpoint("A", 130) is False
        client.async_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_setpoint_rounding_to_current_is_not_sent(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that a fraction rounding to the current setpoint is a no-op."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_heating_setpoint("A", 130.4) is False
        client.async_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fractional_setpoint_is_rounded(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that fractional setpoints are rounded, not truncated."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        assert await dispatcher.async_set_heating_setpoint("A", 140.6) is True
        assert client.async_execute.await_args.args[1] == {
            "junctionId": "A",
            "value": 141,
        }


class TestMutationResponses:
    """Tests for the mutation response handlers."""

    @pytest.mark.asyncio
    async def test_successful_change_schedules_refresh(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
    ) -> None:
        """Test that a confirmed mutation triggers a delayed poll."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        await dispatcher.async_process_mode_change({"data": {"updateMode": True}})

        schedule_refresh.assert_called_once_with(COMMAND_REFRESH_DELAY)

    @pytest.mark.asyncio
    async def test_failed_change_logs_and_still_refreshes(
        self,
        client: MagicMock,
        populated_store: AttributeStore,
        schedule_refresh: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a rejected mutation is logged and re-polled."""
        dispatcher = _dispatcher(client, populated_store, schedule_refresh)

        with caplog.at_level(logging.ERROR):
            await dispatcher.async_process_setpoint_change(
                {"data": {"updateSetpoint": False}}
            )

        assert "Failed to apply updateSetpoint" in caplog.text
        schedule_refresh.assert_called_once_with(COMMAND_REFRESH_DELAY)
