"""GraphQL client for the iCOMM cloud API.

This module provides the request/response plumbing for the iCOMM API:
headers, response classification, payload extraction and the client that
transparently re-authenticates and retries a request once.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import httpx
from homeassistant.helpers.httpx_client import create_async_httpx_client

from .const import (
    APP_VERSION,
    BRAND_AOSMITH,
    GRAPHQL_URL,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
    UNAUTHORIZED_ERROR,
    USER_AGENT,
)
from .models import (
    DEVICE_DATA_TYPES,
    LoginTokens,
    RemoteDevice,
    SessionState,
    SupportedMode,
    WaterHeaterData,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from homeassistant.core import HomeAssistant

    from .scheduler import Scheduler
    from .session import IcommSessionManager

    ResponseHandler = Callable[[dict[str, Any]], Awaitable[None]]

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_OK = 200
HTTP_UNAUTHORIZED = 401


class IcommApiClientError(Exception):
    """Base exception for iCOMM API client errors."""


class IcommApiAuthError(IcommApiClientError):
    """Exception raised for authentication errors."""


class RequestOutcome(StrEnum):
    """What became of a call to ``IcommGraphQLClient.async_execute``."""

    SUCCESS = "success"
    RETRY_SCHEDULED = "retry_scheduled"
    FAILED = "failed"


def create_headers(
    brand: str = BRAND_AOSMITH,
    access_token: str | None = None,
) -> dict[str, str]:
    """Create HTTP headers for iCOMM API requests.

    Args:
        brand: Brand identifier the account belongs to.
        access_token: Optional bearer token to include in headers.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {
        "brand": brand,
        "version": APP_VERSION,
        "User-Agent": USER_AGENT,
    }
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def build_request_body(query: str, variables: dict[str, Any]) -> dict[str, Any]:
    """Wrap a GraphQL document and its variables into a request body."""
    return {"query": query, "variables": variables}


def is_auth_error(status: int) -> bool:
    """Check if HTTP status code indicates authentication error.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 401, False otherwise.

    """
    return status == HTTP_UNAUTHORIZED


def is_unauthorized_response(data: Any) -> bool:
    """Check if a GraphQL response carries an UNAUTHORIZED_ERROR.

    Args:
        data: Decoded response body.

    Returns:
        True if any entry of the top-level error list has that code.

    """
    if not isinstance(data, dict):
        return False

    errors = data.get("errors")
    if not isinstance(errors, list):
        return False

    for error in errors:
        if not isinstance(error, dict):
            continue
        extensions = error.get("extensions")
        if isinstance(extensions, dict) and extensions.get("code") == UNAUTHORIZED_ERROR:
            return True
        if error.get("code") == UNAUTHORIZED_ERROR:
            return True
    return False


def json_object(data: Any, key: str) -> dict[str, Any]:
    """Return the object under ``key``, or an empty dict for anything else."""
    if not isinstance(data, dict):
        return {}
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def extract_login_tokens(data: dict[str, Any]) -> LoginTokens | None:
    """Extract the login tokens from a login response.

    Args:
        data: Decoded login response.

    Returns:
        LoginTokens if an access token is present, None otherwise.

    """
    tokens = json_object(data, "data")
    for key in ("login", "user", "tokens"):
        tokens = json_object(tokens, key)
    access_token = tokens.get("accessToken")
    if not access_token:
        return None
    return LoginTokens(
        access_token=access_token,
        id_token=tokens.get("idToken"),
        refresh_token=tokens.get("refreshToken"),
    )


def _parse_device_data(data: dict[str, Any]) -> WaterHeaterData:
    typename = data.get("__typename")
    if not isinstance(typename, str):
        typename = None
    data_cls = DEVICE_DATA_TYPES.get(typename, WaterHeaterData)
    raw_modes = data.get("modes")
    modes = [
        SupportedMode(mode=mode["mode"], controls=mode.get("controls"))
        for mode in (raw_modes if isinstance(raw_modes, list) else [])
        if isinstance(mode, dict) and mode.get("mode")
    ]
    return data_cls(
        typename=typename,
        temperature_setpoint=data.get("temperatureSetpoint"),
        temperature_setpoint_pending=bool(data.get("temperatureSetpointPending")),
        temperature_setpoint_previous=data.get("temperatureSetpointPrevious"),
        temperature_setpoint_maximum=data.get("temperatureSetpointMaximum"),
        modes=modes,
        is_online=data.get("isOnline"),
        firmware_version=data.get("firmwareVersion"),
        hot_water_status=data.get("hotWaterStatus"),
        mode=data.get("mode"),
        mode_pending=bool(data.get("modePending")),
    )


def extract_devices(data: dict[str, Any]) -> list[RemoteDevice]:
    """Extract the device list from a devices response.

    Args:
        data: Decoded devices response.

    Returns:
        List of RemoteDevice objects, skipping entries without a junction id.

    Raises:
        IcommApiClientError: If the response has no device list.

    """
    devices_data = json_object(data, "data").get("devices")
    if not isinstance(devices_data, list):
        error_msg = "Device list missing from response"
        raise IcommApiClientError(error_msg)

    devices = []
    for device in devices_data:
        if not isinstance(device, dict) or not device.get("junctionId"):
            _LOGGER.warning("Skipping device without junction id: %s", device)
            continue
        devices.append(
            RemoteDevice(
                junction_id=device["junctionId"],
                brand=device.get("brand"),
                model=device.get("model"),
                device_type=device.get("deviceType"),
                dsn=device.get("dsn"),
                name=device.get("name"),
                serial=device.get("serial"),
                install_location=json_object(device, "install").get("location"),
                data=_parse_device_data(json_object(device, "data")),
            )
        )
    return devices


def extract_mutation_result(data: dict[str, Any], field: str) -> bool:
    """Extract the boolean result of a mutation.

    Args:
        data: Decoded mutation response.
        field: Mutation name the result is keyed by.

    Returns:
        True only if the mutation reported success.

    """
    return json_object(data, "data").get(field) is True


def create_session_client(hass: HomeAssistant) -> httpx.AsyncClient:
    """Create the HTTP client used for iCOMM API requests.

    Args:
        hass: Home Assistant instance.

    Returns:
        Configured httpx AsyncClient.

    """
    return create_async_httpx_client(hass, timeout=REQUEST_TIMEOUT)


class IcommGraphQLClient:
    """Execute GraphQL requests for one iCOMM account.

    Expired sessions are detected reactively, either as an UNAUTHORIZED_ERROR
    in a 200 response or as an HTTP 401. The client then logs in again and
    retries the request once with auto-login disabled. A timed out request is
    retried once as well. Every other failure is logged and reported through
    ``on_error``.
    """

    def __init__(
        self,
        session: httpx.AsyncClient,
        session_manager: IcommSessionManager,
        scheduler: Scheduler,
        brand: str = BRAND_AOSMITH,
        on_error: Callable[[str], Any] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            session: HTTP client session.
            session_manager: Owner of the cached access token.
            scheduler: Scheduler used for delayed retries.
            brand: Brand identifier sent with every request.
            on_error: Optional callback receiving a failure message.

        """
        self._session = session
        self._session_manager = session_manager
        self._scheduler = scheduler
        self._brand = brand
        self._on_error = on_error
        self._lock = asyncio.Lock()

    @property
    def brand(self) -> str:
        """Return the brand identifier sent with requests."""
        return self._brand

    def _report_error(self, message: str) -> None:
        if self._on_error is not None:
            self._on_error(message)

    async def async_execute(
        self,
        query: str,
        variables: dict[str, Any],
        handler: ResponseHandler,
        auto_login: bool = True,
        is_retry: bool = False,
    ) -> RequestOutcome:
        """Send a GraphQL request and hand a successful response to ``handler``.

        Args:
            query: GraphQL document.
            variables: Variables for the document.
            handler: Coroutine function receiving the decoded response.
            auto_login: Log in again and retry once if the session expired.
            is_retry: True when this call is already the timeout retry.

        Returns:
            The outcome of this attempt.

        """
        headers = create_headers(self._brand, self._session_manager.access_token)

        try:
            async with self._lock:
                response = await self._session.post(
                    GRAPHQL_URL,
                    headers=headers,
                    json=build_request_body(query, variables),
                )
        except httpx.TimeoutException as err:
            return self._handle_timeout(
                err, query, variables, handler, auto_login, is_retry
            )
        except httpx.RequestError as err:
            _LOGGER.error("GraphQL request failed: %s", err)
            self._report_error(f"Connection Failed: {err}")
            return RequestOutcome.FAILED

        if is_auth_error(response.status_code):
            return await self._async_handle_unauthorized(
                query, variables, handler, auto_login, is_retry
            )

        if response.status_code != HTTP_OK:
            _LOGGER.error(
                "GraphQL request failed with status %s: %s",
                response.status_code,
                response.text,
            )
            self._report_error(f"Request failed: {response.status_code}")
            return RequestOutcome.FAILED

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            _LOGGER.error("GraphQL response is not a JSON object: %s", response.text)
            self._report_error("Request failed: invalid response")
            return RequestOutcome.FAILED

        if is_unauthorized_response(data):
            return await self._async_handle_unauthorized(
                query, variables, handler, auto_login, is_retry
            )

        await handler(data)
        return RequestOutcome.SUCCESS

    async def _async_handle_unauthorized(
        self,
        query: str,
        variables: dict[str, Any],
        handler: ResponseHandler,
        auto_login: bool,
        is_retry: bool,
    ) -> RequestOutcome:
        self._session_manager.invalidate()

        if not auto_login:
            _LOGGER.error("GraphQL request unauthorized after logging in again")
            self._report_error("Unauthorized")
            return RequestOutcome.FAILED

        _LOGGER.debug("Session expired, logging in again")
        if (
            await self._session_manager.async_ensure_session(self)
            is SessionState.FAILED
        ):
            _LOGGER.error("GraphQL request dropped, login failed")
            return RequestOutcome.FAILED

        self._scheduler.call_later(
            RETRY_DELAY,
            self.async_execute,
            query,
            variables,
            handler,
            False,
            is_retry,
        )
        return RequestOutcome.RETRY_SCHEDULED

    def _handle_timeout(
        self,
        err: httpx.TimeoutException,
        query: str,
        variables: dict[str, Any],
        handler: ResponseHandler,
        auto_login: bool,
        is_retry: bool,
    ) -> RequestOutcome:
        if is_retry:
            _LOGGER.error("GraphQL request failed: %s", err or "timed out")
            self._report_error("Connection Failed: request timed out")
            return RequestOutcome.FAILED

        _LOGGER.warning("GraphQL request timed out: %s; will retry", err or "timeout")
        self._scheduler.call_later(
            RETRY_DELAY,
            self.async_execute,
            query,
            variables,
            handler,
            auto_login,
            True,
        )
        return RequestOutcome.RETRY_SCHEDULED
