"""Session management for the iCOMM API."""

from __future__ import annotations

import base64
import json
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote_plus

from .api import (
    HTTP_OK,
    IcommApiAuthError,
    IcommApiClientError,
    RequestOutcome,
    build_request_body,
    create_headers,
    extract_login_tokens,
    is_auth_error,
)
from .const import (
    BRAND_AOSMITH,
    GRAPHQL_URL,
    LOGIN_QUERY,
    STATUS_LOGIN_FAILED,
    STATUS_LOGIN_SUCCESSFUL,
)
from .models import LoginTokens, Session, SessionState

if TYPE_CHECKING:
    import httpx

    from .api import IcommGraphQLClient
    from .attributes import AttributeStore

_LOGGER = logging.getLogger(__name__)


def build_passcode(email: str, password: str) -> str:
    """Encode credentials into the login passcode.

    The passcode is the base64 form of the URL-encoded JSON object
    ``{"email": ..., "password": ...}``.

    Args:
        email: Account e-mail address.
        password: Account password.

    Returns:
        The passcode string.

    """
    credentials = json.dumps(
        {"email": email, "password": password},
        separators=(",", ":"),
    )
    url_encoded = quote_plus(credentials)
    return base64.b64encode(url_encoded.encode("utf-8")).decode("utf-8")


async def async_authenticate(
    session: httpx.AsyncClient,
    email: str,
    password: str,
    brand: str = BRAND_AOSMITH,
) -> LoginTokens:
    """Log in once, without the retry machinery of the GraphQL client.

    Args:
        session: HTTP client session.
        email: Account e-mail address.
        password: Account password.
        brand: Brand identifier of the account.

    Returns:
        The tokens returned by the login query.

    Raises:
        IcommApiAuthError: If the credentials are rejected.
        IcommApiClientError: If the API request fails.

    """
    _LOGGER.debug("Authenticating with iCOMM API")
    response = await session.post(
        GRAPHQL_URL,
        headers=create_headers(brand),
        json=build_request_body(LOGIN_QUERY, {"passcode": build_passcode(email, password)}),
    )

    if is_auth_error(response.status_code):
        auth_error = "Authentication error"
        raise IcommApiAuthError(auth_error)
    if response.status_code != HTTP_OK:
        client_error = f"Request failed: {response.status_code}"
        raise IcommApiClientError(client_error)

    try:
        data = response.json()
    except ValueError as err:
        client_error = "Invalid login response"
        raise IcommApiClientError(client_error) from err

    tokens = extract_login_tokens(data) if isinstance(data, dict) else None
    if tokens is None:
        auth_error = "Login failed, no access token received"
        raise IcommApiAuthError(auth_error)

    _LOGGER.debug("Successfully authenticated with iCOMM API")
    return tokens


class IcommSessionManager:
    """Own the access token of one iCOMM account and log in when needed."""

    def __init__(
        self,
        email: str | None,
        password: str | None,
        store: AttributeStore,
    ) -> None:
        """Initialize the session manager.

        Args:
            email: Account e-mail address.
            password: Account password.
            store: Attribute store receiving login status updates.

        """
        self._email = email
        self._password = password
        self._store = store
        self._session = Session()

    @property
    def session(self) -> Session:
        """Return the current session."""
        return self._session

    @property
    def access_token(self) -> str | None:
        """Return the cached access token, if any."""
        return self._session.access_token

    def invalidate(self) -> None:
        """Drop the cached access token."""
        if self._session.access_token is not None:
            _LOGGER.debug("Invalidating cached access token")
        self._session.access_token = None

    async def async_ensure_session(self, client: IcommGraphQLClient) -> SessionState:
        """Make sure a token is cached, logging in if it is not.

        Args:
            client: GraphQL client used to send the login query.

        Returns:
            VALID if a token is cached, now or after the login. PENDING if
            the login timed out and its retry is scheduled. FAILED if the
            login was rejected or could not be sent.

        """
        if self._session.is_valid:
            _LOGGER.debug("Valid session, no need to request new")
            return SessionState.VALID

        passcode = build_passcode(self._email or "", self._password or "")
        outcome = await client.async_execute(
            LOGIN_QUERY,
            {"passcode": passcode},
            self.async_process_login_response,
            auto_login=False,
        )
        if self._session.is_valid:
            return SessionState.VALID
        if outcome is RequestOutcome.RETRY_SCHEDULED:
            _LOGGER.debug("Login retry scheduled")
            return SessionState.PENDING
        return SessionState.FAILED

    async def async_process_login_response(self, data: dict[str, Any]) -> None:
        """Cache the access token from a login response."""
        _LOGGER.debug("Login raw data = %s", data)

        tokens = extract_login_tokens(data)
        if tokens is None:
            _LOGGER.error("Login failed, no access token received")
            self._session.access_token = None
            self._store.set_status(STATUS_LOGIN_FAILED)
            return

        self._session.access_token = tokens.access_token
        self._store.set_status(STATUS_LOGIN_SUCCESSFUL)
        _LOGGER.info("Successfully logged in to iCOMM API")
