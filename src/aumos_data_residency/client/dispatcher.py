"""Authenticated request dispatch to the control-plane.

:meth:`RequestDispatcher.dispatch` attaches the session's bearer token to a
verb/path/body call.  When the control-plane answers 401 or 403 the token is
refreshed once and the call is repeated; a second rejection raises
:class:`~aumos_data_residency.errors.AuthExhaustedError`.  Any other
non-success status raises :class:`~aumos_data_residency.errors.RemoteError`
without a retry, and network failures propagate as
:class:`~aumos_data_residency.errors.TransportError`.

Example
-------
>>> dispatcher = RequestDispatcher.from_api_key(
...     api_key="abc123",
...     identity_url="https://flightdeck.cplane.cloud/",
...     base_url="https://metadata.cplane.cloud/",
... )
>>> dispatcher.dispatch("GET", "v1/restrict/config")  # doctest: +SKIP
"""
from __future__ import annotations

import json
import logging
from enum import Enum

from aumos_data_residency.client.credentials import Credential, CredentialManager
from aumos_data_residency.client.transport import HttpResponse, HttpTransport, join_url
from aumos_data_residency.errors import (
    AuthExhaustedError,
    MalformedResponseError,
    RemoteError,
)

logger = logging.getLogger(__name__)

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401, 403})


class HttpVerb(str, Enum):
    """HTTP methods the control-plane API uses."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class RequestDispatcher:
    """Sends authenticated calls to one control-plane base URL.

    Each dispatcher owns its :class:`CredentialManager`; do not share one
    dispatcher between threads.

    Parameters
    ----------
    base_url:
        Base URL resource paths are joined onto.
    credentials:
        The session's credential manager.
    transport:
        HTTP transport (default: a fresh :class:`HttpTransport`).
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialManager,
        transport: HttpTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._credentials = credentials
        self._transport = transport or HttpTransport()

    @classmethod
    def from_api_key(
        cls,
        api_key: str,
        identity_url: str,
        base_url: str,
        transport: HttpTransport | None = None,
    ) -> RequestDispatcher:
        """Build a dispatcher with its own credential manager."""
        transport = transport or HttpTransport()
        credentials = CredentialManager(api_key, identity_url, transport=transport)
        return cls(base_url, credentials, transport=transport)

    @property
    def credentials(self) -> CredentialManager:
        return self._credentials

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(
        self,
        verb: HttpVerb | str,
        path: str,
        body: object | None = None,
    ) -> bytes:
        """Perform an authenticated call and return the raw success body.

        Parameters
        ----------
        verb:
            One of GET, POST, PUT, DELETE.
        path:
            Resource path relative to the base URL, query string included.
        body:
            JSON-serialisable request body, or ``None`` for no body.

        Raises
        ------
        ValueError
            For an unsupported verb (before any network call).
        AuthError
            When no token could be obtained.
        AuthExhaustedError
            When the call is rejected on authentication grounds twice.
        RemoteError
            For any other non-success response.
        TransportError
            On network failure.
        """
        verb = HttpVerb(verb.upper() if isinstance(verb, str) else verb)
        url = join_url(self._base_url, path)
        data = json.dumps(body).encode("utf-8") if body is not None else None

        response = self._send(verb, url, data, self._credentials.get_token())
        if response.status in AUTH_FAILURE_STATUSES:
            logger.warning(
                "%s %s rejected with HTTP %d; refreshing access token and retrying once",
                verb.value,
                url,
                response.status,
            )
            credential = self._credentials.get_token(force_refresh=True)
            response = self._send(verb, url, data, credential)
            if response.status in AUTH_FAILURE_STATUSES:
                raise AuthExhaustedError(response.status)

        if not response.ok:
            raise RemoteError(response.status, response.text)
        return response.body

    def dispatch_json(
        self,
        verb: HttpVerb | str,
        path: str,
        body: object | None = None,
    ) -> object | None:
        """Like :meth:`dispatch` but parse the body as JSON (``None`` if empty)."""
        raw = self.dispatch(verb, path, body)
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise MalformedResponseError(
                "body is not valid JSON", raw.decode("utf-8", errors="replace")
            ) from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _send(
        self,
        verb: HttpVerb,
        url: str,
        data: bytes | None,
        credential: Credential,
    ) -> HttpResponse:
        headers = {
            "Authorization": f"Bearer {credential.token}",
            "Accept": "application/json",
        }
        if data is not None:
            headers["Content-Type"] = "application/json"
        return self._transport.request(verb.value, url, headers=headers, data=data)
