"""Access token acquisition and caching.

A :class:`CredentialManager` exchanges the account API key for a short-lived
bearer token at ``POST <identity-url>/v1/token`` and caches it in memory for
the life of one dispatcher session.  Nothing is persisted.

State machine::

    UNAUTHENTICATED --get_token--> AUTHENTICATING --ok--> AUTHENTICATED
            ^                            |
            +-------- AuthError ---------+

``get_token(force_refresh=True)`` always performs a fresh identify call and
replaces the cache.  The identify response is parsed as JSON and must carry
a non-empty ``token`` string.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from aumos_data_residency.client.transport import HttpTransport, join_url
from aumos_data_residency.errors import AuthError, ConfigError, TransportError

logger = logging.getLogger(__name__)

TOKEN_PATH: str = "v1/token"


class AuthState(str, Enum):
    """Lifecycle state of a :class:`CredentialManager`."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Credential:
    """A bearer token obtained from the identify endpoint.

    Attributes
    ----------
    token:
        The opaque bearer token.
    obtained_at:
        UTC time the token was received.
    tenant:
        Tenant identifier, when the identify response includes it.
    subdomain:
        Tenant subdomain, when the identify response includes it.
    """

    token: str
    obtained_at: datetime
    tenant: str | None = None
    subdomain: str | None = None

    def __repr__(self) -> str:
        return (
            f"Credential(token='***', obtained_at={self.obtained_at.isoformat()!r}, "
            f"tenant={self.tenant!r}, subdomain={self.subdomain!r})"
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "token": self.token,
            "tenant": self.tenant,
            "subdomain": self.subdomain,
            "obtained_at": self.obtained_at.isoformat(),
        }


class CredentialManager:
    """Obtains and caches one bearer credential per session.

    Parameters
    ----------
    api_key:
        Account API key, sent as the bearer credential of the identify call.
    identity_url:
        Base URL of the identity service.
    transport:
        HTTP transport to use.  A default :class:`HttpTransport` is created
        when omitted.
    """

    def __init__(
        self,
        api_key: str,
        identity_url: str,
        transport: HttpTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigError("An API key is required to request an access token")
        self._api_key = api_key
        self._token_url = join_url(identity_url, TOKEN_PATH)
        self._transport = transport or HttpTransport()
        self._credential: Credential | None = None
        self._state = AuthState.UNAUTHENTICATED
        self._identify_count = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def identify_count(self) -> int:
        """Number of identify calls attempted by this manager."""
        return self._identify_count

    @property
    def cached(self) -> Credential | None:
        return self._credential

    def get_token(self, force_refresh: bool = False) -> Credential:
        """Return the cached credential, identifying first when needed.

        Parameters
        ----------
        force_refresh:
            Discard any cached credential and identify again.

        Raises
        ------
        AuthError
            When the identify call fails for any reason.  The cache is left
            empty and the state returns to ``UNAUTHENTICATED``.
        """
        if self._credential is not None and not force_refresh:
            return self._credential

        self._state = AuthState.AUTHENTICATING
        self._credential = None
        try:
            credential = self._identify()
        except Exception:
            self._state = AuthState.UNAUTHENTICATED
            raise
        self._credential = credential
        self._state = AuthState.AUTHENTICATED
        return credential

    def invalidate(self) -> None:
        """Drop the cached credential."""
        self._credential = None
        self._state = AuthState.UNAUTHENTICATED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _identify(self) -> Credential:
        self._identify_count += 1
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
            "Content-Length": "0",
        }
        try:
            response = self._transport.request("POST", self._token_url, headers=headers, data=b"")
        except TransportError as exc:
            raise AuthError(f"could not reach identity service: {exc.reason}") from exc

        if not response.ok:
            raise AuthError("identity service rejected the API key", status=response.status)

        try:
            payload = json.loads(response.body)
        except ValueError as exc:
            raise AuthError("identity response is not valid JSON", status=response.status) from exc

        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthError("identity response has no token", status=response.status)

        logger.info("Obtained access token from %s", self._token_url)
        return Credential(
            token=token,
            obtained_at=datetime.now(timezone.utc),
            tenant=_optional_str(payload.get("tenant")),
            subdomain=_optional_str(payload.get("subdomain")),
        )


def _optional_str(value: object) -> str | None:
    return None if value is None else str(value)
