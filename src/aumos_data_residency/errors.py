"""Exception hierarchy for aumos-data-residency.

Every failure the library can report derives from :class:`ResidencyError`
so callers (the CLI in particular) can render a precise message and map it
to an exit code without catching unrelated exceptions.

Input errors (:class:`UnknownIdentifierError`, :class:`DirectoryDecodeError`,
:class:`ConfigError`) are raised before any network call is made.

Example
-------
>>> from aumos_data_residency.restrictions.normalizer import normalize
>>> from aumos_data_residency.restrictions.aliases import AxisKind
>>> try:
...     normalize(AxisKind.PROVIDER, ["oracle"])
... except UnknownIdentifierError as exc:
...     exc.token
'oracle'
"""
from __future__ import annotations

import json


class ResidencyError(Exception):
    """Base class for every error raised by aumos-data-residency."""


class UnknownIdentifierError(ResidencyError, ValueError):
    """Raised when a provider, region or API name has no canonical mapping.

    Attributes
    ----------
    token:
        The offending token, whitespace-trimmed but otherwise as supplied.
    axis:
        Name of the axis the token was resolved against, if known.
    choices:
        Valid values, when the set is small enough to list.
    """

    def __init__(
        self,
        token: str,
        axis: str | None = None,
        choices: tuple[str, ...] = (),
    ) -> None:
        self.token = token
        self.axis = axis
        self.choices = choices
        where = f" {axis}" if axis else ""
        expected = f" (expected one of: {', '.join(choices)})" if choices else ""
        super().__init__(f"Unknown{where} identifier '{token}'{expected}")


class DirectoryDecodeError(ResidencyError, ValueError):
    """Raised when an encoded directory identifier is not valid URL-safe base64."""

    def __init__(self, encoded: str, reason: str) -> None:
        self.encoded = encoded
        self.reason = reason
        super().__init__(f"Invalid encoded directory '{encoded}': {reason}")


class ConfigError(ResidencyError, ValueError):
    """Raised when configuration is missing or unusable.

    Attributes
    ----------
    config_path:
        The config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")


class AuthError(ResidencyError):
    """Raised when the identify call fails to produce an access token.

    Attributes
    ----------
    status:
        HTTP status of the identify response, or ``None`` when the failure
        happened before a response was received or while parsing it.
    detail:
        Short explanation of what went wrong.
    """

    def __init__(self, detail: str, status: int | None = None) -> None:
        self.status = status
        self.detail = detail
        suffix = f" (HTTP {status})" if status is not None else ""
        super().__init__(f"Authentication failed: {detail}{suffix}")


class TransportError(ResidencyError):
    """Raised on network-level failures (DNS, refused connection, timeout).

    These are never retried by this library.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Request to {url} failed: {reason}")


class DispatchError(ResidencyError):
    """Base class for failures of a control-plane resource call."""


class AuthExhaustedError(DispatchError):
    """Raised when a call is rejected on authentication grounds twice.

    The first rejection triggers one forced token refresh and a retry; this
    error means the retry was rejected as well.
    """

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(
            f"Request rejected with HTTP {status} even after refreshing the access token"
        )


class RemoteError(DispatchError):
    """Raised for any non-success response that is not an auth failure.

    Attributes
    ----------
    status:
        HTTP status code.
    body:
        The response body, verbatim.
    title:
        ``title`` field of a JSON error body, when present.
    detail:
        ``detail`` field of a JSON error body, when present.
    """

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        self.title, self.detail = _parse_error_body(body)
        super().__init__(self._format())

    def _format(self) -> str:
        if self.title:
            text = self.title
            if self.detail:
                text = f"{text} - {self.detail}"
            return f"HTTP {self.status}: {text}"
        if self.body:
            return f"HTTP {self.status}: {self.body}"
        return f"HTTP {self.status}"


class MalformedResponseError(DispatchError):
    """Raised when a success response body cannot be interpreted."""

    def __init__(self, reason: str, body: str = "") -> None:
        self.reason = reason
        self.body = body
        super().__init__(f"Malformed response from control-plane: {reason}")


def _parse_error_body(body: str) -> tuple[str | None, str | None]:
    """Extract ``title`` and ``detail`` from a JSON error body, if it is one."""
    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        return None, None
    if not isinstance(data, dict):
        return None, None
    title = data.get("title")
    detail = data.get("detail")
    return (
        str(title) if title is not None else None,
        str(detail) if detail is not None else None,
    )
