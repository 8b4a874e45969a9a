"""Blocking HTTP transport built on ``urllib.request``.

Non-success HTTP statuses are returned as ordinary :class:`HttpResponse`
objects so that callers can decide what an error means; only network-level
failures raise (:class:`~aumos_data_residency.errors.TransportError`).

Plain ``http://`` URLs are refused unless ``allow_insecure_urls`` is set,
which exists for local development and tests.
"""
from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field

from aumos_data_residency.errors import ConfigError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS: float = 10.0


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and raw body of a completed HTTP exchange."""

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def join_url(base_url: str, path: str) -> str:
    """Join *path* onto *base_url* regardless of slashes on either side."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def check_url(url: str, allow_insecure_urls: bool = False) -> str:
    """Validate the scheme of *url* and return it unchanged.

    Raises
    ------
    ConfigError
        For schemes other than https, or http when insecure URLs are not
        allowed.
    """
    scheme = urllib.parse.urlsplit(url).scheme.lower()
    if scheme == "https":
        return url
    if scheme == "http":
        if allow_insecure_urls:
            return url
        raise ConfigError(
            f"Refusing insecure URL '{url}' (set danger_zone.allow_insecure_urls to allow it)"
        )
    raise ConfigError(f"Unsupported URL scheme in '{url}'")


class HttpTransport:
    """Sends single HTTP requests with ``urllib.request``.

    Parameters
    ----------
    timeout_seconds:
        Socket timeout per request (default: 10).
    allow_insecure_urls:
        Permit plain ``http://`` URLs (default: ``False``).
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        allow_insecure_urls: bool = False,
    ) -> None:
        self._timeout = timeout_seconds
        self._allow_insecure_urls = allow_insecure_urls

    @property
    def allow_insecure_urls(self) -> bool:
        return self._allow_insecure_urls

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | None = None,
    ) -> HttpResponse:
        """Perform one request and return its response.

        Raises
        ------
        ConfigError
            When *url* uses a refused scheme.
        TransportError
            On connection failures, timeouts, malformed HTTP responses and
            unusable URLs.
        """
        check_url(url, self._allow_insecure_urls)
        logger.debug("%s %s", method, url)
        try:
            req = urllib.request.Request(
                url,
                data=data,
                headers=dict(headers or {}),
                method=method,
            )
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:  # noqa: S310
                response = HttpResponse(
                    status=resp.status,
                    body=resp.read(),
                    headers=dict(resp.headers.items()),
                )
        except urllib.error.HTTPError as exc:
            try:
                body = exc.read() or b""
            except (http.client.HTTPException, OSError) as read_exc:
                raise TransportError(url, _reason(read_exc)) from read_exc
            response = HttpResponse(
                status=exc.code,
                body=body,
                headers=dict(exc.headers.items()) if exc.headers else {},
            )
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            raise TransportError(url, _reason(exc)) from exc
        logger.debug("%s %s -> %d", method, url, response.status)
        return response


def _reason(exc: Exception) -> str:
    reason = getattr(exc, "reason", None) or exc
    return str(reason) or type(exc).__name__
