"""Convenience API for aumos-data-residency: 3-line quickstart.

Example
-------
::

    from aumos_data_residency import ResidencyController
    controller = ResidencyController(api_key="abc123")
    controller.restrict("config", "team/reports", region=["eu"], exclude_provider=["aws"])

"""
from __future__ import annotations

from typing import Iterable

from aumos_data_residency.client.dispatcher import RequestDispatcher
from aumos_data_residency.client.models import Restriction
from aumos_data_residency.client.restrict_api import RestrictionApi
from aumos_data_residency.client.transport import DEFAULT_TIMEOUT_SECONDS, HttpTransport
from aumos_data_residency.config.loader import (
    DEFAULT_IDENTITY_URL,
    DEFAULT_RESTRICT_URL,
    ResidencyConfig,
)
from aumos_data_residency.directory.codec import DirectoryId
from aumos_data_residency.restrictions.records import (
    ApiKind,
    RestrictionRecord,
    build_restriction,
)


class ResidencyController:
    """Zero-config data residency control for the common case.

    Owns one :class:`RequestDispatcher` (and therefore one cached access
    token) for its whole lifetime.

    Parameters
    ----------
    api_key:
        Account API key.
    identity_url:
        Identity service base URL.
    restrict_url:
        Restriction service base URL.
    allow_insecure_urls:
        Permit ``http://`` endpoints (local development only).
    timeout_seconds:
        Per-request timeout.
    """

    def __init__(
        self,
        api_key: str,
        identity_url: str = DEFAULT_IDENTITY_URL,
        restrict_url: str = DEFAULT_RESTRICT_URL,
        allow_insecure_urls: bool = False,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        transport = HttpTransport(
            timeout_seconds=timeout_seconds,
            allow_insecure_urls=allow_insecure_urls,
        )
        self._dispatcher = RequestDispatcher.from_api_key(
            api_key=api_key,
            identity_url=identity_url,
            base_url=restrict_url,
            transport=transport,
        )
        self._api = RestrictionApi(self._dispatcher)

    @classmethod
    def from_config(cls, config: ResidencyConfig) -> ResidencyController:
        """Build a controller from a loaded :class:`ResidencyConfig`."""
        config.check_urls()
        return cls(
            api_key=config.require_api_key(),
            identity_url=config.api.identity_url,
            restrict_url=config.api.restrict_url,
            allow_insecure_urls=config.danger_zone.allow_insecure_urls,
            timeout_seconds=config.api.timeout_seconds,
        )

    def restrict(
        self,
        api: ApiKind | str,
        directory: str | bytes,
        provider: Iterable[str] = (),
        exclude_provider: Iterable[str] = (),
        region: Iterable[str] = (),
        exclude_region: Iterable[str] = (),
        already_encoded: bool = False,
    ) -> RestrictionRecord:
        """Resolve and apply a restriction; returns the record that was sent."""
        record = build_restriction(
            api,
            directory,
            provider=provider,
            exclude_provider=exclude_provider,
            region=region,
            exclude_region=exclude_region,
            already_encoded=already_encoded,
        )
        self._api.set_restriction(record)
        return record

    def get(
        self, api: ApiKind | str, directory: str | bytes, already_encoded: bool = False
    ) -> Restriction:
        """Fetch the restriction on *directory*."""
        return self._api.get_restriction(api, _directory(directory, already_encoded))

    def remove(
        self, api: ApiKind | str, directory: str | bytes, already_encoded: bool = False
    ) -> None:
        """Delete the restriction on *directory*."""
        self._api.delete_restriction(api, _directory(directory, already_encoded))

    def list_restrictions(self, api: ApiKind | str | None = None) -> list[Restriction]:
        """Return every restriction, optionally limited to one API."""
        return self._api.get_all_pages(api)

    @property
    def api(self) -> RestrictionApi:
        """The underlying :class:`RestrictionApi`."""
        return self._api

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    def __repr__(self) -> str:
        return f"ResidencyController(restrict_url={self._dispatcher.base_url!r})"


def _directory(directory: str | bytes, already_encoded: bool) -> DirectoryId:
    if already_encoded and isinstance(directory, str):
        return DirectoryId.from_encoded(directory)
    return DirectoryId.from_raw(directory)
