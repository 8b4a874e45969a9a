"""Restriction records: the full declaration sent to the control-plane.

A :class:`RestrictionRecord` is built fresh from operator input, never
mutated, sent once, and then discarded.  :func:`build_restriction` performs
all validation (identifier resolution and directory decoding) up front so
that malformed input never results in a partial request.

Example
-------
>>> record = build_restriction(
...     "config",
...     "team/reports",
...     region=["eu"],
...     exclude_provider=["aws"],
... )
>>> record.path
'v1/restrict/config/dGVhbS9yZXBvcnRz'
>>> record.to_details()["regions_allowed"]
['xe']
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from aumos_data_residency.directory.codec import DirectoryId
from aumos_data_residency.errors import UnknownIdentifierError
from aumos_data_residency.restrictions.aliases import AxisKind
from aumos_data_residency.restrictions.resolver import RestrictionAxis, resolve

RESTRICT_BASE_PATH: str = "v1/restrict"


class ApiKind(str, Enum):
    """Control-plane APIs whose data can be restricted."""

    CONFIG = "config"
    LOCKS = "locks"
    PLACEMENT = "placement"


def parse_api(api: ApiKind | str) -> ApiKind:
    """Return the :class:`ApiKind` named by *api* (case-insensitive).

    Raises
    ------
    UnknownIdentifierError
        When *api* is not ``config``, ``locks`` or ``placement``.
    """
    if isinstance(api, ApiKind):
        return api
    try:
        return ApiKind(api.lower())
    except ValueError:
        raise UnknownIdentifierError(
            api, axis="api", choices=tuple(kind.value for kind in ApiKind)
        ) from None


@dataclass(frozen=True)
class RestrictionRecord:
    """Where data under one directory of one API may reside.

    Attributes
    ----------
    api:
        The API the directory belongs to.
    directory:
        The restricted directory.
    providers:
        Resolved provider axis.
    regions:
        Resolved region axis.
    """

    api: ApiKind
    directory: DirectoryId
    providers: RestrictionAxis
    regions: RestrictionAxis

    @property
    def path(self) -> str:
        """Resource path of this restriction, relative to the API base URL."""
        return restriction_path(self.api, self.directory)

    def to_details(self) -> dict[str, list[str]]:
        """Serialise both axes into the request body expected by the control-plane.

        Allowed lists carry the effective sets; denied lists carry the
        expanded exclusions.  Lists are sorted so the wire output is
        deterministic.
        """
        return {
            "providers_allowed": sorted(self.providers.effective),
            "providers_denied": sorted(self.providers.exclude),
            "regions_allowed": sorted(self.regions.effective),
            "regions_denied": sorted(self.regions.exclude),
        }


def restriction_path(api: ApiKind | str, directory: DirectoryId) -> str:
    """Return ``v1/restrict/<api>/<encoded-directory>``."""
    return f"{RESTRICT_BASE_PATH}/{parse_api(api).value}/{directory.wire}"


def build_restriction(
    api: ApiKind | str,
    directory: DirectoryId | str | bytes,
    provider: Iterable[str] = (),
    exclude_provider: Iterable[str] = (),
    region: Iterable[str] = (),
    exclude_region: Iterable[str] = (),
    already_encoded: bool = False,
) -> RestrictionRecord:
    """Validate operator input and build a :class:`RestrictionRecord`.

    Parameters
    ----------
    api:
        Target API name (``config``, ``locks`` or ``placement``).
    directory:
        A :class:`DirectoryId`, or a raw/encoded value to wrap.
    provider, exclude_provider, region, exclude_region:
        Raw tokens, comma-joined or repeated.
    already_encoded:
        Treat a ``str`` *directory* as wire form rather than raw text.

    Raises
    ------
    UnknownIdentifierError
        When *api* or any provider or region token is unknown.
    DirectoryDecodeError
        When *already_encoded* is set and *directory* is not valid wire form.
    """
    api_kind = parse_api(api)
    if not isinstance(directory, DirectoryId):
        if already_encoded and isinstance(directory, str):
            directory = DirectoryId.from_encoded(directory)
        else:
            directory = DirectoryId.from_raw(directory)
    return RestrictionRecord(
        api=api_kind,
        directory=directory,
        providers=resolve(AxisKind.PROVIDER, provider, exclude_provider),
        regions=resolve(AxisKind.REGION, region, exclude_region),
    )
