"""Static alias table for provider and region identifiers.

Every provider and region has exactly one canonical code.  Operators may
type any of its aliases in any letter case; lookups lowercase the token and
match it exactly against the table.  There is no partial or fuzzy matching.

The wildcard ``all`` is valid on both axes.  It is resolved here as the
literal code ``all`` and expanded to the full canonical set by the
:mod:`~aumos_data_residency.restrictions.resolver`.

Example
-------
>>> resolve_alias(AxisKind.REGION, "Europe")
'xe'
>>> resolve_alias(AxisKind.PROVIDER, "AWS")
'aws'
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from aumos_data_residency.errors import UnknownIdentifierError

ALL: str = "all"


class AxisKind(str, Enum):
    """The two independent restriction dimensions."""

    PROVIDER = "provider"
    REGION = "region"


# ---------------------------------------------------------------------------
# Canonical codes and their aliases
# ---------------------------------------------------------------------------

_PROVIDERS: dict[str, tuple[str, ...]] = {
    "aws": ("amazon",),
    "azure": ("microsoft",),
    "digitalocean": ("do",),
    "equinix": (),
    "gcp": ("google",),
}

_REGIONS: dict[str, tuple[str, ...]] = {
    "xa": ("asia",),
    "xc": ("prc", "china"),
    "xe": ("eu", "europe"),
    "xf": ("africa",),
    "xn": ("namerica", "northamerica", "na"),
    "xo": ("oceania",),
    "xq": ("antarctica",),
    "xs": ("samerica", "southamerica", "sa"),
    "xu": ("uk", "unitedkingdom"),
}


def _build_lookup(table: dict[str, tuple[str, ...]]) -> Mapping[str, str]:
    lookup: dict[str, str] = {ALL: ALL}
    for code, aliases in table.items():
        for token in (code, *aliases):
            if token in lookup:
                raise RuntimeError(f"Duplicate alias '{token}' in alias table")
            lookup[token] = code
    return MappingProxyType(lookup)


_CANONICAL: Mapping[AxisKind, frozenset[str]] = MappingProxyType(
    {
        AxisKind.PROVIDER: frozenset(_PROVIDERS),
        AxisKind.REGION: frozenset(_REGIONS),
    }
)

_LOOKUP: Mapping[AxisKind, Mapping[str, str]] = MappingProxyType(
    {
        AxisKind.PROVIDER: _build_lookup(_PROVIDERS),
        AxisKind.REGION: _build_lookup(_REGIONS),
    }
)

_ALIASES: Mapping[AxisKind, Mapping[str, tuple[str, ...]]] = MappingProxyType(
    {
        AxisKind.PROVIDER: MappingProxyType(dict(_PROVIDERS)),
        AxisKind.REGION: MappingProxyType(dict(_REGIONS)),
    }
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_alias(axis: AxisKind, token: str) -> str:
    """Return the canonical code for *token* on *axis*.

    Parameters
    ----------
    axis:
        Which table to consult.
    token:
        A canonical code or alias, in any letter case.  Surrounding
        whitespace is not stripped here; see
        :func:`~aumos_data_residency.restrictions.normalizer.normalize`.

    Returns
    -------
    str
        The canonical code, or ``"all"`` for the wildcard.

    Raises
    ------
    UnknownIdentifierError
        When *token* is not a known code or alias for *axis*.
    """
    axis = AxisKind(axis)
    try:
        return _LOOKUP[axis][token.lower()]
    except KeyError:
        raise UnknownIdentifierError(token, axis=axis.value) from None


def canonical_codes(axis: AxisKind) -> frozenset[str]:
    """Return every canonical code for *axis*, excluding the wildcard."""
    return _CANONICAL[AxisKind(axis)]


def aliases_for(axis: AxisKind) -> Mapping[str, tuple[str, ...]]:
    """Return the read-only ``{canonical: aliases}`` table for *axis*."""
    return _ALIASES[AxisKind(axis)]
