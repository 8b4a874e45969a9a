"""Restriction resolution.

Combines an allow-list and an exclude-list for one axis into a
:class:`RestrictionAxis`.  The rules are:

1. An empty allow-list means ``all``.
2. ``all`` expands to every canonical code of the axis, on both lists.
3. The effective set is ``allow - exclude``; exclude always wins.

An empty effective set is a legal (if useless) policy and is not rejected
here.

Example
-------
>>> axis = resolve(AxisKind.REGION, ["eu", "xa"], ["xe"])
>>> sorted(axis.effective)
['xa']
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from aumos_data_residency.restrictions.aliases import ALL, AxisKind, canonical_codes
from aumos_data_residency.restrictions.normalizer import normalize


@dataclass(frozen=True)
class RestrictionAxis:
    """Allow and exclude sets for one axis, with ``all`` already expanded.

    Attributes
    ----------
    kind:
        Which axis this is.
    allow:
        Expanded allow set.
    exclude:
        Expanded exclude set.
    """

    kind: AxisKind
    allow: frozenset[str]
    exclude: frozenset[str]

    @property
    def effective(self) -> frozenset[str]:
        """Codes permitted after exclusions are applied."""
        return self.allow - self.exclude

    @property
    def is_unrestricted(self) -> bool:
        """True when every canonical code of the axis is permitted."""
        return self.effective == canonical_codes(self.kind)


def expand(axis: AxisKind, codes: frozenset[str]) -> frozenset[str]:
    """Replace the ``all`` wildcard with the full canonical set."""
    if ALL in codes:
        return canonical_codes(axis)
    return codes


def resolve(
    axis: AxisKind,
    allow_raw: Iterable[str] = (),
    exclude_raw: Iterable[str] = (),
) -> RestrictionAxis:
    """Resolve raw allow/exclude tokens into a :class:`RestrictionAxis`.

    Parameters
    ----------
    axis:
        The axis to resolve.
    allow_raw:
        Raw allow tokens.  Empty means ``all``.
    exclude_raw:
        Raw exclude tokens.  May be empty.

    Raises
    ------
    UnknownIdentifierError
        When any token is not a known code or alias.
    """
    axis = AxisKind(axis)
    allow = normalize(axis, allow_raw) or frozenset({ALL})
    exclude = normalize(axis, exclude_raw)
    return RestrictionAxis(
        kind=axis,
        allow=expand(axis, allow),
        exclude=expand(axis, exclude),
    )
