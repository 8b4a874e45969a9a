"""Identifier normalisation.

Operators pass providers and regions either as comma-separated lists
(``--region eu,asia``) or by repeating a flag (``--region eu --region asia``).
Both forms arrive here as a sequence of raw strings and are merged into one
set of canonical codes.
"""
from __future__ import annotations

import logging
from typing import Iterable

from aumos_data_residency.restrictions.aliases import AxisKind, resolve_alias

logger = logging.getLogger(__name__)


def split_tokens(raw: Iterable[str]) -> list[str]:
    """Split comma-joined items and trim whitespace, dropping empty tokens."""
    tokens: list[str] = []
    for item in raw:
        for part in item.split(","):
            part = part.strip()
            if part:
                tokens.append(part)
    return tokens


def normalize(axis: AxisKind, raw: Iterable[str]) -> frozenset[str]:
    """Resolve raw operator tokens into a set of canonical codes.

    Parameters
    ----------
    axis:
        The axis the tokens belong to.
    raw:
        Raw strings, each possibly comma-joined.

    Returns
    -------
    frozenset[str]
        Canonical codes, deduplicated.  May contain ``"all"``.

    Raises
    ------
    UnknownIdentifierError
        On the first token with no mapping.
    """
    codes = frozenset(resolve_alias(axis, token) for token in split_tokens(raw))
    logger.debug("Normalised %s tokens to %s", AxisKind(axis).value, sorted(codes))
    return codes
