"""Restriction resolution engine.

Turns operator-supplied provider and region tokens into validated,
canonical restriction records.
"""
from __future__ import annotations

from aumos_data_residency.restrictions.aliases import (
    ALL,
    AxisKind,
    aliases_for,
    canonical_codes,
    resolve_alias,
)
from aumos_data_residency.restrictions.normalizer import normalize, split_tokens
from aumos_data_residency.restrictions.records import (
    ApiKind,
    RestrictionRecord,
    build_restriction,
    parse_api,
    restriction_path,
)
from aumos_data_residency.restrictions.resolver import RestrictionAxis, expand, resolve

__all__ = [
    "ALL",
    "ApiKind",
    "AxisKind",
    "RestrictionAxis",
    "RestrictionRecord",
    "aliases_for",
    "build_restriction",
    "canonical_codes",
    "expand",
    "normalize",
    "parse_api",
    "resolve",
    "resolve_alias",
    "restriction_path",
    "split_tokens",
]
