"""aumos-data-residency: declare where data may reside and apply it to the control-plane.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import aumos_data_residency as residency
>>> residency.__version__
'0.1.0'
>>> axis = residency.resolve(residency.AxisKind.REGION, ["all"], ["xa"])
>>> "xa" in axis.effective
False
>>> residency.encode(b"team/reports")
'dGVhbS9yZXBvcnRz'
"""
from __future__ import annotations

__version__: str = "0.1.0"

from aumos_data_residency.convenience import ResidencyController

# ---------------------------------------------------------------------------
# Restriction resolution
# ---------------------------------------------------------------------------
from aumos_data_residency.restrictions.aliases import (
    ALL,
    AxisKind,
    aliases_for,
    canonical_codes,
    resolve_alias,
)
from aumos_data_residency.restrictions.normalizer import normalize
from aumos_data_residency.restrictions.resolver import RestrictionAxis, resolve
from aumos_data_residency.restrictions.records import (
    ApiKind,
    RestrictionRecord,
    build_restriction,
)

# ---------------------------------------------------------------------------
# Directory codec
# ---------------------------------------------------------------------------
from aumos_data_residency.directory.codec import DirectoryId, decode, encode

# ---------------------------------------------------------------------------
# Control-plane client
# ---------------------------------------------------------------------------
from aumos_data_residency.client.credentials import AuthState, Credential, CredentialManager
from aumos_data_residency.client.dispatcher import HttpVerb, RequestDispatcher
from aumos_data_residency.client.models import (
    Restriction,
    RestrictionDetails,
    RestrictionPage,
    RestrictionState,
)
from aumos_data_residency.client.restrict_api import RestrictionApi
from aumos_data_residency.client.transport import HttpResponse, HttpTransport

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from aumos_data_residency.config.loader import ConfigLoader, ResidencyConfig

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from aumos_data_residency.errors import (
    AuthError,
    AuthExhaustedError,
    ConfigError,
    DirectoryDecodeError,
    DispatchError,
    MalformedResponseError,
    RemoteError,
    ResidencyError,
    TransportError,
    UnknownIdentifierError,
)

__all__ = [
    "__version__",
    # Convenience
    "ResidencyController",
    # Restrictions
    "ALL",
    "ApiKind",
    "AxisKind",
    "RestrictionAxis",
    "RestrictionRecord",
    "aliases_for",
    "build_restriction",
    "canonical_codes",
    "normalize",
    "resolve",
    "resolve_alias",
    # Directory codec
    "DirectoryId",
    "decode",
    "encode",
    # Client
    "AuthState",
    "Credential",
    "CredentialManager",
    "HttpResponse",
    "HttpTransport",
    "HttpVerb",
    "RequestDispatcher",
    "Restriction",
    "RestrictionApi",
    "RestrictionDetails",
    "RestrictionPage",
    "RestrictionState",
    # Configuration
    "ConfigLoader",
    "ResidencyConfig",
    # Errors
    "AuthError",
    "AuthExhaustedError",
    "ConfigError",
    "DirectoryDecodeError",
    "DispatchError",
    "MalformedResponseError",
    "RemoteError",
    "ResidencyError",
    "TransportError",
    "UnknownIdentifierError",
]
