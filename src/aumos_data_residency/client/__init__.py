"""Control-plane client: transport, credentials, dispatch and restriction routes."""
from __future__ import annotations

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

__all__ = [
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
]
