"""Pydantic models for control-plane restriction responses.

Unknown keys are allowed so that additions on the server side do not break
older clients.  Directory identifiers are kept in wire form and validated.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from aumos_data_residency.directory.codec import decode, display_directory


class RestrictionState(str, Enum):
    """Whether the control-plane has finished applying a restriction."""

    ENFORCED = "enforced"
    PENDING = "pending"


class RestrictionDetails(BaseModel):
    """Allowed and denied providers and regions of one restriction."""

    model_config = {"extra": "allow"}

    providers_allowed: list[str] = Field(default_factory=list)
    providers_denied: list[str] = Field(default_factory=list)
    regions_allowed: list[str] = Field(default_factory=list)
    regions_denied: list[str] = Field(default_factory=list)


class Restriction(BaseModel):
    """A restriction as stored by the control-plane."""

    model_config = {"extra": "allow"}

    api: str
    directory: str
    details: RestrictionDetails = Field(default_factory=RestrictionDetails)
    state: RestrictionState = Field(default=RestrictionState.PENDING)

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, value: str) -> str:
        decode(value)
        return value

    def directory_for_display(self, decode_output: bool = False) -> str:
        return display_directory(self.directory, decode_output)


class RestrictionPage(BaseModel):
    """One page of a restriction listing.

    ``next_key`` (and ``next_api`` for cross-API listings) point at the
    first entry of the following page; both are ``None`` on the last page.
    """

    model_config = {"extra": "allow"}

    restrictions: list[Restriction] = Field(default_factory=list)
    next_api: str | None = Field(default=None)
    next_key: str | None = Field(default=None)

    @property
    def is_last(self) -> bool:
        return self.next_key is None and self.next_api is None
