"""Directory identifier codec.

Directory identifiers are arbitrary byte strings.  On the wire they always
travel as URL-safe base64 (``-`` and ``_`` instead of ``+`` and ``/``) with
``=`` padding kept.  Decoding is strict: anything :func:`encode` could not
have produced is rejected with :class:`DirectoryDecodeError`.

The CLI can be told that a directory argument is already encoded
(``--base64``); in that case it is validated but not re-encoded.  Values
received from the control-plane may likewise be shown encoded or decoded.

Example
-------
>>> encode(b"foo/bar")
'Zm9vL2Jhcg=='
>>> decode("Zm9vL2Jhcg==")
b'foo/bar'
>>> DirectoryId.from_cli("Zm9vL2Jhcg==", already_encoded=True).raw
b'foo/bar'
"""
from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from aumos_data_residency.errors import DirectoryDecodeError

_WIRE_PATTERN = re.compile(r"^[A-Za-z0-9_-]*={0,2}$")


def encode(raw: bytes | str) -> str:
    """Encode *raw* into its URL-safe base64 wire form.

    ``str`` input is encoded as UTF-8 first.
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode(encoded: str) -> bytes:
    """Decode a wire-form directory identifier.

    Raises
    ------
    DirectoryDecodeError
        On characters outside the URL-safe alphabet, a length that is not a
        multiple of four, misplaced padding, or non-canonical trailing bits.
    """
    if not _WIRE_PATTERN.match(encoded):
        raise DirectoryDecodeError(encoded, "invalid character or misplaced padding")
    if len(encoded) % 4:
        raise DirectoryDecodeError(encoded, "length is not a multiple of 4")
    try:
        raw = base64.urlsafe_b64decode(encoded)
    except (binascii.Error, ValueError) as exc:
        raise DirectoryDecodeError(encoded, str(exc)) from exc
    if encode(raw) != encoded:
        raise DirectoryDecodeError(encoded, "non-canonical encoding")
    return raw


def display_directory(encoded: str, decode_output: bool = False) -> str:
    """Render a directory received from the control-plane for display.

    When *decode_output* is true the identifier is decoded and shown as
    UTF-8, with backslash escapes for bytes that are not valid UTF-8.
    """
    if not decode_output:
        return encoded
    return decode(encoded).decode("utf-8", errors="backslashreplace")


@dataclass(frozen=True, eq=False)
class DirectoryId:
    """A directory identifier held in raw or wire form.

    Two identifiers are equal when they name the same directory, whichever
    form they were built from.

    Attributes
    ----------
    value:
        Raw bytes when ``is_encoded`` is false, wire text otherwise.
    is_encoded:
        Which form ``value`` is in.
    """

    value: bytes | str
    is_encoded: bool = False

    def __post_init__(self) -> None:
        if self.is_encoded:
            if not isinstance(self.value, str):
                raise TypeError("An encoded DirectoryId must hold a str")
            decode(self.value)
        elif isinstance(self.value, str):
            object.__setattr__(self, "value", self.value.encode("utf-8"))

    @classmethod
    def from_raw(cls, raw: bytes | str) -> DirectoryId:
        """Wrap a human-readable directory (``str`` is taken as UTF-8)."""
        return cls(value=raw, is_encoded=False)

    @classmethod
    def from_encoded(cls, encoded: str) -> DirectoryId:
        """Wrap an already-encoded directory, validating it eagerly."""
        return cls(value=encoded, is_encoded=True)

    @classmethod
    def from_cli(cls, argument: str, already_encoded: bool = False) -> DirectoryId:
        """Build from a CLI argument, honouring the ``--base64`` switch."""
        if already_encoded:
            return cls.from_encoded(argument)
        return cls.from_raw(argument)

    @property
    def wire(self) -> str:
        """The URL-safe base64 form sent to the control-plane."""
        if self.is_encoded:
            return self.value  # type: ignore[return-value]
        return encode(self.value)

    @property
    def raw(self) -> bytes:
        """The decoded byte form."""
        if self.is_encoded:
            return decode(self.value)  # type: ignore[arg-type]
        return self.value  # type: ignore[return-value]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirectoryId):
            return NotImplemented
        return self.wire == other.wire

    def __hash__(self) -> int:
        return hash(self.wire)

    def __str__(self) -> str:
        return self.wire
