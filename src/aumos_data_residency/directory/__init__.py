"""Directory identifier encoding for the control-plane wire format."""
from __future__ import annotations

from aumos_data_residency.directory.codec import (
    DirectoryId,
    decode,
    display_directory,
    encode,
)

__all__ = [
    "DirectoryId",
    "decode",
    "display_directory",
    "encode",
]
