"""Configuration loading for aumos-data-residency."""
from __future__ import annotations

from aumos_data_residency.config.loader import (
    AccountConfig,
    ApiConfig,
    ConfigLoader,
    DangerZoneConfig,
    ResidencyConfig,
    default_config_paths,
)

__all__ = [
    "AccountConfig",
    "ApiConfig",
    "ConfigLoader",
    "DangerZoneConfig",
    "ResidencyConfig",
    "default_config_paths",
]
