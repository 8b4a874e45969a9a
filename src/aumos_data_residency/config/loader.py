"""Residency client configuration loader with Pydantic v2 validation.

Loads ``residency.yaml`` files into a typed :class:`ResidencyConfig`.
Several files may be layered: later files override earlier ones key by key,
and missing files are skipped.  Environment variables are applied last.

Example
-------
>>> loader = ConfigLoader()
>>> config = loader.load_string("account:\\n  api_key: abc123\\n")
>>> config.require_api_key()
'abc123'
"""
from __future__ import annotations

import logging
import os
import urllib.parse
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from aumos_data_residency.client.transport import DEFAULT_TIMEOUT_SECONDS, check_url
from aumos_data_residency.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME: str = "residency.yaml"
DEFAULT_IDENTITY_URL: str = "https://flightdeck.cplane.cloud/"
DEFAULT_RESTRICT_URL: str = "https://metadata.cplane.cloud/"

ENV_API_KEY: str = "AUMOS_RESIDENCY_API_KEY"
ENV_IDENTITY_URL: str = "AUMOS_RESIDENCY_IDENTITY_URL"
ENV_RESTRICT_URL: str = "AUMOS_RESIDENCY_RESTRICT_URL"


class AccountConfig(BaseModel):
    """Account credentials."""

    model_config = {"extra": "allow"}

    api_key: str | None = Field(default=None)


class ApiConfig(BaseModel):
    """Control-plane endpoints."""

    model_config = {"extra": "allow"}

    identity_url: str = Field(default=DEFAULT_IDENTITY_URL)
    restrict_url: str = Field(default=DEFAULT_RESTRICT_URL)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("identity_url", "restrict_url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _validate_url(value)


class DangerZoneConfig(BaseModel):
    """Settings that weaken transport security.  For development only."""

    model_config = {"extra": "allow"}

    allow_insecure_urls: bool = Field(default=False)


class ResidencyConfig(BaseModel):
    """Top-level configuration schema.

    All sections are optional and fall back to defaults.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    account: AccountConfig = Field(default_factory=AccountConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    danger_zone: DangerZoneConfig = Field(default_factory=DangerZoneConfig)
    loaded_from: list[Path] = Field(default_factory=list, exclude=True)

    def require_api_key(self) -> str:
        """Return the API key or raise :class:`ConfigError` when it is unset."""
        if not self.account.api_key:
            raise ConfigError(
                f"No API key configured (set account.api_key in {CONFIG_FILE_NAME}, "
                f"${ENV_API_KEY}, or pass --api-key)"
            )
        return self.account.api_key

    def check_urls(self) -> None:
        """Reject insecure endpoints unless the danger zone allows them."""
        allow = self.danger_zone.allow_insecure_urls
        check_url(self.api.identity_url, allow)
        check_url(self.api.restrict_url, allow)


def default_config_paths() -> list[Path]:
    """Config files searched by default, lowest precedence first."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return [base / "aumos-residency" / CONFIG_FILE_NAME, Path(CONFIG_FILE_NAME)]


class ConfigLoader:
    """Loads and validates residency YAML configuration."""

    def load(self, config_path: Path) -> ResidencyConfig:
        """Load and validate one YAML file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ConfigError:
            When the content is not a mapping or fails validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Residency config not found: {config_path}")
        raw = self._read(config_path)
        config = self._validate(raw, str(config_path))
        config.loaded_from.append(config_path)
        return config

    def load_string(self, yaml_content: str) -> ResidencyConfig:
        """Load and validate a YAML string directly."""
        return self._validate(self._parse(yaml_content, None), None)

    def load_all(self, config_paths: list[Path] | None = None) -> ResidencyConfig:
        """Layer every existing file in *config_paths* (default search path)."""
        merged: dict[str, object] = {}
        loaded: list[Path] = []
        for path in config_paths if config_paths is not None else default_config_paths():
            if not path.exists():
                logger.debug("No configuration file at %s", path)
                continue
            if loaded:
                logger.info("Overriding previous configuration options with %s", path)
            merged = _merge(merged, self._read(path))
            loaded.append(path)
        config = self._validate(merged, ", ".join(str(p) for p in loaded) or None)
        config.loaded_from.extend(loaded)
        return config

    def apply_env(
        self,
        config: ResidencyConfig,
        environ: Mapping[str, str] | None = None,
    ) -> ResidencyConfig:
        """Return a copy of *config* with environment overrides applied."""
        env = os.environ if environ is None else environ
        account = config.account
        api = config.api
        if env.get(ENV_API_KEY):
            account = account.model_copy(update={"api_key": env[ENV_API_KEY]})
        api_updates: dict[str, str] = {}
        if env.get(ENV_IDENTITY_URL):
            api_updates["identity_url"] = _checked_env_url(env, ENV_IDENTITY_URL)
        if env.get(ENV_RESTRICT_URL):
            api_updates["restrict_url"] = _checked_env_url(env, ENV_RESTRICT_URL)
        if api_updates:
            api = api.model_copy(update=api_updates)
        return config.model_copy(
            update={"account": account, "api": api, "loaded_from": list(config.loaded_from)}
        )

    def defaults(self) -> ResidencyConfig:
        """Return a configuration with all defaults applied."""
        return ResidencyConfig()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(self, config_path: Path) -> dict[str, object]:
        with config_path.open("r", encoding="utf-8") as fh:
            return self._parse(fh.read(), str(config_path))

    def _parse(self, text: str, source: str | None) -> dict[str, object]:
        try:
            raw = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML: {exc}", config_path=source) from exc
        if not isinstance(raw, dict):
            raise ConfigError("Top level of the config must be a mapping", config_path=source)
        return raw

    def _validate(self, raw: dict[str, object], source: str | None) -> ResidencyConfig:
        try:
            return ResidencyConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(str(exc), config_path=source) from exc


def _merge(base: dict[str, object], override: dict[str, object]) -> dict[str, object]:
    """Recursively merge *override* into a copy of *base*."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _validate_url(value: str) -> str:
    if not value.lower().startswith(("http://", "https://")):
        raise ValueError(f"URL must start with http:// or https://, got '{value}'")
    parts = urllib.parse.urlsplit(value)
    if not parts.hostname:
        raise ValueError(f"URL has no host: '{value}'")
    try:
        parts.port
    except ValueError as exc:
        raise ValueError(f"URL has an invalid port: '{value}'") from exc
    return value


def _checked_env_url(env: Mapping[str, str], name: str) -> str:
    try:
        return _validate_url(env[name])
    except ValueError as exc:
        raise ConfigError(f"${name}: {exc}") from exc
