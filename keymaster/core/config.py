"""Application configuration handling."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "KEYMASTER_"
DEFAULT_CONFIG_PATH = Path("~/.config/keymaster/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("keychain", "account"): "account",
    ("keychain", "backend"): "keyring_backend",
    ("auth", "passphrase_hash"): "passphrase_hash",
    ("auth", "timeout_seconds"): "auth_timeout_seconds",
    ("logging", "level"): "log_level",
    ("logging", "json"): "log_json",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    account: str = Field(default="keymaster", min_length=1)
    keyring_backend: str | None = None
    passphrase_hash: str | None = None
    auth_timeout_seconds: float | None = Field(default=60.0, gt=0)
    log_level: str = "WARNING"
    log_json: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        return str(value).upper()

    @field_validator("keyring_backend", "passphrase_hash", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("auth_timeout_seconds", mode="before")
    @classmethod
    def _no_timeout(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in {"", "none", "never"}:
            return None
        return value

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map ``section: {key: value}`` YAML onto Settings field names.

    Unknown sections and keys are logged and dropped so a typo never silently
    changes which keychain account or passphrase digest is used.
    """
    flat: dict[str, Any] = {}
    for section, entries in raw.items():
        if not isinstance(entries, Mapping):
            logger.warning("Ignoring config entry %r: expected a section", section)
            continue
        for key, value in entries.items():
            field_name = _YAML_KEY_MAP.get((section, key))
            if field_name is None:
                logger.warning("Ignoring unknown config key %s.%s", section, key)
                continue
            flat[field_name] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Collect ``KEYMASTER_<FIELD>`` variables; ``KEYMASTER_CONFIG`` only picks the file."""
    overrides: dict[str, Any] = {}
    for field_name in Settings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value is not None:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
