"""Shared wiring for the CLI."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from keymaster.core.config import Settings, get_settings
from keymaster.dispatch import Dispatcher
from keymaster.security.auth import Gate, PassphraseAuthenticator
from keymaster.security.keychain import SecretStore, load_backend


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def load_app_settings(config_path: Path | None = None) -> Settings:
    if config_path is None:
        return get_app_settings()
    return Settings.from_yaml(config_path)


def get_secret_store(settings: Settings) -> SecretStore:
    return SecretStore(backend=load_backend(settings.keyring_backend), account=settings.account)


def get_gate(settings: Settings) -> Gate:
    authenticator = PassphraseAuthenticator(settings.passphrase_hash)
    return Gate(authenticator, timeout=settings.auth_timeout_seconds)


def get_dispatcher(settings: Settings) -> Dispatcher:
    return Dispatcher(store=get_secret_store(settings), gate=get_gate(settings))


__all__ = [
    "get_app_settings",
    "get_dispatcher",
    "get_gate",
    "get_secret_store",
    "load_app_settings",
]
