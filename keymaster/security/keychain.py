"""OS keychain access through the ``keyring`` library."""

from __future__ import annotations

import logging

import keyring
import keyring.core
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT = "keymaster"


def load_backend(name: str | None = None) -> KeyringBackend:
    """Return the keyring backend named by dotted path, or the platform default."""
    if name:
        return keyring.core.load_keyring(name)
    return keyring.get_keyring()


class SecretStore:
    """Create/read/update/delete one keychain item per key.

    Each key is stored as its own service entry under a fixed account name.
    Every call talks to the backend directly; nothing is cached.
    """

    def __init__(self, backend: KeyringBackend | None = None, account: str = DEFAULT_ACCOUNT) -> None:
        self._backend = backend if backend is not None else load_backend()
        self.account = account

    def create(self, key: str, secret: str) -> bool:
        if not secret:
            logger.warning("Refusing to store an empty secret for %s", key)
            return False
        try:
            if self._backend.get_password(key, self.account) is not None:
                logger.info("Entry %s already exists", key)
                return False
            self._backend.set_password(key, self.account, secret)
        except KeyringError as exc:
            logger.error("Keychain rejected write for %s: %s", key, exc)
            return False
        return True

    def update(self, key: str, secret: str) -> bool:
        if not secret:
            logger.warning("Refusing to store an empty secret for %s", key)
            return False
        try:
            if self._backend.get_password(key, self.account) is None:
                logger.info("Entry %s does not exist", key)
                return False
            self._backend.set_password(key, self.account, secret)
        except KeyringError as exc:
            logger.error("Keychain rejected update for %s: %s", key, exc)
            return False
        return True

    def read(self, key: str) -> str | None:
        try:
            return self._backend.get_password(key, self.account)
        except (KeyringError, UnicodeError, ValueError) as exc:
            logger.warning("Could not read %s: %s", key, exc)
            return None

    def delete(self, key: str) -> bool:
        try:
            self._backend.delete_password(key, self.account)
        except PasswordDeleteError:
            logger.info("Entry %s does not exist", key)
            return False
        except KeyringError as exc:
            logger.error("Keychain rejected delete for %s: %s", key, exc)
            return False
        return True


__all__ = ["DEFAULT_ACCOUNT", "SecretStore", "load_backend"]
