"""Test fixtures for keymaster."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Callable

import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from keymaster.dispatch import Dispatcher  # noqa: E402
from keymaster.security.auth import Gate  # noqa: E402
from keymaster.security.keychain import SecretStore  # noqa: E402


class MemoryKeyring(KeyringBackend):
    """Dict-backed keyring used in place of the OS keychain."""

    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.entries.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.entries[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        if self.entries.pop((service, username), None) is None:
            raise PasswordDeleteError("not found")


class RecordingStore(SecretStore):
    """SecretStore that records every call made against it."""

    def __init__(self, backend: KeyringBackend) -> None:
        super().__init__(backend=backend)
        self.calls: list[tuple[str, ...]] = []

    def create(self, key: str, secret: str) -> bool:
        self.calls.append(("create", key, secret))
        return super().create(key, secret)

    def update(self, key: str, secret: str) -> bool:
        self.calls.append(("update", key, secret))
        return super().update(key, secret)

    def read(self, key: str) -> str | None:
        self.calls.append(("read", key))
        return super().read(key)

    def delete(self, key: str) -> bool:
        self.calls.append(("delete", key))
        return super().delete(key)


class FakeAuthenticator:
    """Authenticator answering every challenge with a fixed verdict."""

    name = "fake"

    def __init__(self, grant: bool = True, detail: str | None = None, supported: bool = True) -> None:
        self.grant = grant
        self.detail = detail
        self.supported = supported
        self.reasons: list[str] = []
        self.cancelled = 0

    def supports_challenge(self) -> bool:
        return self.supported

    def challenge(self, reason: str, reply: Callable[[bool, str | None], None]) -> None:
        self.reasons.append(reason)
        reply(self.grant, self.detail)

    def cancel(self) -> None:
        self.cancelled += 1


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached settings, environment and root logging between tests."""
    for name in list(os.environ):
        if name.startswith("KEYMASTER_"):
            monkeypatch.delenv(name, raising=False)

    from keymaster import dependencies as deps
    from keymaster.core.config import get_settings

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    deps.get_app_settings.cache_clear()
    get_settings.cache_clear()
    yield
    deps.get_app_settings.cache_clear()
    get_settings.cache_clear()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def backend() -> MemoryKeyring:
    return MemoryKeyring()


@pytest.fixture
def store(backend: MemoryKeyring) -> RecordingStore:
    return RecordingStore(backend)


@pytest.fixture
def authenticator() -> FakeAuthenticator:
    return FakeAuthenticator()


@pytest.fixture
def make_dispatcher(store: RecordingStore) -> Callable[[FakeAuthenticator], Dispatcher]:
    def _make(auth: FakeAuthenticator) -> Dispatcher:
        return Dispatcher(store=store, gate=Gate(auth, timeout=5))

    return _make
