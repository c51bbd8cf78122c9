"""Authentication gate in front of every keychain operation."""

from __future__ import annotations

import getpass
import logging
import os
import threading
from concurrent.futures import Future, InvalidStateError
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Optional, Protocol

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from keymaster.models.results import AuthOutcome, Denied, Granted, Unsupported

try:
    import termios
except ImportError:  # pragma: no cover - Windows has no termios
    termios = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

ReplyCallback = Callable[[bool, Optional[str]], None]
PromptFunc = Callable[[str], str]

DIGEST_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 600_000
KEY_SIZE = 32
SALT_SIZE = 16
TTY_PATH = "/dev/tty"


class Authenticator(Protocol):
    """Host facility able to challenge the principal."""

    name: str

    def supports_challenge(self) -> bool:
        ...

    def challenge(self, reason: str, reply: ReplyCallback) -> None:
        """Start one challenge; ``reply`` is invoked once, possibly from another thread."""
        ...

    def cancel(self) -> None:
        """Abandon a challenge whose reply is no longer awaited."""
        ...


def _kdf(salt: bytes, iterations: int, length: int = KEY_SIZE) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=SHA256(), length=length, salt=salt, iterations=iterations)


def hash_passphrase(
    passphrase: str,
    iterations: int = DEFAULT_ITERATIONS,
    salt: bytes | None = None,
) -> str:
    """Return a ``pbkdf2_sha256$iterations$salt$hash`` digest for configuration."""
    salt = salt if salt is not None else os.urandom(SALT_SIZE)
    derived = _kdf(salt, iterations).derive(passphrase.encode("utf-8"))
    return f"{DIGEST_SCHEME}${iterations}${salt.hex()}${derived.hex()}"


def _parse_digest(digest: str) -> tuple[int, bytes, bytes] | None:
    parts = digest.split("$")
    if len(parts) != 4 or parts[0] != DIGEST_SCHEME:
        return None
    try:
        iterations = int(parts[1])
        salt = bytes.fromhex(parts[2])
        expected = bytes.fromhex(parts[3])
    except ValueError:
        return None
    if iterations <= 0 or not salt or not expected:
        return None
    return iterations, salt, expected


def verify_passphrase(passphrase: str, digest: str) -> bool:
    parsed = _parse_digest(digest)
    if parsed is None:
        return False
    iterations, salt, expected = parsed
    try:
        _kdf(salt, iterations, length=len(expected)).verify(passphrase.encode("utf-8"), expected)
    except InvalidKey:
        return False
    return True


class PassphraseAuthenticator:
    """Challenge the operator for a passphrase checked against a stored digest.

    The prompt runs on a worker thread and reports through the reply callback,
    so callers must wait for the callback rather than for ``challenge`` to return.
    Terminal modes are captured before prompting so ``cancel`` can put echo
    back when the worker is abandoned mid-prompt.
    """

    name = "passphrase"

    def __init__(
        self,
        digest: str | None,
        prompt: PromptFunc | None = None,
        tty_path: str = TTY_PATH,
    ) -> None:
        self._digest = digest
        self._prompt = prompt or getpass.getpass
        self._tty_path = tty_path
        self._tty_lock = threading.Lock()
        self._saved_tty: tuple[int, list] | None = None

    def supports_challenge(self) -> bool:
        return bool(self._digest) and _parse_digest(self._digest) is not None

    def challenge(self, reason: str, reply: ReplyCallback) -> None:
        self._save_terminal()
        worker = threading.Thread(
            target=self._run,
            args=(reason, reply),
            name="keymaster-auth",
            daemon=True,
        )
        worker.start()

    def cancel(self) -> None:
        self._release_terminal(restore=True)

    def _run(self, reason: str, reply: ReplyCallback) -> None:
        try:
            entered = self._prompt(f"keymaster is trying to {reason}. Passphrase: ")
        except EOFError:
            reply(False, "Canceled by user")
            return
        finally:
            self._release_terminal(restore=False)
        if verify_passphrase(entered, self._digest or ""):
            reply(True, None)
        else:
            reply(False, "Passphrase did not match")

    def _save_terminal(self) -> None:
        if termios is None:
            return
        try:
            fd = os.open(self._tty_path, os.O_RDWR | os.O_NOCTTY)
        except OSError:
            return
        try:
            attrs = termios.tcgetattr(fd)
        except termios.error:
            os.close(fd)
            return
        with self._tty_lock:
            self._saved_tty = (fd, attrs)

    def _release_terminal(self, restore: bool) -> None:
        with self._tty_lock:
            saved, self._saved_tty = self._saved_tty, None
        if saved is None:
            return
        fd, attrs = saved
        try:
            if restore:
                termios.tcsetattr(fd, termios.TCSAFLUSH, attrs)
                os.write(fd, b"\n")
        except (termios.error, OSError) as exc:
            logger.warning("Could not restore terminal settings: %s", exc)
        finally:
            os.close(fd)


class Gate:
    """Issue exactly one challenge and block until its callback resolves."""

    def __init__(self, authenticator: Authenticator, timeout: float | None = None) -> None:
        self._authenticator = authenticator
        self._timeout = timeout

    def authenticate(self, reason: str) -> AuthOutcome:
        if not self._authenticator.supports_challenge():
            logger.warning("Authenticator %s is unavailable", self._authenticator.name)
            return Unsupported(
                f"This device does not support {self._authenticator.name} authentication"
            )

        pending: Future[AuthOutcome] = Future()

        def reply(success: bool, detail: str | None = None) -> None:
            outcome: AuthOutcome = Granted() if success else Denied(detail or "Unknown error")
            try:
                pending.set_result(outcome)
            except InvalidStateError:
                logger.warning("Ignoring repeated authentication callback")

        logger.debug("Requesting authentication", extra={"ctx_reason": reason})
        self._authenticator.challenge(reason, reply)
        try:
            return pending.result(timeout=self._timeout)
        except FutureTimeout:
            logger.warning("Authentication timed out after %ss", self._timeout)
            self._authenticator.cancel()
            return Denied("Authentication timed out")
        except KeyboardInterrupt:
            self._authenticator.cancel()
            return Denied("Authentication was canceled")


__all__ = [
    "Authenticator",
    "Gate",
    "PassphraseAuthenticator",
    "ReplyCallback",
    "hash_passphrase",
    "verify_passphrase",
]
