"""Tests for the authentication gate and passphrase authenticator."""

from __future__ import annotations

import os
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable

import pytest

from keymaster.models.results import Denied, Granted, Unsupported
from keymaster.security.auth import (
    Gate,
    PassphraseAuthenticator,
    hash_passphrase,
    verify_passphrase,
)
from conftest import FakeAuthenticator

DIGEST = hash_passphrase("letmein", iterations=1000, salt=b"0123456789abcdef")


class ThreadedAuthenticator:
    """Replies from a worker thread, optionally more than once."""

    name = "threaded"

    def __init__(self, replies: list[tuple[bool, str | None]]) -> None:
        self.replies = replies

    def supports_challenge(self) -> bool:
        return True

    def challenge(self, reason: str, reply: Callable[[bool, str | None], None]) -> None:
        def _run() -> None:
            for success, detail in self.replies:
                reply(success, detail)

        threading.Thread(target=_run, daemon=True).start()

    def cancel(self) -> None:
        pass


class SilentAuthenticator:
    name = "silent"

    def __init__(self) -> None:
        self.cancelled = 0

    def supports_challenge(self) -> bool:
        return True

    def challenge(self, reason: str, reply: Callable[[bool, str | None], None]) -> None:
        pass

    def cancel(self) -> None:
        self.cancelled += 1


def test_unsupported_skips_challenge() -> None:
    auth = FakeAuthenticator(supported=False)
    outcome = Gate(auth).authenticate("access to your password")
    assert isinstance(outcome, Unsupported)
    assert "does not support" in outcome.message
    assert auth.reasons == []


def test_granted_from_worker_thread() -> None:
    outcome = Gate(ThreadedAuthenticator([(True, None)]), timeout=5).authenticate("x")
    assert outcome == Granted()


def test_denied_without_detail_falls_back() -> None:
    outcome = Gate(FakeAuthenticator(grant=False)).authenticate("x")
    assert outcome == Denied("Unknown error")


def test_denied_keeps_detail() -> None:
    outcome = Gate(FakeAuthenticator(grant=False, detail="User canceled")).authenticate("x")
    assert outcome == Denied("User canceled")


def test_only_first_callback_counts() -> None:
    auth = ThreadedAuthenticator([(False, "nope"), (True, None)])
    assert Gate(auth, timeout=5).authenticate("x") == Denied("nope")


def test_single_challenge_per_call() -> None:
    auth = FakeAuthenticator()
    Gate(auth).authenticate("delete your password")
    assert auth.reasons == ["delete your password"]


def test_timeout_is_denial_and_cancels() -> None:
    auth = SilentAuthenticator()
    outcome = Gate(auth, timeout=0.05).authenticate("x")
    assert outcome == Denied("Authentication timed out")
    assert auth.cancelled == 1


def test_interrupt_while_waiting_is_cancel(monkeypatch: pytest.MonkeyPatch) -> None:
    class InterruptedFuture(Future):
        def result(self, timeout: float | None = None) -> object:
            raise KeyboardInterrupt

    monkeypatch.setattr("keymaster.security.auth.Future", InterruptedFuture)
    auth = FakeAuthenticator()
    outcome = Gate(auth, timeout=5).authenticate("x")
    assert outcome == Denied("Authentication was canceled")
    assert auth.cancelled == 1


def test_answered_challenge_is_not_cancelled() -> None:
    auth = FakeAuthenticator()
    Gate(auth, timeout=5).authenticate("x")
    assert auth.cancelled == 0


def test_verify_passphrase() -> None:
    assert verify_passphrase("letmein", DIGEST) is True
    assert verify_passphrase("wrong", DIGEST) is False
    assert verify_passphrase("letmein", "md5$1$00$00") is False


def test_passphrase_support_requires_valid_digest() -> None:
    assert PassphraseAuthenticator(DIGEST).supports_challenge() is True
    assert PassphraseAuthenticator(None).supports_challenge() is False
    assert PassphraseAuthenticator("pbkdf2_sha256$x$zz$zz").supports_challenge() is False


def test_passphrase_prompt_mentions_reason() -> None:
    prompts: list[str] = []

    def prompt(text: str) -> str:
        prompts.append(text)
        return "letmein"

    outcome = Gate(PassphraseAuthenticator(DIGEST, prompt=prompt), timeout=5).authenticate(
        "set to your password"
    )
    assert outcome == Granted()
    assert prompts == ["keymaster is trying to set to your password. Passphrase: "]


def test_passphrase_mismatch() -> None:
    auth = PassphraseAuthenticator(DIGEST, prompt=lambda _: "guess")
    assert Gate(auth, timeout=5).authenticate("x") == Denied("Passphrase did not match")


def test_passphrase_eof_is_cancel() -> None:
    def prompt(_: str) -> str:
        raise EOFError

    auth = PassphraseAuthenticator(DIGEST, prompt=prompt)
    assert Gate(auth, timeout=5).authenticate("x") == Denied("Canceled by user")


def test_abandoned_prompt_restores_echo() -> None:
    pty = pytest.importorskip("pty")
    termios = pytest.importorskip("termios")
    master, slave = pty.openpty()
    release = threading.Event()

    def prompt(_: str) -> str:
        # Mute the terminal the way getpass does, then never answer.
        attrs = termios.tcgetattr(slave)
        attrs[3] &= ~termios.ECHO
        termios.tcsetattr(slave, termios.TCSAFLUSH, attrs)
        release.wait(5)
        return ""

    try:
        assert termios.tcgetattr(slave)[3] & termios.ECHO
        auth = PassphraseAuthenticator(DIGEST, prompt=prompt, tty_path=os.ttyname(slave))
        outcome = Gate(auth, timeout=1.0).authenticate("x")
        assert outcome == Denied("Authentication timed out")
        assert termios.tcgetattr(slave)[3] & termios.ECHO
    finally:
        release.set()
        os.close(master)
        os.close(slave)


def test_prompt_without_terminal(tmp_path: Path) -> None:
    auth = PassphraseAuthenticator(
        DIGEST, prompt=lambda _: "letmein", tty_path=str(tmp_path / "missing-tty")
    )
    assert Gate(auth, timeout=5).authenticate("x") == Granted()
    auth.cancel()
