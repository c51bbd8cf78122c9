"""Command dispatcher: raw arguments in, report and exit code out."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Sequence

from keymaster.cli.validator import USAGE, CommandValidationError, parse
from keymaster.models.commands import (
    Command,
    DeleteCommand,
    GetCommand,
    GetManyCommand,
    SetCommand,
    UpdateCommand,
    auth_reason,
)
from keymaster.models.results import (
    Denied,
    ErrorKind,
    ExecutionResult,
    ExitCode,
    Failure,
    Granted,
    Report,
    Success,
    Unsupported,
)
from keymaster.security.auth import Gate
from keymaster.security.keychain import SecretStore

logger = logging.getLogger(__name__)


class State(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AUTHENTICATING = "authenticating"
    EXECUTING = "executing"
    REPORTING = "reporting"
    TERMINATED = "terminated"


class Dispatcher:
    """Run one invocation through validate, authenticate, execute and report.

    The store is never touched unless the gate grants access, and each
    command variant is handled by exactly one method.
    """

    def __init__(self, store: SecretStore, gate: Gate) -> None:
        self._store = store
        self._gate = gate
        self.state = State.IDLE
        self._handlers: dict[type, Callable[..., ExecutionResult]] = {
            GetCommand: self._get,
            SetCommand: self._set,
            UpdateCommand: self._update,
            DeleteCommand: self._delete,
            GetManyCommand: self._get_many,
        }

    def _enter(self, state: State) -> None:
        logger.debug("%s -> %s", self.state.value, state.value)
        self.state = state

    def run(self, args: Sequence[str]) -> Report:
        if self.state is not State.IDLE:
            raise RuntimeError("Dispatcher instances handle a single invocation")

        self._enter(State.VALIDATING)
        try:
            command = parse(args)
        except CommandValidationError as exc:
            logger.info("Invalid invocation: %s", exc.kind.value)
            lines = [exc.message] if exc.message else []
            return self._report(ExitCode.FAILURE, [*lines, *USAGE])

        self._enter(State.AUTHENTICATING)
        outcome = self._gate.authenticate(auth_reason(command))
        if isinstance(outcome, Unsupported):
            return self._report(ExitCode.FAILURE, [outcome.message])
        if isinstance(outcome, Denied):
            return self._report(
                ExitCode.FAILURE,
                [f"Authentication failed or was canceled: {outcome.message}"],
            )
        if not isinstance(outcome, Granted):
            raise TypeError(f"Unexpected authentication outcome: {outcome!r}")

        self._enter(State.EXECUTING)
        result = self.execute(command)
        if isinstance(result, Failure):
            logger.info("Command failed: %s", result.kind.value)
            return self._report(ExitCode.FAILURE, result.detail.splitlines())
        lines = [result.output] if result.output is not None else []
        return self._report(ExitCode.SUCCESS, lines)

    def _report(self, exit_code: ExitCode, lines: list[str]) -> Report:
        self._enter(State.REPORTING)
        report = Report(exit_code=exit_code, lines=lines)
        self._enter(State.TERMINATED)
        return report

    def execute(self, command: Command) -> ExecutionResult:
        """Apply an already authorised command to the store."""
        handler = self._handlers[type(command)]
        return handler(command)

    def _get(self, command: GetCommand) -> ExecutionResult:
        secret = self._store.read(command.key)
        if secret is None:
            return Failure(ErrorKind.NOT_FOUND, f"Error getting password for key: {command.key}")
        return Success(secret)

    def _set(self, command: SetCommand) -> ExecutionResult:
        if not self._store.create(command.key, command.secret):
            return Failure(
                ErrorKind.WRITE_REJECTED, f"Error setting password for key: {command.key}"
            )
        return Success(f"Key {command.key} has been successfully set in the keychain")

    def _update(self, command: UpdateCommand) -> ExecutionResult:
        if not self._store.update(command.key, command.secret):
            return Failure(
                ErrorKind.NOT_FOUND_OR_WRITE_REJECTED,
                f"Error: Key '{command.key}' does not exist or failed to update\n"
                "Use 'set' command to create a new key or check if the key exists",
            )
        return Success(f"Key {command.key} has been successfully updated in the keychain")

    def _delete(self, command: DeleteCommand) -> ExecutionResult:
        if not self._store.delete(command.key):
            return Failure(
                ErrorKind.NOT_FOUND_OR_DELETE_REJECTED,
                f"Error deleting password for key: {command.key}",
            )
        return Success(f"Key {command.key} has been successfully deleted from the keychain")

    def _get_many(self, command: GetManyCommand) -> ExecutionResult:
        # All or nothing: stop at the first miss and print none of the hits.
        found: list[str] = []
        for key in command.keys:
            secret = self._store.read(key)
            if secret is None:
                return Failure(ErrorKind.NOT_FOUND, f"Error getting password for key: {key}")
            found.append(f"{key}={secret}")
        return Success("\n".join(found))


__all__ = ["Dispatcher", "State"]
