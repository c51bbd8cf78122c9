"""Turn raw command-line tokens into a typed command."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from keymaster.models.commands import (
    Command,
    DeleteCommand,
    GetCommand,
    GetManyCommand,
    SetCommand,
    UpdateCommand,
)

USAGE = (
    "keymaster [get|set|update|delete|get-many] [key] [secret]",
    "  get-many: keymaster get-many key1 key2 key3...",
    "  update: keymaster update existing-key <new-secret> (fails if key doesn't exist)",
)

ACTIONS = ("get", "set", "update", "delete", "get-many")


class ValidationErrorKind(str, Enum):
    MISSING_ACTION = "missing_action"
    UNKNOWN_ACTION = "unknown_action"
    ARITY_MISMATCH = "arity_mismatch"


class CommandValidationError(ValueError):
    """Raised when the invocation cannot be turned into a command."""

    def __init__(self, kind: ValidationErrorKind, message: str | None = None) -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message


def parse(args: Sequence[str]) -> Command:
    """Validate ``args`` (action first) and build the matching command."""
    if not args:
        raise CommandValidationError(ValidationErrorKind.MISSING_ACTION)

    action = args[0]
    if action not in ACTIONS:
        raise CommandValidationError(
            ValidationErrorKind.UNKNOWN_ACTION, f"Error: unknown action '{action}'"
        )

    if action == "get-many":
        if len(args) < 2:
            raise CommandValidationError(
                ValidationErrorKind.ARITY_MISMATCH, "Error: get-many requires at least one key"
            )
        return GetManyCommand(keys=tuple(args[1:]))

    if len(args) not in (2, 3):
        raise CommandValidationError(ValidationErrorKind.ARITY_MISMATCH)

    key = args[1]
    # A missing secret is passed on as "" and refused by the store.
    secret = args[2] if len(args) == 3 else ""
    if action == "get":
        return GetCommand(key=key)
    if action == "delete":
        return DeleteCommand(key=key)
    if action == "set":
        return SetCommand(key=key, secret=secret)
    return UpdateCommand(key=key, secret=secret)


__all__ = [
    "ACTIONS",
    "CommandValidationError",
    "USAGE",
    "ValidationErrorKind",
    "parse",
]
