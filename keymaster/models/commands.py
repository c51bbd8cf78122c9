"""Typed commands produced by the argument validator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class GetCommand:
    key: str


@dataclass(frozen=True, slots=True)
class SetCommand:
    key: str
    secret: str


@dataclass(frozen=True, slots=True)
class UpdateCommand:
    key: str
    secret: str


@dataclass(frozen=True, slots=True)
class DeleteCommand:
    key: str


@dataclass(frozen=True, slots=True)
class GetManyCommand:
    """Batch read; ``keys`` keeps invocation order and duplicates."""

    keys: tuple[str, ...]


Command = Union[GetCommand, SetCommand, UpdateCommand, DeleteCommand, GetManyCommand]

_AUTH_REASONS: dict[type, str] = {
    GetCommand: "access to your password",
    GetManyCommand: "access to your passwords",
    SetCommand: "set to your password",
    UpdateCommand: "update your password",
    DeleteCommand: "delete your password",
}


def auth_reason(command: Command) -> str:
    """Return the prompt shown to the principal when authorising ``command``."""
    return _AUTH_REASONS[type(command)]


__all__ = [
    "Command",
    "DeleteCommand",
    "GetCommand",
    "GetManyCommand",
    "SetCommand",
    "UpdateCommand",
    "auth_reason",
]
