"""Outcome types flowing from the gate and the dispatcher to the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Union


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1


@dataclass(frozen=True, slots=True)
class Granted:
    pass


@dataclass(frozen=True, slots=True)
class Denied:
    message: str


@dataclass(frozen=True, slots=True)
class Unsupported:
    message: str


AuthOutcome = Union[Granted, Denied, Unsupported]


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    WRITE_REJECTED = "write_rejected"
    NOT_FOUND_OR_WRITE_REJECTED = "not_found_or_write_rejected"
    NOT_FOUND_OR_DELETE_REJECTED = "not_found_or_delete_rejected"


@dataclass(frozen=True, slots=True)
class Success:
    output: str | None = None


@dataclass(frozen=True, slots=True)
class Failure:
    kind: ErrorKind
    detail: str


ExecutionResult = Union[Success, Failure]


@dataclass(slots=True)
class Report:
    """Lines to print on stdout and the code to exit with."""

    exit_code: ExitCode
    lines: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code is ExitCode.SUCCESS


__all__ = [
    "AuthOutcome",
    "Denied",
    "ErrorKind",
    "ExecutionResult",
    "ExitCode",
    "Failure",
    "Granted",
    "Report",
    "Success",
    "Unsupported",
]
