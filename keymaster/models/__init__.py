"""Command and result types."""

from .commands import (
    Command,
    DeleteCommand,
    GetCommand,
    GetManyCommand,
    SetCommand,
    UpdateCommand,
    auth_reason,
)
from .results import (
    AuthOutcome,
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

__all__ = [
    "AuthOutcome",
    "Command",
    "DeleteCommand",
    "Denied",
    "ErrorKind",
    "ExecutionResult",
    "ExitCode",
    "Failure",
    "GetCommand",
    "GetManyCommand",
    "Granted",
    "Report",
    "SetCommand",
    "Success",
    "Unsupported",
    "UpdateCommand",
    "auth_reason",
]
