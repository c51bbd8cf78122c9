"""Logging utilities for keymaster."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import orjson

_DEFAULT_LEVEL = os.environ.get("KEYMASTER_LOG_LEVEL", "WARNING")


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``ctx_*`` extras are carried through."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        payload.update(
            (key, value) for key, value in record.__dict__.items() if key.startswith("ctx_")
        )
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(
    level: str | int = _DEFAULT_LEVEL,
    use_json: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Point the root logger at stderr (or ``stream``).

    stdout carries secrets and command output, so it never receives records.
    """
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]


__all__ = ["JsonFormatter", "configure_logging"]
