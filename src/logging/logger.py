# src/logging/logger.py — v3
"""Formatters for the ``plan2bim`` logger tree.

Log lines go to stderr (and optionally a rotating file); stdout carries
only CLI envelopes. Both formatters stamp the invocation context so one
phase run can be followed from PENDING to DONE or FAILED.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from plan2bim.logging.context import get_context

ROOT_LOGGER = "plan2bim"


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context keys sit beside the message."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": _timestamp(record).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            **get_context().as_dict(),
            "msg": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["error"] = type(record.exc_info[1]).__name__
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.phase is not None:
            parts.append(f"[phase{ctx.phase}]")
        if ctx.state:
            parts.append(f"({ctx.state})")
        parts.append(f"- {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """(Re)configure the ``plan2bim`` logger and return it.

    ``rotation`` and ``retention`` apply only when ``log_file`` is set.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    targets: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from plan2bim.logging.handlers import create_rotating_handler

        targets.append(create_rotating_handler(log_file, rotation=rotation, retention=retention))

    for handler in targets:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
