"""Logging setup for the instol client and CLI."""

from __future__ import annotations
import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any
from rich.console import Console
from rich.logging import RichHandler


LOG_LEVEL_ENV = "INSTOL_LOG_LEVEL"
LOG_FORMAT_ENV = "INSTOL_LOG_FORMAT"
ROOT_LOGGER = "instol_sdk"

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects including extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Return ``record`` serialised as JSON."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.getenv(LOG_LEVEL_ENV) or "WARNING").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(
    level: str | int | None = None, *, fmt: str | None = None
) -> logging.Logger:
    """Attach a single handler to the package logger and return it.

    ``fmt`` is ``"text"`` (Rich formatted, on stderr) or ``"json"``; both
    fall back to ``INSTOL_LOG_FORMAT`` and then to ``"text"``.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_resolve_level(level))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    output_format = (fmt or os.getenv(LOG_FORMAT_ENV) or "text").lower()
    handler: logging.Handler
    if output_format == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``name`` or the package root logger."""
    return logging.getLogger(name or ROOT_LOGGER)


__all__ = [
    "LOG_FORMAT_ENV",
    "LOG_LEVEL_ENV",
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
