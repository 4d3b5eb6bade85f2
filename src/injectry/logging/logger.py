# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry
"""
Logger setup for injectry.

Loggers are standard library loggers configured once from ``LoggingSettings``
with a structured formatter that appends ``extra`` fields as ``key=value``
pairs, or renders the whole record as JSON.
"""

from __future__ import annotations

import enum
import json
import logging
import sys
from typing import Any

from injectry.logging.config import LoggingSettings
from injectry.logging.level import LogLevel

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_configured: set[str] = set()


class StructuredFormatter(logging.Formatter):
    """Formatter that supports structured logging with context data."""

    def __init__(
        self,
        json_format: bool = False,
        include_timestamp: bool = True,
        include_level: bool = True,
    ) -> None:
        """Initialize a structured formatter.

        Args:
            json_format: Whether to format logs as JSON
            include_timestamp: Whether to include timestamps in logs
            include_level: Whether to include log level in logs
        """
        self.json_format = json_format
        self.include_timestamp = include_timestamp
        self.include_level = include_level

        fmt = "%(name)s: %(message)s"
        if include_timestamp:
            fmt = "%(asctime)s " + fmt
        if include_level and not json_format:
            fmt = fmt + " [%(levelname)s]"

        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }

        if self.json_format:
            return self._format_json(record, extra)
        return self._format_text(record, super().format(record), extra)

    def _format_json(self, record: logging.LogRecord, extra: dict[str, Any]) -> str:
        log_data: dict[str, Any] = {
            "message": record.getMessage(),
            "name": record.name,
            **{key: self._format_value(value) for key, value in extra.items()},
        }
        if self.include_level:
            log_data["level"] = record.levelname
        if self.include_timestamp:
            log_data["timestamp"] = self.formatTime(record, self.datefmt)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["error"] = str(record.exc_info[1])
        return json.dumps(log_data, default=str)

    def _format_text(
        self, record: logging.LogRecord, message: str, extra: dict[str, Any]
    ) -> str:
        if not extra:
            return message
        ctx_str = " ".join(f"{k}={self._format_value(v)}" for k, v in extra.items())
        return f"{message} {ctx_str}"

    def _format_value(self, value: Any) -> str:
        """Format a value for text output."""
        if isinstance(value, str):
            if " " in value:
                return f'"{value}"'
            return value
        if isinstance(value, enum.Enum):
            return str(value.value)
        if isinstance(value, type):
            return value.__qualname__
        if isinstance(value, dict | list):
            try:
                return json.dumps(value)
            except TypeError:
                return str(value)
        return str(value)


def configure_logger(
    logger: logging.Logger, settings: LoggingSettings | None = None
) -> logging.Logger:
    """Attach the structured handler and level from ``settings`` to ``logger``."""
    settings = settings or LoggingSettings.load()
    logger.setLevel(LogLevel.from_string(settings.level).to_stdlib_level())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if settings.console_enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(
            StructuredFormatter(
                json_format=settings.json_format,
                include_timestamp=settings.include_timestamp,
                include_level=settings.include_level,
            )
        )
        logger.addHandler(console)
    return logger


def get_logger(name: str, level: LogLevel | None = None) -> logging.Logger:
    """Get a logger for the specified name.

    The ``injectry`` root logger is configured from ``LoggingSettings`` the
    first time any injectry logger is requested; child loggers propagate to it.

    Args:
        name: Logger name (typically __name__)
        level: Optional log level override for this logger

    Returns:
        Configured logger instance
    """
    root_name = name.split(".", 1)[0]
    if root_name not in _configured:
        configure_logger(logging.getLogger(root_name))
        _configured.add(root_name)

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.to_stdlib_level())
    return logger
