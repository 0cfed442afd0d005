"""
Logging for spmkit.

A single ``spmkit`` logger, quiet by default. Modules log through
``scoped_logger`` and attach structured attributes (``path``, ``status``,
``operation``) with ``extra=``. ``JsonFormatter`` emits records in the
OpenTelemetry log data model; ``HumanFormatter`` prints one line per record
with the model path and engine status inline.

Environment::

    SPMKIT_LOG_LEVEL=trace|debug|info|warn|error|off (default: warn)
    SPMKIT_LOG_FORMAT=json|human (default: human if stderr is a tty, else json)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import MutableMapping
from datetime import datetime, timezone
from typing import Any

from ._version import __version__

__all__ = ["logger", "setup_logging", "scoped_logger", "parse_level"]

logger = logging.getLogger("spmkit")

LEVELS = {
    "trace": logging.DEBUG,  # no TRACE in logging
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}

_SEVERITY = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}

# Attributes present on every LogRecord; anything else came in via extra=.
_RECORD_FIELDS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}


def parse_level(level: str | int, default: int = logging.WARNING) -> int:
    """Map a level name (case-insensitive) or logging constant to a level."""
    if isinstance(level, int):
        return level
    return LEVELS.get(level.lower(), default)


def _scope(record: logging.LogRecord) -> str:
    return getattr(record, "scope", None) or record.name.rpartition(".")[2]


def _structured(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_FIELDS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record, OpenTelemetry log data model."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        attributes = {"scope": _scope(record), **_structured(record)}
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            attributes["exception.type"] = type(exc).__name__
            attributes["exception.message"] = str(exc)

        return json.dumps(
            {
                # RFC3339; logging only has microseconds, padded to nanoseconds
                "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%f") + "000Z",
                "severityText": _SEVERITY.get(record.levelno, "INFO"),
                "body": record.getMessage(),
                "attributes": attributes,
                "resource": {"service.name": "spmkit", "service.version": __version__},
            },
            separators=(",", ":"),
            default=str,
        )


class HumanFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL [scope] message (path) status=N`` for terminals."""

    _COLORS = {
        logging.DEBUG: "\x1b[2m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31m",
    }
    _RESET = "\x1b[0m"

    def __init__(self, use_colors: bool = False) -> None:
        super().__init__()
        self._use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        severity = f"{_SEVERITY.get(record.levelno, 'INFO'):<5}"
        color = self._COLORS.get(record.levelno) if self._use_colors else None
        if color:
            severity = f"{color}{severity}{self._RESET}"

        line = f"{created:%H:%M:%S} {severity} [{_scope(record)}] {record.getMessage()}"
        path = getattr(record, "path", None)
        if path:
            line += f" ({path})"
        status = getattr(record, "status", None)
        if status is not None:
            line += f" status={status}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _make_handler(format: str | None = None) -> logging.Handler:
    fmt = format or os.environ.get("SPMKIT_LOG_FORMAT") or ""
    if not fmt:
        fmt = "human" if sys.stderr.isatty() else "json"

    handler = logging.StreamHandler(sys.stderr)
    if fmt.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(HumanFormatter(use_colors=sys.stderr.isatty()))
    return handler


def setup_logging(level: str | int = "info", format: str | None = None) -> None:
    """
    Configure spmkit logging, replacing any handlers on the ``spmkit`` logger.

    Parameters
    ----------
    level : str or int, default "info"
        A name from ``LEVELS`` or a logging constant such as ``logging.DEBUG``.
    format : str, optional
        "json" or "human". Defaults to ``SPMKIT_LOG_FORMAT``, then to human
        on a terminal and json otherwise.

    Example::

        >>> import spmkit
        >>> spmkit.setup_logging("debug", format="json")
    """
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(_make_handler(format))
    logger.setLevel(parse_level(level, default=logging.INFO))


class _ScopedLoggerAdapter(logging.LoggerAdapter):
    """Adds the fixed scope to each record, merged with per-call extra."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def scoped_logger(scope: str) -> logging.LoggerAdapter:
    """Logger that tags every record with ``scope`` (e.g. "processor")."""
    return _ScopedLoggerAdapter(logger, {"scope": scope})


# Library default: configure only if the application hasn't.
if not logger.handlers:
    logger.addHandler(_make_handler())
    logger.setLevel(parse_level(os.environ.get("SPMKIT_LOG_LEVEL", "warn")))
