"""
Logging setup for the benchmark labeler.

``configure_logging(config)`` runs once, from the CLI, before any client is
built.  Everything else logs through ``logging.getLogger(__name__)``.

Two line formats are available under ``[logging]``:

  text (default)   2024-03-31T06:00:00Z [INFO] benchmark_labeler.pipeline.base: ...
  json_format=true {"ts": "...", "level": "INFO", "logger": "...", "msg": "..."}

Timestamps are UTC in both formats.  Keys passed through ``extra=`` (for
example ``source="reports.search"``) become top-level JSON keys.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from benchmark_labeler.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Chatty per-request loggers of the HTTP stack.
QUIET_LOGGERS = ("httpx", "httpcore")

_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Attributes set on ``record`` via ``extra=``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class _JsonFormatter(logging.Formatter):
    """One JSON object per line: ``ts``, ``level``, ``logger``, ``msg``,
    ``exc`` when an exception is attached, then any extras."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": ts.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(_record_extras(record))
        return json.dumps(payload, default=str)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def _build_handlers(config: "LoggingConfig", formatter: logging.Formatter) -> list[logging.Handler]:
    """stdout always; a UTF-8 file handler when ``config.log_file`` is set."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: "LoggingConfig") -> None:
    """Replace the root logger's handlers according to ``config``.

    Unknown level names fall back to INFO.  The HTTP stack's own loggers are
    held at WARNING so request lines do not drown the run summary.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers = _build_handlers(config, _build_formatter(config.json_format))
    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
