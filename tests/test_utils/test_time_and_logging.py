"""Tests for utils/time_utils.py and utils/logging.py."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone

import pytest

from benchmark_labeler.config import LoggingConfig
from benchmark_labeler.utils.logging import _JsonFormatter, configure_logging
from benchmark_labeler.utils.time_utils import format_updated_at, today_in, utcnow


# ── time_utils ────────────────────────────────────────────────────────────────


def test_utcnow_is_aware() -> None:
    assert utcnow().tzinfo is not None


def test_format_updated_at_utc() -> None:
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert format_updated_at(moment) == "2024-01-02 03:04:05"


def test_format_updated_at_naive_taken_as_utc() -> None:
    assert format_updated_at(datetime(2024, 1, 2, 3, 4, 5), "Asia/Tokyo") == "2024-01-02 12:04:05"


def test_today_in_returns_date() -> None:
    assert isinstance(today_in("UTC"), date)


# ── logging ───────────────────────────────────────────────────────────────────


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    saved = (list(root.handlers), root.level)
    yield
    for handler in root.handlers:
        if handler not in saved[0]:
            handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])


def test_json_formatter_includes_extra() -> None:
    record = logging.LogRecord("benchmark_labeler.x", logging.INFO, __file__, 1,
                               "fetched %d rows", (3,), None)
    record.source = "reports.search"
    payload = json.loads(_JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "benchmark_labeler.x"
    assert payload["msg"] == "fetched 3 rows"
    assert payload["source"] == "reports.search"
    assert "args" not in payload


def test_configure_logging_writes_file(tmp_path, restore_root_logging) -> None:
    log_file = tmp_path / "logs" / "run.log"
    configure_logging(LoggingConfig(level="debug", log_file=str(log_file)))
    logging.getLogger("benchmark_labeler.test").debug("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_text_format_stamps_utc(tmp_path, restore_root_logging) -> None:
    log_file = tmp_path / "run.log"
    configure_logging(LoggingConfig(level="info", log_file=str(log_file)))
    record = logging.makeLogRecord({"name": "x", "levelno": logging.INFO,
                                    "levelname": "INFO", "msg": "m", "created": 0.0})
    line = logging.getLogger().handlers[0].format(record)
    assert line.startswith("1970-01-01T00:00:00Z [INFO] x: m")
