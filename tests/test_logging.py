"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from fintrack.config import BaseConfig
from fintrack.logging_config import JSONFormatter, get_logger, setup_logging


def _record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="fintrack.ledger",
        level=kwargs.pop("level", logging.INFO),
        pathname="ledger_service.py",
        lineno=42,
        msg="Applied balance delta",
        args=(),
        exc_info=kwargs.pop("exc_info", None),
    )
    record.funcName = "_adjust_balance"
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    log_data = json.loads(JSONFormatter().format(_record(account_id=3, delta_cents=-500)))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "fintrack.ledger"
    assert log_data["message"] == "Applied balance delta"
    assert log_data["function"] == "_adjust_balance"
    assert log_data["line"] == 42
    assert log_data["extra"] == {"account_id": 3, "delta_cents": -500}
    assert "timestamp" in log_data


def test_json_formatter_with_exception():
    try:
        raise ValueError("disk full")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))

    assert log_data["exception"]["type"] == "ValueError"
    assert "disk full" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"]


def test_setup_logging_writes_json_lines(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "fintrack"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2

    get_logger("ledger").info("Created transaction", extra={"transaction_id": 1})
    for handler in logger.handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "fintrack.log"
    lines = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
    assert lines[0]["message"] == "Logging initialized"
    assert lines[-1]["extra"] == {"transaction_id": 1}


def test_setup_logging_does_not_stack_handlers(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_get_logger_namespaces():
    assert get_logger("ledger").name == "fintrack.ledger"
    assert get_logger("api").parent is logging.getLogger("fintrack")


@pytest.mark.parametrize("dev_mode", [True, False])
def test_console_level_by_mode(tmp_path, dev_mode):
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console = next(
        handler
        for handler in logger.handlers
        if not isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    assert console.level == (logging.INFO if dev_mode else logging.WARNING)
