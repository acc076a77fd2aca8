"""Tests for logging setup."""

import json
import logging
import sys

import pytest
from rich.logging import RichHandler

from soqlbulk.utils import StructuredFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger("soqlbulk")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


def test_pretty_console_logging():
    logger = setup_logging(log_level="debug")
    assert logger.name == "soqlbulk"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RichHandler)


def test_structured_file_logging(tmp_path):
    log_file = tmp_path / "logs" / "soqlbulk.log"
    logger = setup_logging(log_level="INFO", log_file=log_file, log_format="structured")

    logging.getLogger("soqlbulk.bulk.poller").info(
        "batch completed", extra={"job_id": "750J", "batch_id": "751B"}
    )
    for handler in logger.handlers:
        handler.flush()

    entry = json.loads(log_file.read_text().strip().splitlines()[-1])
    assert entry["level"] == "INFO"
    assert entry["logger"] == "soqlbulk.bulk.poller"
    assert entry["message"] == "batch completed"
    assert entry["job_id"] == "750J"
    assert entry["batch_id"] == "751B"


def test_structured_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.getLogger("soqlbulk").makeRecord(
            "soqlbulk", logging.ERROR, __file__, 1, "failed", (), exc_info=sys.exc_info()
        )

    entry = json.loads(StructuredFormatter().format(record))
    assert entry["message"] == "failed"
    assert "ValueError: boom" in entry["exception"]
