"""
Utility functions for soqlbulk.

Logging setup shared by the CLI and job runner.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


# Global console for pretty output
console = Console()


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    log_format: str = "pretty",
) -> logging.Logger:
    """
    Set up logging for soqlbulk.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to a log file (written as structured JSON)
        log_format: "pretty" (rich console) or "structured" (JSON console)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("soqlbulk")
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.handlers = []  # Clear existing handlers

    if log_format == "pretty":
        console_handler = RichHandler(console=console, rich_tracebacks=True, show_time=False)
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "job_id"):
            log_data["job_id"] = record.job_id
        if hasattr(record, "batch_id"):
            log_data["batch_id"] = record.batch_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)
