"""
Logging utilities for extraction progress.

Provides a JSON formatter for machine-readable runs and a single setup
function that routes all pipeline logging to standard output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

# Extra record attributes the JSON formatter lifts into the log entry
CONTEXT_FIELDS = ("dashboard_id", "cell_link", "worker", "duration_ms")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if hasattr(record, "error"):
            log_entry["error"] = record.error

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    stream: Optional[TextIO] = None
) -> None:
    """Set up global logging configuration."""

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stdout)

    if format_type == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root_logger.addHandler(console_handler)

    # aiohttp's access and client loggers are noisy at INFO
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a standard logger instance for the given name."""
    return logging.getLogger(name)


def log_extra(**context: Any) -> dict:
    """Build an ``extra`` mapping, dropping unset context values."""
    return {key: value for key, value in context.items() if value is not None}
