"""
Config Harness - Structured Logging

Provides text or JSON-formatted logging with the model under test stamped
on every record, so failures in a long run can be attributed without
reading the surrounding lines.

Features:
- JSON output for CI log parsing
- Text output for local runs (default)
- Model correlation via a context variable
- Operation timing

Usage:
    from config_harness.observability.logging import get_logger, configure_logging

    # Configure at startup
    configure_logging(level="INFO", format="text")

    # Use in code
    logger = get_logger(__name__)
    logger.info("Testing %s", model_name)

JSON output:
    {
        "timestamp": "2026-10-18T10:30:00.123Z",
        "level": "INFO",
        "logger": "config_harness.runtime.walker",
        "model": "graphdef_float32",
        "message": "Testing graphdef_float32"
    }
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

# Model currently being validated
current_model_var: ContextVar[Optional[str]] = ContextVar("current_model", default=None)


class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Formats log records as JSON with consistent field names.
    """

    RESERVED_FIELDS = {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.utcfromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        model = current_model_var.get()
        if model:
            log_entry["model"] = model

        for key, value in record.__dict__.items():
            if key in self.RESERVED_FIELDS or key == "model":
                continue
            log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class CurrentModelFilter(logging.Filter):
    """Adds the model under test to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        model = current_model_var.get()
        record.model = model or "-"
        return True


def configure_logging(level: str = "INFO", format: str = "text") -> None:
    """
    Configure logging for a harness run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format ("json" or "text")
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)

    if format.lower() == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(model)s] %(message)s"
        )

    handler.setFormatter(formatter)
    handler.addFilter(CurrentModelFilter())
    root_logger.addHandler(handler)

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_current_model(model_name: str) -> None:
    """Set the model under test in context."""
    current_model_var.set(model_name)


def get_current_model() -> Optional[str]:
    return current_model_var.get()


def clear_current_model() -> None:
    """Clear the model under test from context."""
    current_model_var.set(None)


class LogTimer:
    """
    Context manager for timing operations and logging duration.

    Usage:
        with LogTimer(logger, "repository validation", base_path=str(path)):
            ...

        # Logs: "repository validation completed" with duration_ms and base_path
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        level: int = logging.INFO,
        **extra_fields
    ):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.extra_fields = extra_fields
        self.start_time = None
        self.duration_ms = 0.0

    def __enter__(self):
        self.start_time = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.monotonic() - self.start_time) * 1000

        log_data = {
            "duration_ms": round(self.duration_ms, 2),
            **self.extra_fields
        }

        if exc_type is None:
            self.logger.log(
                self.level,
                f"{self.operation} completed",
                extra=log_data
            )
        else:
            log_data["error"] = str(exc_val)
            self.logger.error(
                f"{self.operation} failed",
                extra=log_data,
            )
