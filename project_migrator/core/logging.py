"""Structured logging configuration."""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any

from project_migrator.core.config import settings


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "context"):
            log_data.update(record.context)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter that appends keyword context as key=value pairs."""

    def __init__(self):
        super().__init__(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


class StructuredLogger:
    """
    Structured logger wrapper for consistent logging.

    Supports both human-readable and JSON formats. Keyword arguments passed
    to the level methods are attached to the record as context.
    """

    def __init__(self, name: str, json_format: bool = False, level: str = "INFO"):
        """Initialize the logger."""
        self.logger = logging.getLogger(name)
        self._setup_handler(json_format, level)

    def _setup_handler(self, json_format: bool, level: str) -> None:
        """Set up the log handler with appropriate formatter."""
        if self.logger.handlers:
            return  # Already configured

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter() if json_format else TextFormatter())

        self.logger.addHandler(handler)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    def _log(self, level: int, message: str, exc_info: bool = False, **context: Any) -> None:
        """Log with extra context."""
        extra = {"context": context} if context else None
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def info(self, message: str, **context: Any) -> None:
        """Log info level message."""
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning level message."""
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log error level message."""
        self._log(logging.ERROR, message, **context)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug level message."""
        self._log(logging.DEBUG, message, **context)

    def exception(self, message: str, **context: Any) -> None:
        """Log exception with traceback."""
        self._log(logging.ERROR, message, exc_info=True, **context)


def get_logger(name: str, json_format: bool | None = None) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)
        json_format: If True, output JSON formatted logs. Defaults to LOG_JSON.

    Returns:
        StructuredLogger instance
    """
    if json_format is None:
        json_format = settings.LOG_JSON
    return StructuredLogger(name, json_format, settings.LOG_LEVEL)


# Default application logger
logger = get_logger("project-migrator")
