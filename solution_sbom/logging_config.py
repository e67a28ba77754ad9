"""Logging configuration for solution-sbom."""

import logging
import sys
from typing import Any, Dict

LOGGER_NAME = "solution_sbom"

LOG_FORMAT_TEXT = "text"
LOG_FORMAT_JSON = "json"


def _build_formatter(structured: bool) -> logging.Formatter:
    if structured:
        return StructuredFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(level: str = "INFO", structured: bool = False) -> logging.Logger:
    """
    Set up the package logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Whether to use structured JSON logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper()))

    # stderr keeps logs apart from anything written to stdout
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_build_formatter(structured))
    logger.addHandler(handler)

    return logger


def configure_logging(level: str, log_format: str = LOG_FORMAT_TEXT) -> None:
    """
    Apply command-line logging settings to the package logger.

    Args:
        level: Logging level name
        log_format: "text" for human-readable lines, "json" for one JSON object per record
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    formatter = _build_formatter(log_format == LOG_FORMAT_JSON)
    for handler in logger.handlers:
        handler.setFormatter(formatter)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        import json
        from datetime import datetime

        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


# Global logger instance
logger = setup_logging()
