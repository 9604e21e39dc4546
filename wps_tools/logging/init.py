from __future__ import annotations

import logging
import sys
from pathlib import Path

"""Logging initialization with labeled prefixes.

Console output uses ``LABEL message`` lines (INFO|WARN|ERROR|SUMMARY) on stdout.
An optional operational log file receives the same records with a timestamp;
it is the human readable counterpart of the structured ``errors.json`` log.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
]

LOGGER_NAME = "wps_tools"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

# Global logger instance
_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formatter that prefixes each message with a short level label."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


class TimestampedLabeledFormatter(LabeledFormatter):
    """File variant: ``2026-01-01T10:00:00 ERROR message`` plus traceback when present."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = self.formatTime(record, "%Y-%m-%dT%H:%M:%S")
        line = f"{stamp} {super().format(record)}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(log_file: Path | None = None) -> logging.Logger:
    """Setup the application logger.

    Idempotent: a second call returns the configured logger. When ``log_file``
    is given on a later call and no file handler exists yet, one is added.

    Args:
        log_file: Optional operational log path (parent directories are created)

    Returns:
        Configured logger instance for the application
    """
    global _logger

    if _logger is not None:
        if log_file is not None:
            _add_file_handler(_logger, log_file)
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    # Clear any existing handlers to avoid duplication
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    if log_file is not None:
        _add_file_handler(logger, log_file)

    _logger = logger
    return logger


def _add_file_handler(logger: logging.Logger, log_file: Path) -> None:
    target = Path(log_file).resolve()
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == target:
            return
    target.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(target, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(TimestampedLabeledFormatter())
    logger.addHandler(file_handler)


def set_debug(logger: logging.Logger) -> None:
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)
    logger.setLevel(logging.DEBUG)


def get_logger() -> logging.Logger:
    """Get the configured application logger, configuring it on first use."""
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    """Log a message at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state and close file handlers. Mainly for tests."""
    global _logger
    if _logger is not None:
        for h in _logger.handlers[:]:
            if isinstance(h, logging.FileHandler):
                h.close()
            _logger.removeHandler(h)
    _logger = None
