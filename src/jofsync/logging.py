"""Centralized logging configuration for jofsync.

Writes a rotating log file for every run and mirrors it to the console.
In quiet mode (the default for scheduled runs) the console only shows errors.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Default configuration
DEFAULT_LOG_DIR = Path.home() / ".jofsync" / "logs"
DEFAULT_LOG_FILE = "jofsync.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

# Log format
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
    quiet: bool = False,
) -> logging.Logger:
    """Set up logging with rotating file handler.

    Args:
        log_dir: Directory for log files. Defaults to ~/.jofsync/logs.
                 Can be overridden with JOFSYNC_LOG_DIR environment variable.
        log_file: Log file name. Defaults to 'jofsync.log'.
        max_bytes: Maximum size per log file before rotation. Defaults to 10MB.
        backup_count: Number of backup files to keep. Defaults to 5.
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to INFO.
               Can be overridden with JOFSYNC_LOG_LEVEL environment variable.
        console: Whether to also log to the console (stderr). Defaults to True.
        quiet: Only show errors on the console. The file still gets everything.

    Returns:
        The root jofsync logger.
    """
    if log_dir is None:
        log_dir = os.environ.get("JOFSYNC_LOG_DIR", DEFAULT_LOG_DIR)
    log_dir = Path(log_dir).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)

    if level is None:
        level = os.environ.get("JOFSYNC_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("jofsync")
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path = log_dir / log_file
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.ERROR if quiet else log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.debug("jofsync logging initialized (level=%s, file=%s)", level, log_path)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component.

    Args:
        name: Component name (e.g., 'jira', 'omnifocus').
              Will be prefixed with 'jofsync.'.

    Returns:
        Logger instance for the component.
    """
    if not name.startswith("jofsync."):
        name = f"jofsync.{name}"
    return logging.getLogger(name)


def sanitize_for_log(text: str) -> str:
    """Remove credentials from text before it is logged or printed.

    Args:
        text: Text that may contain sensitive data.

    Returns:
        Sanitized text safe for logging.
    """
    patterns = [
        (r"Basic [A-Za-z0-9+/=]+", "Basic [REDACTED]"),  # Authorization header
        (r"(?i)(password[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+", r"\1[REDACTED]"),
        (r"(https?://)[^/@\s:]+:[^/@\s]+@", r"\1[REDACTED]@"),  # user:pass@host
    ]

    result = text
    for pat, replacement in patterns:
        result = re.sub(pat, replacement, result)

    return result
