"""Centralized logging configuration."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import LOG_DIR, LOG_FILE, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "ridesync"


def get_log_level(level_name: str) -> int:
    """Convert log level name to logging constant."""

    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return levels.get(level_name.upper(), logging.INFO)


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger once.

    Module loggers are children of ``ridesync`` and propagate to it, so the
    handlers live here only.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL``.
        log_file: Optional file name under ``LOG_DIR``, defaults to ``LOG_FILE``.

    Returns:
        The configured package logger.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    log_level = get_log_level(level or LOG_LEVEL)
    logger.setLevel(log_level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_name = log_file or LOG_FILE
    if file_name:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / file_name, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Example:
        >>> from ridesync.core.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Sync started")
    """

    setup_logging()
    return logging.getLogger(name)


__all__ = ["get_logger", "setup_logging"]
