"""Logger setup shared by every module of the package.

Handlers are attached once, to the package logger; module loggers are its
children and propagate to it.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

PACKAGE_LOGGER = 'json_timeline_extractor'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MAX_LOG_SIZE_BYTES = 5 * 1024 * 1024
MAX_BACKUP_COUNT = 10


class SafeRotatingFileHandler(RotatingFileHandler):
    """Rotating handler that keeps writing to the current file if rollover fails."""

    def doRollover(self):
        try:
            super().doRollover()
        except OSError as e:
            sys.stderr.write(f"Log rotation failed: {e}. Continuing with current log file.\n")
            sys.stderr.flush()


def _get_log_level(level_str: Optional[str]) -> int:
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL,
    }
    return level_map.get((level_str or '').upper(), logging.INFO)


def _configure_package_logger(level: int, log_file: Optional[str]) -> logging.Logger:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    # Avoid adding handlers multiple times
    if package_logger.handlers:
        return package_logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = SafeRotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_SIZE_BYTES,
            backupCount=MAX_BACKUP_COUNT,
            encoding='utf-8',
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        package_logger.addHandler(file_handler)

    return package_logger


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return a logger for `name` with the package handlers configured."""
    from .config import settings

    _configure_package_logger(_get_log_level(level or settings.log_level), settings.log_file)
    return logging.getLogger(name)
