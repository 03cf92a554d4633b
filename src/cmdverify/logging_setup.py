"""Logging configuration for command verification runs.

Phase output goes through the ``cmdverify`` logger at INFO so that the
silent flag can drop it by raising the console threshold; warnings and
errors always reach the console.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .settings import settings

LOGGER_NAME = "cmdverify"
_HANDLER_MARKER = "_cmdverify_handler"

CONSOLE_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    level: str | None = None,
    *,
    silent: bool = False,
    log_path: Path | None = None,
) -> logging.Logger:
    """Attach console (and optional rotating file) handlers.

    Args:
        level: Level name for the console handler. Defaults to settings.log_level.
        silent: Raise the console threshold to WARNING.
        log_path: Rotating log file. Defaults to settings.log_path (may be None).

    Returns:
        The package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    console_level = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(console_level, int):
        console_level = logging.INFO
    if silent:
        console_level = max(console_level, logging.WARNING)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    setattr(console, _HANDLER_MARKER, True)
    logger.addHandler(console)

    file_level = console_level
    target = log_path or settings.log_path
    if target is not None:
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            target,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)
        file_level = logging.DEBUG

    logger.setLevel(min(console_level, file_level))
    return logger
