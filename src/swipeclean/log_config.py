"""Logging setup shared by CLI commands."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from swipeclean.config.models import LoggingSettings

PACKAGE_LOGGER = "swipeclean"
_HANDLER_NAME = "swipeclean-file"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: LoggingSettings, log_path: Path) -> logging.Logger:
    """Attach a rotating file handler to the package logger.

    Calling this again replaces the previously installed handler, so commands
    that switch collections do not log into the wrong file.

    Args:
        settings: Logging section of the active configuration.
        log_path: File that receives log records.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = logging.getLevelName(settings.level.upper())
    logger.setLevel(level if isinstance(level, int) else logging.WARNING)

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max(settings.max_size_mb, 1) * 1024 * 1024,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "PACKAGE_LOGGER"]
