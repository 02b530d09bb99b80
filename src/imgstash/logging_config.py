"""Logging setup for the imgstash CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from imgstash.config.models import LoggingSettings

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: LoggingSettings, *, verbose: bool = False) -> None:
    """Configure the ``imgstash`` logger hierarchy.

    Args:
        settings: Logging section of the resolved configuration.
        verbose: Force INFO level regardless of the configured level.
    """
    level_name = "INFO" if verbose else settings.level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING

    logger = logging.getLogger("imgstash")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream = logging.StreamHandler()
    stream.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(stream)

    if settings.file is not None:
        path = settings.file.expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        rotating.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(rotating)


__all__ = ["configure_logging"]
