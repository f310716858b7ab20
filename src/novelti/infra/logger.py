"""
Logging setup for the command-line front end and embedding applications.
"""

from __future__ import annotations

__all__ = ["setup_logging"]

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from novelti.infra.paths import LOG_DIR

LOGGER_NAME = "novelti"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 5


def setup_logging(
    level: int | str = logging.INFO,
    *,
    log_dir: str | Path | None = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the ``novelti`` logger hierarchy.

    Calling this again replaces the handlers installed by a previous call,
    so the level and destinations can be changed at runtime.

    Args:
        level: Level number or name (``"DEBUG"``, ``"INFO"``, ...).
        log_dir: Directory for a rotating ``novelti.log``. ``None`` disables
            file logging; pass :data:`novelti.infra.paths.LOG_DIR` for the
            per-user default.
        console: Whether to also log to stderr.

    Returns:
        logging.Logger: The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if log_dir is not None:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            directory / "novelti.log",
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def default_log_dir() -> Path:
    """Return the per-user log directory."""
    return LOG_DIR
