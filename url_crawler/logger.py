# url_crawler/logger.py
"""
Logging setup for url_crawler.

Everything logs under the ``UrlCrawler`` logger; modules take a child via
:func:`get_logger`. Console output goes to *stderr* because *stdout* carries
the run summary. ``--log-file`` adds a rotating file next to it.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "UrlCrawler"
_LOG_FILE_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _formatted(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(logging.Formatter(_FORMAT))
    return handler


def init_logging(level: _LevelT = "WARNING", log_file: str | Path | None = None) -> logging.Logger:
    """
    Point the project logger at stderr (and *log_file*, if given).

    Safe to call more than once: handlers from an earlier call are closed
    and replaced, so the CLI can override the import-time defaults.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()

    lg.addHandler(_formatted(logging.StreamHandler(sys.stderr)))
    if log_file is not None:
        lg.addHandler(_formatted(RotatingFileHandler(
            filename=str(log_file),
            maxBytes=_LOG_FILE_BYTES,
            backupCount=_LOG_FILE_BACKUPS,
            encoding="utf-8",
        )))

    lg.propagate = False
    return lg


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the project logger or one of its children (``UrlCrawler.<name>``)."""
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


logger: logging.Logger = init_logging()

__all__ = ["logger", "init_logging", "get_logger"]
