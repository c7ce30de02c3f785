"""Centralized logging utilities for Iamus.

Every module logs through ``logging.getLogger(__name__)`` under the ``iamus``
namespace. Once configuration is resolved, :func:`get_logger` attaches the
sinks the ``debug`` section asks for so all of those loggers share one format
and one rotating file.
"""

from __future__ import annotations

import gzip
import logging
import logging.handlers
import os
import pathlib
import shutil
from typing import Any, Mapping, Optional

from iamus.config import Settings

# Cache created loggers so repeated calls don't duplicate handlers
_LOGGER_CACHE = {}

# debug.loglevel uses winston level names
LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "http": logging.INFO,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "silly": logging.DEBUG,
}

FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
CONSOLE_FORMAT = "%(message)s"


def level_for(name: Any) -> int:
    """Map a ``debug.loglevel`` value to a :mod:`logging` level (INFO if unknown)."""
    return LEVELS.get(str(name or "").strip().lower(), logging.INFO)


def _gzip_namer(name: str) -> str:
    return name + ".gz"


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as sf, gzip.open(dest, "wb") as df:
        shutil.copyfileobj(sf, df)
    os.remove(source)


def _file_handler(debug: Mapping[str, Any]) -> logging.Handler:
    log_dir = pathlib.Path(debug.get("log-directory") or "logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / (debug.get("log-filename") or "iamus.log")

    fh = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=int(float(debug.get("log-max-size-megabytes") or 0) * 1_000_000),
        backupCount=int(debug.get("log-max-files") or 0),
        encoding="utf-8",
    )
    if debug.get("log-compress"):
        fh.namer = _gzip_namer
        fh.rotator = _gzip_rotator
    fh.setFormatter(logging.Formatter(FILE_FORMAT))
    return fh


def _configure(logger: logging.Logger, debug: Mapping[str, Any]) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(level_for(debug.get("loglevel")))

    if debug.get("log-to-files"):
        logger.addHandler(_file_handler(debug))

    if debug.get("log-to-console"):
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(ch)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())


def get_logger(name: str = "iamus", settings: Optional[Settings] = None) -> logging.Logger:
    """Return a :class:`logging.Logger`, configured from ``settings`` when given.

    Parameters
    ----------
    name:
        Logger name. Configuring ``"iamus"`` covers every module logger.
    settings:
        Resolved configuration. Its ``debug`` section picks the level, the
        rotating file (``log-directory``/``log-filename``, size and count
        limits, optional gzip of rotated files) and whether to echo to the
        console. Calling again with new settings replaces the handlers.
    """
    logger = _LOGGER_CACHE.get(name)
    if logger is None:
        logger = logging.getLogger(name)
        _LOGGER_CACHE[name] = logger

    if settings is not None:
        _configure(logger, settings.section("debug"))
    return logger
