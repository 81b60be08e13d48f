"""
Logging for the ``objmap`` package.

Every module logs through a child of the ``objmap`` logger. Importing the
library attaches nothing; an application that wants objmap's registry and
validator output on stdout calls ``setup_logging`` once:

    from objmap import setup_logging

    setup_logging()                   # level and format from OBJMAP_LOG_*
    setup_logging("DEBUG", "json")    # explicit values win over settings

Console lines look like ``2024-05-01 12:00:00 | WARNING | objmap.mappers.registry |
Mapping overwritten``; JSON lines carry the same fields plus any ``extra``.
"""

import logging
import sys
from typing import Literal

from pythonjsonlogger import json as json_logger

from objmap.config import Settings, get_settings

LIBRARY_LOGGER = "objmap"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str | None = None,
    log_format: Literal["json", "console"] | None = None,
    settings: Settings | None = None,
) -> logging.Logger:
    """
    Attach a stdout handler to the ``objmap`` logger.

    Arguments left as ``None`` are taken from ``settings`` (the cached
    ``get_settings()`` when omitted). Calling it again replaces the
    handler instead of adding a second one. The host application's root
    logger is left alone; records stop propagating to it once objmap has
    its own handler.

    Returns:
        The configured ``objmap`` logger.
    """
    settings = settings or get_settings()
    level = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_json_formatter() if log_format == "json" else _console_formatter())

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    library_logger.handlers.clear()
    library_logger.addHandler(handler)
    library_logger.setLevel(level)
    library_logger.propagate = False

    library_logger.debug(
        "Logging configured",
        extra={"log_level": level, "log_format": log_format},
    )
    return library_logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for an objmap module, called as ``get_logger(__name__)``."""
    return logging.getLogger(name)


# ─── Internal ─────────────────────────────────────────────────────────


def _console_formatter() -> logging.Formatter:
    return logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT)


def _json_formatter() -> json_logger.JsonFormatter:
    return json_logger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt=DATE_FORMAT,
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger",
        },
    )
