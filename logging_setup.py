#!/usr/bin/env python3
"""
logging_setup.py
================
Configures the root logger with a console handler and a rotating file
handler (``intersection.log``, 1 MB, 2 backups), plus a DEBUG file for
the vehicle manager.

Call :func:`setup_logging` once at startup before the simulation starts
emitting records.
"""

import logging
from logging.handlers import RotatingFileHandler

from config import LOG_FILE, WORLD_DEBUG_LOG_FILE


def setup_logging(level: int = logging.INFO, world_debug: bool = True) -> None:
    """Apply a unified log format to both console and file output.

    Parameters
    ----------
    level : int
        Minimum severity level (e.g. ``logging.DEBUG``, ``logging.INFO``).
    world_debug : bool
        Also write every ``"world"`` record to ``world_debug.log``.
    """
    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(level)

    fh = RotatingFileHandler(LOG_FILE, maxBytes=1_000_000, backupCount=2)
    fh.setFormatter(fmt)
    fh.setLevel(level)

    root.handlers.clear()
    root.addHandler(ch)
    root.addHandler(fh)

    if not world_debug:
        return

    # ── Dedicated debug file for spawn / completion traces ────────────
    world_logger = logging.getLogger("world")
    world_logger.setLevel(logging.DEBUG)
    for handler in list(world_logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            world_logger.removeHandler(handler)
            handler.close()
    dfh = RotatingFileHandler(
        WORLD_DEBUG_LOG_FILE, maxBytes=5_000_000, backupCount=2
    )
    dfh.setLevel(logging.DEBUG)
    dfh.setFormatter(fmt)
    world_logger.addHandler(dfh)
