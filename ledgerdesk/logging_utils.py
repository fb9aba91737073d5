"""Mini README: Application-wide logging helpers for Ledgerdesk.

Structure:
    * configure_root_logger - installs a single stream handler on the root logger.
    * get_logger - factory returning module loggers with baseline configuration.

Usage:
    Modules call ``get_logger(__name__)`` at import time. The first call wires
    the root handler; later calls (including reloads under uvicorn's reloader)
    reuse it so log lines are never duplicated. The CLI may call
    ``configure_root_logger`` earlier with the level taken from settings.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_INITIALISED = False


def configure_root_logger(level: Union[int, str] = logging.INFO) -> None:
    """Configure the root logger once with the ledger's line format."""

    global _LOGGER_INITIALISED
    if _LOGGER_INITIALISED:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    configure_root_logger()
    return logging.getLogger(name)
