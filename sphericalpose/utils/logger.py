"""Shared logger for the spherical relative pose modules.

Authors: Auto-generated for spherical SfM
"""

import logging
import sys
from logging import Logger

LOGGER_NAME = "sphericalpose"
LOG_FORMAT = "[%(asctime)s %(levelname)s %(filename)s line %(lineno)d %(process)d] %(message)s"


def get_logger() -> Logger:
    """Getter for the shared logger, which writes to stdout.

    The handler is attached only once, so repeated calls from different
    modules return the same configured instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


def set_level(level: str) -> None:
    """Set the level of the shared logger from a name such as "DEBUG" or "info"."""
    lvl = getattr(logging, level.upper(), None)
    if not isinstance(lvl, int):
        raise ValueError(f"Unknown log level: {level}")
    get_logger().setLevel(lvl)
