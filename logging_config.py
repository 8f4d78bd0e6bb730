"""
Logging setup shared by the app and the database layer.
"""

import logging
import os
import sys


def setup_logging(level: str = None) -> logging.Logger:
    """Configure the "backend" logger once and return it.

    Args:
        level: level name; defaults to LOG_LEVEL or INFO

    Returns:
        the configured logger
    """
    logger = logging.getLogger("backend")

    if logger.handlers:
        return logger

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)

    return logger
