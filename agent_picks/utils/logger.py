"""Logging setup shared by every module."""

import logging
import os
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """Create (or fetch) a module logger with a single stream handler.

    Args:
        name: Logger name, normally ``__name__``
        level: Log level name; falls back to the LOG_LEVEL environment variable

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
