"""Logging setup shared by the web app and the worker scripts."""
from __future__ import annotations

import logging

# Root of this package; every module logs through a child of it via getLogger(__name__).
LOGGER_NAME = __package__.rsplit(".", 1)[0]


def configure_logging(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Add handler if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)
    return logger
