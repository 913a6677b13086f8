"""Logging setup for the ``ops_reporting`` package."""

import logging
import os

_LOGGER_PREFIX = "ops_reporting"
_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach one stream handler to the package logger.

    Calling this more than once only updates the level.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not any(getattr(h, "_ops_reporting", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._ops_reporting = True
        logger.addHandler(handler)
    return logger
