"""Logging configuration for the gateway."""

import logging
import os
import sys

LOGGER_NAME = "chatbridge"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Set up the gateway logger with a stdout handler.

    Args:
        level: Level name; defaults to CHATBRIDGE_LOG_LEVEL or INFO.
    """
    level_name = (level or os.getenv("CHATBRIDGE_LOG_LEVEL") or "INFO").upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

    # Propagate so test log capture and host frameworks still see records
    logger.propagate = True

    return logger
