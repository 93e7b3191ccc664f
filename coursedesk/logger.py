"""
Logging setup shared by all modules.

Call get_logger(__name__) instead of logging.getLogger so the basic
configuration is applied exactly once.
"""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "COURSEDESK_LOG_LEVEL"

_logger_initialized = False


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger.

    The level comes from the argument, then from COURSEDESK_LOG_LEVEL,
    then defaults to WARNING so the CLI output stays clean.
    """
    global _logger_initialized

    name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    numeric = getattr(logging, name, logging.WARNING)

    if _logger_initialized:
        logging.getLogger().setLevel(numeric)
        return

    logging.basicConfig(level=numeric, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    _logger_initialized = True


def get_logger(name: str = __name__) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
