"""Logging initialization using loguru."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = "<level>{level: <8}</level> {message}"


def init_logging(debug: bool = False, sink=None) -> None:
    """Send log output to stderr (or `sink`), at DEBUG when tracing."""
    logger.remove()
    logger.add(
        sink if sink is not None else sys.stderr,
        format=LOG_FORMAT,
        level="DEBUG" if debug else "INFO",
        backtrace=False,
        diagnose=False,
    )
