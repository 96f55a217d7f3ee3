"""Common CLI helper utilities."""

from __future__ import annotations

import argparse
import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Libraries that are chatty at DEBUG/INFO and rarely useful for crawl progress
NOISY_LOGGERS = ("urllib3", "sqlalchemy.engine", "aiosqlite")


def setup_logging(level: str | None = None) -> None:
    """Configure standard logging format for CLI tools.

    The level comes from ``level`` or the LOG_LEVEL environment variable and
    defaults to INFO.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def positive_int(value: str) -> int:
    """Parse a strictly positive integer for argparse arguments.

    Raises:
        argparse.ArgumentTypeError: If the value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"{value!r} must be greater than 0")
    return parsed


def non_negative_float(value: str) -> float:
    """Parse a float >= 0 for argparse arguments (delays, intervals)."""
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"{value!r} must not be negative")
    return parsed
