"""Logging configuration for the URL shortener."""

import logging
import sys


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the root logger once for the process.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The service logger ("url_shortener")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    return logging.getLogger("url_shortener")
