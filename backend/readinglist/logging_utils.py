"""Console logging setup for the service."""

import logging

from rich.logging import RichHandler

LOGGER_NAME = "readinglist"


def _level_from_string(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a rich console handler to the package logger.

    Safe to call more than once; existing handlers are replaced so reloads
    don't duplicate output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level_from_string(level))
    logger.handlers = []
    logger.propagate = False

    handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
    handler.setLevel(_level_from_string(level))
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    return logger
