"""Console logging for rvtools2ibm."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

ROOT_LOGGER = "rvtools2ibm"


def get_logger(name: str) -> logging.Logger:
    """Get a logger that writes through rich.

    The handler is attached once, on the package root logger, so every
    module logger propagates to a single console sink.
    """
    root = logging.getLogger(ROOT_LOGGER)

    if not root.handlers:
        handler = RichHandler(
            show_time=True,
            show_path=False,
            markup=True,
            rich_tracebacks=True,
        )
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)

    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Set global log level (DEBUG, INFO, WARNING, ERROR)."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger(ROOT_LOGGER).setLevel(numeric)
