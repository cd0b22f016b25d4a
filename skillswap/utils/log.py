"""Logging setup for the CLI and embedding applications."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the ``skillswap`` logger hierarchy.

    Only the package logger is touched so host applications keep control
    of the root logger.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    pkg_logger = logging.getLogger("skillswap")
    pkg_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplication on repeated calls
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False
