"""
Logging setup for processes embedding the read model.

The library itself only logs through module loggers (or the logger handed to
ReadModel). Applications call setup_logging() once at startup to route those
records to stderr in JSON or plain text.
"""

from __future__ import annotations

import logging

import json_log_formatter

from .config import ReadModelSettings


def setup_logging(settings: ReadModelSettings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Read model settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("redis").setLevel(logging.WARNING)
