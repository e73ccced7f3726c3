"""
utils/logging.py — structlog setup for pipeline workers.

The CLI calls configure_logging() before running any command. Output is
JSON in deployed workers and a coloured console rendering locally, picked
by settings.log_format.

Usage:
    from crewdesk_pipeline.utils.logging import configure_logging, get_logger

    configure_logging(log_level="DEBUG")
    log = get_logger(__name__, pipeline="geocode_vendors")
    log.info("profile_geocoded", profile_id=profile_id)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from crewdesk_shared.config import settings


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
) -> None:
    """
    Configure stdlib logging and structlog for the worker process.

    Safe to call more than once; the last call wins.

    Args:
        log_level:  Overrides settings.log_level.
        log_format: Overrides settings.log_format ("json" or "console").
    """
    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    # httpx and supabase log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(log_format or settings.log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """Return a structlog logger, pre-bound with any initial context."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger  # type: ignore[return-value]
