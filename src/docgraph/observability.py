"""Structured logging helpers for docgraph."""

from __future__ import annotations

import logging
import sys

import structlog

_logger_configured = False


def configure_logging(level: int = logging.INFO, *, json: bool = False) -> None:
    """Configure stdlib logging + structlog once per process.

    Console rendering is the default; ``json=True`` switches to one JSON
    object per line for log shipping.
    """
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def get_logger(name: str = "docgraph") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)
