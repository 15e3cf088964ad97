"""Structured logging configuration.

This module initializes structlog once with a stable structured format.
Modules call get_logger(__name__) and log snake_case events with fields.
"""

from __future__ import annotations

from typing import Any

import structlog

_CONFIGURED = False


def configure_logging() -> None:
    """Configure structlog processors for JSON event output."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    configure_logging()
    return structlog.get_logger(name)
