"""Structured logging utilities for the pattern engine.

Configures structlog with JSON output so lifecycle events (phase changes,
level creation, sweep results) can be parsed downstream.
"""
import logging
import sys

import structlog


def configure_structured_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structured logging for the engine.

    Sets up structlog with:
    - JSON rendering (or the console renderer when json_output is False)
    - ISO UTC timestamps
    - Context variables merged into every event
    - Log level filtering

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render events as JSON lines
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        BoundLogger instance for structured logging
    """
    return structlog.get_logger(name)
