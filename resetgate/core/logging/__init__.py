"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog.
It provides structured logging with JSON formatting for production and
human-readable console output for development.

The logging configuration includes:
- Timestamp formatting
- Log level inclusion and filtering
- Request context (correlation id) merged from contextvars
- JSON/Console output based on LOG_JSON
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the application's logging system.

    This function sets up structlog with:
    1. Context variables bound by the request middleware
    2. ISO format timestamps
    3. Log level inclusion
    4. JSON formatting for production (when json_logs is True)
    5. Console formatting for development
    6. Standard library logger factory

    Args:
        log_level: Minimum level emitted, e.g. ``"INFO"``.
        json_logs: Render events as JSON lines instead of console output.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()
