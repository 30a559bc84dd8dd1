import logging
import os
import sys
from typing import Any

import structlog


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structured logging for the application."""

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = log_format or os.getenv("LOG_FORMAT", "console")

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json" or os.getenv("JSON_LOGS", "false").lower() == "true":
        # Production: JSON logs
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        # Development: Pretty console logs
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Library modules log through the standard library; stderr keeps
    # CLI output on stdout clean
    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        level=level,
    )
