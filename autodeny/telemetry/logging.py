"""Structured logging setup.

All components log through structlog; records are rendered by stdlib logging
handlers so third-party loggers share the same output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def telemetry_setup_logging(level: str = "INFO", log_format: str = "console", verbose: bool = False) -> None:
    """Configure structlog and the root logger for the whole process.

    Args:
        level: Root log level name.
        log_format: `console` for human-readable output, `json` for one JSON object per line.
        verbose: Force DEBUG so request payloads and raw responses are logged.
    """

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    effective_level = "DEBUG" if verbose else level.upper()
    root_logger.setLevel(getattr(logging, effective_level, logging.INFO))

    # Quiet httpx and httpcore request logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
