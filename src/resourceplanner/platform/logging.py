"""
ResourcePlanner Structured Logging

Engine events (evaluations, applied/rejected mutations, cascades) are emitted
as structlog key/value events; everything else goes through stdlib logging,
which is routed to the same stream.
"""

import logging
import sys
from typing import Any, Optional

import structlog

from resourceplanner.platform.config import Settings, get_settings


def configure_logging(config: Optional[Settings] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structured logging for an embedding application.

    Args:
        config: Application settings (defaults to the cached settings)
        json_logs: Force JSON output; by default JSON only in production
    """
    config = config or get_settings()
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    if json_logs is None:
        json_logs = config.APP_ENV == "production"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
            if json_logs
            else structlog.dev.ConsoleRenderer(colors=config.DEBUG),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    logging.getLogger("resourceplanner").setLevel(log_level)


def bind_planning_context(**context: Any) -> None:
    """Attach planning-cycle context (e.g. ``cycle_id``, ``user``) to later events."""
    structlog.contextvars.bind_contextvars(**context)


def clear_planning_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
