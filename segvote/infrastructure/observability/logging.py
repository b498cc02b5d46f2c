"""Structured logging configuration with structlog.

JSON output in production, colored console output elsewhere. Every entry
carries a timestamp, level, service name and, inside a request, the
correlation ID.

Usage:
    from segvote.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")

    from structlog import get_logger
    logger = get_logger(__name__)
    logger.info("vote_submission_completed", status="applied")

Environment Variables:
- LOG_LEVEL: Minimum level (default: INFO)
- SERVICE_NAME: Value of the service field (default: segvote-api)
"""

import logging
import os
from typing import Any, cast

import structlog
from structlog.typing import Processor

from segvote.infrastructure.observability.correlation import correlation_id_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
SERVICE_NAME_ENV = "SERVICE_NAME"
DEFAULT_SERVICE_NAME = "segvote-api"


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def _service_name_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict.setdefault(
        "service", os.getenv(SERVICE_NAME_ENV, DEFAULT_SERVICE_NAME)
    )
    return event_dict


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog once at application startup.

    Args:
        environment: 'production' for JSON output, anything else for
            console output.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cast(Processor, correlation_id_processor),
        cast(Processor, _service_name_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
