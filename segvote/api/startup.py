"""Startup and shutdown hooks for the segvote API.

Startup:
1. Configure structured logging
2. Create missing tables when SEGVOTE_CREATE_SCHEMA is set (development)
3. Record service startup for uptime tracking

Shutdown:
1. Wait for in-flight vote notifications
2. Close the Redis client and the database engine
"""

import os

from structlog import get_logger

from segvote.api.dependencies.vote import get_notification_service
from segvote.bootstrap.cache import close_redis_client
from segvote.bootstrap.database import (
    close_database_engine,
    create_schema,
    is_database_configured,
)
from segvote.infrastructure.monitoring.metrics import get_metrics_collector
from segvote.infrastructure.observability import configure_structlog

ENVIRONMENT_VAR = "ENVIRONMENT"
DEFAULT_ENVIRONMENT = "development"
CREATE_SCHEMA_VAR = "SEGVOTE_CREATE_SCHEMA"

logger = get_logger()


def configure_logging() -> None:
    """Configure structlog from ENVIRONMENT (JSON in production)."""
    environment = os.getenv(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)
    configure_structlog(environment=environment)

    log = get_logger().bind(component="startup_logging")
    log.info("structured_logging_configured", environment=environment)


async def ensure_schema() -> None:
    if not is_database_configured():
        return
    if os.getenv(CREATE_SCHEMA_VAR, "").lower() not in ("1", "true", "yes"):
        return
    await create_schema()


def record_service_startup(service_name: str = "api") -> None:
    """Record service startup for metrics tracking.

    Args:
        service_name: Name of the service (default: "api").
    """
    log = logger.bind(component="startup_metrics", service=service_name)
    get_metrics_collector().record_startup(service_name)
    log.info("service_startup_recorded")


async def shutdown() -> None:
    log = logger.bind(component="shutdown")
    notifications = get_notification_service()
    if notifications.pending_count:
        log.info("draining_vote_notifications", pending=notifications.pending_count)
    await notifications.drain()
    await close_redis_client()
    await close_database_engine()
    log.info("shutdown_completed")
