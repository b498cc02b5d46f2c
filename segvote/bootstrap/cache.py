"""Redis client bootstrap for segment cache invalidation.

Environment Variables:
- REDIS_URL: Redis connection string (e.g. redis://localhost:6379/0).
  When unset no cache invalidator is wired.
"""

from __future__ import annotations

import os

import redis.asyncio as redis
from structlog import get_logger

logger = get_logger()

_client: redis.Redis | None = None


def is_cache_configured() -> bool:
    return bool(os.environ.get("REDIS_URL"))


def get_redis_client() -> redis.Redis:
    """Get the singleton Redis client.

    Raises:
        ValueError: If REDIS_URL is not set.
    """
    global _client

    if _client is None:
        url = os.environ.get("REDIS_URL")
        if not url:
            raise ValueError("REDIS_URL environment variable not set.")
        _client = redis.from_url(url, decode_responses=True)
        logger.info("redis_client_created", component="cache_bootstrap")

    return _client


def reset_cache_bootstrap() -> None:
    """Reset Redis singleton for testing."""
    global _client
    _client = None


async def close_redis_client() -> None:
    """Close the Redis client (for graceful shutdown)."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
