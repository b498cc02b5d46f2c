"""Cache adapters."""

from segvote.infrastructure.adapters.cache.redis_cache_invalidator import (
    RedisCacheInvalidator,
    video_cache_keys,
)

__all__ = ["RedisCacheInvalidator", "video_cache_keys"]
