"""Redis implementation of CacheInvalidatorProtocol.

Segment reads are cached under per-video keys. A vote drops the keys of
the segment's video:

- segments.v2.{service}.videoID.{video_id}
- segments.v2.{service}.{hashed_video_id[:4]} (hash-prefix lookups)
"""

from __future__ import annotations

from typing import Any

from redis.asyncio import Redis
from structlog import get_logger

from segvote.domain.models import Segment

logger = get_logger(__name__)

HASH_PREFIX_LENGTH = 4


def video_cache_keys(segment: Segment) -> list[str]:
    """Cache keys holding reads of the segment's video."""
    keys = [f"segments.v2.{segment.service}.videoID.{segment.video_id}"]
    if segment.hashed_video_id:
        prefix = segment.hashed_video_id[:HASH_PREFIX_LENGTH]
        keys.append(f"segments.v2.{segment.service}.{prefix}")
    return keys


class RedisCacheInvalidator:
    """Deletes a video's cached segment reads from Redis."""

    def __init__(self, client: "Redis[Any]") -> None:
        self._client = client

    async def invalidate_video(self, segment: Segment) -> None:
        keys = video_cache_keys(segment)
        deleted = await self._client.delete(*keys)
        logger.debug(
            "video_cache_invalidated",
            video_id=segment.video_id,
            keys=keys,
            deleted=deleted,
        )
