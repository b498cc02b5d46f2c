"""Cache invalidation protocol.

Segment reads may be served from a side cache. After a vote mutates a
segment the cached entries of its video must be dropped; the cache is
never read for correctness.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from segvote.domain.models import Segment


class CacheInvalidatorProtocol(Protocol):
    """Drops cached reads derived from a segment."""

    @abstractmethod
    async def invalidate_video(self, segment: Segment) -> None:
        """Invalidate every cached entry for the segment's video.

        Args:
            segment: Segment whose video (id, hashed id, service) keys
                the cache entries.
        """
        ...
