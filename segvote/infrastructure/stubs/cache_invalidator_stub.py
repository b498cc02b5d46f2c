"""In-memory stub for CacheInvalidatorProtocol.

Records invalidated segments so tests can assert on them.
"""

from __future__ import annotations

from segvote.domain.models import Segment


class CacheInvalidatorStub:
    """Cache invalidator that remembers what it was asked to drop."""

    def __init__(self, fail: bool = False) -> None:
        """Initialize stub.

        Args:
            fail: Raise on every call, to exercise failure handling.
        """
        self._fail = fail
        self.invalidated: list[Segment] = []

    async def invalidate_video(self, segment: Segment) -> None:
        if self._fail:
            raise ConnectionError("cache unavailable")
        self.invalidated.append(segment)

    @property
    def invalidated_video_ids(self) -> list[str]:
        return [segment.video_id for segment in self.invalidated]

    def clear(self) -> None:
        self.invalidated.clear()
