"""In-memory stub for NotificationDispatcherProtocol.

Collects dispatched events instead of delivering them.
"""

from __future__ import annotations

from segvote.domain.events import SegmentVoteEvent


class NotificationDispatcherStub:
    """Dispatcher that records events."""

    def __init__(self) -> None:
        self.events: list[SegmentVoteEvent] = []
        self.drained = False

    def dispatch(self, event: SegmentVoteEvent) -> None:
        self.events.append(event)

    async def drain(self) -> None:
        self.drained = True

    def clear(self) -> None:
        self.events.clear()
        self.drained = False
