"""Notification dispatcher protocol.

Dispatch is fire-and-forget: it must return immediately, must never
raise into the caller, and gives no ordering guarantee relative to
later votes.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from segvote.domain.events import SegmentVoteEvent


class NotificationDispatcherProtocol(Protocol):
    """Outbound, best-effort vote notifications."""

    @abstractmethod
    def dispatch(self, event: SegmentVoteEvent) -> None:
        """Schedule delivery of a vote event without waiting for it."""
        ...

    @abstractmethod
    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish (shutdown, tests)."""
        ...
