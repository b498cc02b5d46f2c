"""Segment vote event payload.

A SegmentVoteEvent is produced whenever a score vote changes (or would
have changed) a segment's counter, and is handed to the notification
dispatcher after the response. It carries everything the dispatcher
needs that only the request knows; submission details are looked up by
the dispatcher itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from segvote.domain.models.vote import VoteFamily, VoteKind

# Event type constants for custom webhooks
VOTE_UP_EVENT_TYPE: str = "vote.up"
VOTE_DOWN_EVENT_TYPE: str = "vote.down"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class SegmentVoteEvent:
    """Outcome of a score vote, as seen by notification consumers.

    Attributes:
        segment_id: Segment voted on.
        video_id: Video the segment belongs to.
        category: Segment category at vote time.
        voter_user_id: Pseudonymous user id of the voter.
        kind: What the voter asked for.
        family: Counter family the vote adjusted.
        new_weight: Weight of the vote just cast.
        votes_before: Score counter before the vote.
        votes_after: Score counter the vote leads to.
        views: Segment view counter.
        is_vip: Whether the voter is a VIP.
        is_own_submission: Whether the voter submitted the segment.
        applied: Whether the vote actually changed stored state.
        message: Moderation message returned to the voter, if any.
        occurred_at: When the vote was processed (UTC).
    """

    segment_id: str
    video_id: str
    category: str
    voter_user_id: str
    kind: VoteKind
    family: VoteFamily
    new_weight: int
    votes_before: int
    votes_after: int
    views: int = 0
    is_vip: bool = False
    is_own_submission: bool = False
    applied: bool = True
    message: str | None = None
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def is_upvote(self) -> bool:
        return self.new_weight > 0

    @property
    def event_type(self) -> str:
        """Custom webhook event name."""
        return VOTE_UP_EVENT_TYPE if self.is_upvote else VOTE_DOWN_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        return {
            "event_type": self.event_type,
            "segment_id": self.segment_id,
            "video_id": self.video_id,
            "category": self.category,
            "kind": self.kind.value,
            "family": self.family.value,
            "new_weight": self.new_weight,
            "votes_before": self.votes_before,
            "votes_after": self.votes_after,
            "applied": self.applied,
            "occurred_at": self.occurred_at.isoformat(),
        }
