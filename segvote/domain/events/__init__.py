"""Domain events for segment voting."""

from segvote.domain.events.vote import (
    VOTE_DOWN_EVENT_TYPE,
    VOTE_UP_EVENT_TYPE,
    SegmentVoteEvent,
)

__all__: list[str] = [
    "VOTE_DOWN_EVENT_TYPE",
    "VOTE_UP_EVENT_TYPE",
    "SegmentVoteEvent",
]
