"""Vote submission protocol.

This is the caller-facing contract of the vote engine, independent of
transport. A vote request either raises a VoteRejectedError (malformed
input, unknown target, moderation rejection) or returns a VoteOutcome
classifying what happened.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from segvote.domain.events import SegmentVoteEvent

MODERATION_LOCKED_MESSAGE = (
    "Vote rejected: A moderator has decided that this segment is correct"
)


@dataclass(frozen=True)
class VoteRequest:
    """A raw vote request.

    Exactly one of vote_type and category is normally set; when both are
    given the score vote wins.

    Attributes:
        segment_id: Segment (submission UUID) voted on.
        raw_user_id: Private user id as sent by the client.
        client_ip: Client network address.
        vote_type: Request code (0, 1, 10, 11 or 20) for score votes.
        category: Target category for category votes.
    """

    segment_id: str | None
    raw_user_id: str | None
    client_ip: str
    vote_type: int | None = None
    category: str | None = None

    @property
    def is_category_vote(self) -> bool:
        return self.vote_type is None and self.category is not None


class VoteOutcomeStatus(Enum):
    """How the request was resolved.

    APPLIED: the vote was accepted (caller sees success). For score votes
        this includes ineligible votes, which are silently not counted.
    NO_CHANGE: a repeat of the voter's current vote.
    REDUNDANT: a downvote on an already suppressed segment.
    MODERATION_LOCKED: acknowledged but not applied, the segment is locked.
    """

    APPLIED = "applied"
    NO_CHANGE = "no_change"
    REDUNDANT = "redundant"
    MODERATION_LOCKED = "moderation_locked"


@dataclass(frozen=True)
class VoteOutcome:
    """Result of a vote request that was not rejected.

    Attributes:
        status: Resolution class.
        http_status: Status code for the caller (200 or 403).
        message: Explanation shown to the caller, if any.
        counted: Whether stored state changed.
        delta: new_weight - old_weight of a score vote.
        votes_before: Score counter before the vote.
        votes_after: Score counter the vote leads to.
        category: Category voted for, for category votes.
        category_changed: Whether the segment was recategorized.
        notification: Event for the dispatcher, None if nothing to report.
    """

    status: VoteOutcomeStatus
    http_status: int = 200
    message: str | None = None
    counted: bool = False
    delta: int = 0
    votes_before: int | None = None
    votes_after: int | None = None
    category: str | None = None
    category_changed: bool = False
    notification: SegmentVoteEvent | None = None


class VoteSubmissionProtocol(Protocol):
    """Submits votes on segments."""

    @abstractmethod
    async def submit_vote(self, request: VoteRequest) -> VoteOutcome:
        """Resolve and apply a vote.

        Args:
            request: The raw vote request.

        Returns:
            VoteOutcome describing what happened.

        Raises:
            MalformedVoteRequestError: Missing or unparseable fields.
            UnknownVoteTypeError: Unrecognised vote type code.
            SegmentNotFoundError: Segment does not exist.
            CategoryNotFoundError: Category not configured.
            CategoryNotVotableError: Category is not skippable.
            SuppressedSegmentUpvoteError: Upvote on a suppressed segment.
            WarningSuspensionError: Voter has active warnings.
        """
        ...
