"""Domain errors for segment voting.

All exceptions inherit from SegmentVoteError.
"""

from segvote.domain.errors.vote import (
    WARNING_SUSPENSION_MESSAGE,
    CategoryNotFoundError,
    CategoryNotVotableError,
    MalformedVoteRequestError,
    SegmentNotFoundError,
    SuppressedSegmentUpvoteError,
    UnknownVoteTypeError,
    VoteRejectedError,
    WarningSuspensionError,
)
from segvote.domain.exceptions import SegmentVoteError

__all__: list[str] = [
    "WARNING_SUSPENSION_MESSAGE",
    "CategoryNotFoundError",
    "CategoryNotVotableError",
    "MalformedVoteRequestError",
    "SegmentNotFoundError",
    "SegmentVoteError",
    "SuppressedSegmentUpvoteError",
    "UnknownVoteTypeError",
    "VoteRejectedError",
    "WarningSuspensionError",
]
