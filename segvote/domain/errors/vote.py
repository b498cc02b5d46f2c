"""Vote rejection errors.

Every error here means the vote was refused before any state change.
Each carries the HTTP status the API answers with and can serialize
itself as RFC 7807 problem details.

Taxonomy:
- Malformed request: missing fields, unrecognised vote type (400)
- Unknown target: missing segment, unknown or non-votable category (400)
- Moderation rejection: warning suspension, upvote on a suppressed
  segment (403)

A vote on a moderator-locked segment is not an error: it is
acknowledged with a 403 status and an explanatory message but never
raised (see VoteOutcomeStatus.MODERATION_LOCKED).
"""

from __future__ import annotations

from typing import Any

from segvote.domain.exceptions import SegmentVoteError

WARNING_SUSPENSION_MESSAGE = (
    "Vote rejected due to a warning from a moderator. This means that we "
    "noticed you were making some common mistakes that are not malicious, "
    "and we just want to clarify the rules. Could you please send a message "
    "in Discord or Matrix so we can further help you?"
)


class VoteRejectedError(SegmentVoteError):
    """Base error for votes refused before any state change.

    Attributes:
        http_status: Status code the API responds with.
        problem_type: RFC 7807 problem type URN.
        title: Short RFC 7807 title.
    """

    http_status: int = 400
    problem_type: str = "urn:segvote:vote:rejected"
    title: str = "Vote Rejected"

    def to_rfc7807_dict(self) -> dict[str, Any]:
        """Serialize to RFC 7807 problem details.

        Returns:
            Dictionary with type, title, status and detail.
        """
        return {
            "type": self.problem_type,
            "title": self.title,
            "status": self.http_status,
            "detail": str(self),
        }


class MalformedVoteRequestError(VoteRejectedError):
    """Raised when required fields are missing or unparseable."""

    problem_type = "urn:segvote:vote:malformed-request"
    title = "Malformed Vote Request"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid vote request: {reason}")


class UnknownVoteTypeError(VoteRejectedError):
    """Raised when the vote type code is not one clients may send."""

    problem_type = "urn:segvote:vote:unknown-type"
    title = "Unknown Vote Type"

    def __init__(self, vote_type: int) -> None:
        self.vote_type = vote_type
        super().__init__(f"Unrecognised vote type: {vote_type}")

    def to_rfc7807_dict(self) -> dict[str, Any]:
        result = super().to_rfc7807_dict()
        result["vote_type"] = self.vote_type
        return result


class SegmentNotFoundError(VoteRejectedError):
    """Raised when the voted segment does not exist."""

    problem_type = "urn:segvote:vote:segment-not-found"
    title = "Segment Not Found"

    def __init__(self, segment_id: str) -> None:
        self.segment_id = segment_id
        super().__init__("Submission doesn't exist.")

    def to_rfc7807_dict(self) -> dict[str, Any]:
        result = super().to_rfc7807_dict()
        result["segment_id"] = self.segment_id
        return result


class CategoryNotFoundError(VoteRejectedError):
    """Raised when a category vote names a category outside the configured set."""

    problem_type = "urn:segvote:vote:category-not-found"
    title = "Category Not Found"

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__("Category doesn't exist.")

    def to_rfc7807_dict(self) -> dict[str, Any]:
        result = super().to_rfc7807_dict()
        result["category"] = self.category
        return result


class CategoryNotVotableError(VoteRejectedError):
    """Raised when a category vote targets a non-skippable category."""

    problem_type = "urn:segvote:vote:category-not-votable"
    title = "Category Not Votable"

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__("Cannot vote for this category")

    def to_rfc7807_dict(self) -> dict[str, Any]:
        result = super().to_rfc7807_dict()
        result["category"] = self.category
        return result


class SuppressedSegmentUpvoteError(VoteRejectedError):
    """Raised when a regular voter upvotes a segment hidden by downvotes."""

    http_status = 403
    problem_type = "urn:segvote:vote:suppressed-segment"
    title = "Segment Suppressed"

    def __init__(self, segment_id: str, votes: int) -> None:
        self.segment_id = segment_id
        self.votes = votes
        super().__init__(
            "Not allowed to upvote segment with too many downvotes unless you are VIP."
        )

    def to_rfc7807_dict(self) -> dict[str, Any]:
        result = super().to_rfc7807_dict()
        result["segment_id"] = self.segment_id
        result["votes"] = self.votes
        return result


class WarningSuspensionError(VoteRejectedError):
    """Raised when the voter has too many active moderator warnings."""

    http_status = 403
    problem_type = "urn:segvote:vote:warning-suspension"
    title = "Voting Suspended"

    def __init__(self, active_warnings: int, limit: int) -> None:
        self.active_warnings = active_warnings
        self.limit = limit
        super().__init__(WARNING_SUSPENSION_MESSAGE)

    def to_rfc7807_dict(self) -> dict[str, Any]:
        result = super().to_rfc7807_dict()
        result["active_warnings"] = self.active_warnings
        result["limit"] = self.limit
        return result
