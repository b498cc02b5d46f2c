"""Vote API request/response models."""

from pydantic import BaseModel, Field, model_validator


class SubmitVoteRequest(BaseModel):
    """Request to vote on a segment.

    Attributes:
        user_id: Private user id of the voter.
        type: Vote type code (0 down, 1 up, 10/11 incorrect votes, 20 undo).
        category: Category to vote the segment into.
    """

    user_id: str = Field(..., min_length=1, description="Private user id")
    type: int | None = Field(default=None, description="Vote type code")
    category: str | None = Field(
        default=None, max_length=64, description="Category to vote for"
    )

    @model_validator(mode="after")
    def _require_type_or_category(self) -> "SubmitVoteRequest":
        if self.type is None and self.category is None:
            raise ValueError("either type or category is required")
        return self


class VoteResponse(BaseModel):
    """Result of a vote that was not rejected.

    A 403 with status moderation_locked means the vote was acknowledged
    but not applied.
    """

    segment_id: str
    status: str = Field(..., description="applied, no_change, redundant or moderation_locked")
    counted: bool
    message: str | None = None
    delta: int = 0
    votes_before: int | None = None
    votes_after: int | None = None
    category: str | None = None
    category_changed: bool = False


class VoteErrorResponse(BaseModel):
    """RFC 7807 problem details for a rejected vote."""

    type: str = Field(..., description="Error type URN")
    title: str = Field(..., description="Human-readable error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Detailed error message")
    instance: str = Field(..., description="Request path that caused the error")
