"""API request/response models."""

from segvote.api.models.health import HealthResponse
from segvote.api.models.vote import SubmitVoteRequest, VoteErrorResponse, VoteResponse

__all__: list[str] = [
    "HealthResponse",
    "SubmitVoteRequest",
    "VoteErrorResponse",
    "VoteResponse",
]
