"""API dependency providers."""

from segvote.api.dependencies.vote import (
    get_notification_service,
    get_vote_config,
    get_vote_store,
    get_vote_submission_service,
    reset_vote_dependencies,
)

__all__: list[str] = [
    "get_notification_service",
    "get_vote_config",
    "get_vote_store",
    "get_vote_submission_service",
    "reset_vote_dependencies",
]
