"""Application ports - Abstract interfaces for infrastructure adapters.

This module defines the contracts that infrastructure adapters must implement.
Ports enable dependency inversion and make the application layer testable.

Available ports:
- VoteStoreProtocol / VoteRepositoryProtocol: Transactional vote storage
- PrivilegeRegistryProtocol: VIP lookup
- CacheInvalidatorProtocol: Side cache invalidation
- VideoMetadataProtocol: Video display metadata
- NotificationDispatcherProtocol: Fire-and-forget vote notifications
- VoteSubmissionProtocol: Caller-facing vote contract
"""

from segvote.application.ports.cache_invalidator import CacheInvalidatorProtocol
from segvote.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from segvote.application.ports.privilege_registry import PrivilegeRegistryProtocol
from segvote.application.ports.video_metadata import (
    VideoMetadata,
    VideoMetadataProtocol,
)
from segvote.application.ports.vote_store import (
    SubmissionStats,
    VoteRepositoryProtocol,
    VoteStoreProtocol,
)
from segvote.application.ports.vote_submission import (
    MODERATION_LOCKED_MESSAGE,
    VoteOutcome,
    VoteOutcomeStatus,
    VoteRequest,
    VoteSubmissionProtocol,
)

__all__: list[str] = [
    "MODERATION_LOCKED_MESSAGE",
    "CacheInvalidatorProtocol",
    "NotificationDispatcherProtocol",
    "PrivilegeRegistryProtocol",
    "SubmissionStats",
    "VideoMetadata",
    "VideoMetadataProtocol",
    "VoteOutcome",
    "VoteOutcomeStatus",
    "VoteRepositoryProtocol",
    "VoteRequest",
    "VoteStoreProtocol",
    "VoteSubmissionProtocol",
]
