"""Vote API dependencies.

Wires the vote engine from the environment:
- DATABASE_URL set: SQL vote store and VIP registry, else in-memory stubs
- REDIS_URL set: Redis cache invalidation, else none
- SEGVOTE_YOUTUBE_API_KEY set: YouTube metadata for notifications, else
  notifications are skipped

All getters return process-wide singletons; the reset functions exist
for tests.
"""

from structlog import get_logger

from segvote.application.ports.cache_invalidator import CacheInvalidatorProtocol
from segvote.application.ports.privilege_registry import PrivilegeRegistryProtocol
from segvote.application.ports.video_metadata import VideoMetadataProtocol
from segvote.application.ports.vote_store import VoteStoreProtocol
from segvote.application.services.category_consensus_service import (
    CategoryConsensusService,
)
from segvote.application.services.eligibility_gate_service import (
    EligibilityGateService,
)
from segvote.application.services.identity_service import IdentityService
from segvote.application.services.score_adjustment_service import (
    ScoreAdjustmentService,
)
from segvote.application.services.vote_ledger_service import VoteLedgerService
from segvote.application.services.vote_notification_service import (
    VoteNotificationService,
)
from segvote.application.services.vote_submission_service import (
    VoteSubmissionService,
)
from segvote.bootstrap.cache import get_redis_client, is_cache_configured
from segvote.bootstrap.database import get_session_factory, is_database_configured
from segvote.config.vote_config import VoteConfig
from segvote.infrastructure.adapters.cache.redis_cache_invalidator import (
    RedisCacheInvalidator,
)
from segvote.infrastructure.adapters.external.youtube_metadata_adapter import (
    YouTubeMetadataAdapter,
)
from segvote.infrastructure.adapters.persistence.sql_privilege_registry import (
    SqlPrivilegeRegistry,
)
from segvote.infrastructure.adapters.persistence.sql_vote_store import SqlVoteStore
from segvote.infrastructure.stubs.privilege_registry_stub import PrivilegeRegistryStub
from segvote.infrastructure.stubs.vote_store_stub import VoteStoreStub

logger = get_logger(__name__)

_vote_config: VoteConfig | None = None
_vote_store: VoteStoreProtocol | None = None
_privilege_registry: PrivilegeRegistryProtocol | None = None
_cache_invalidator: CacheInvalidatorProtocol | None = None
_cache_invalidator_resolved = False
_video_metadata: VideoMetadataProtocol | None = None
_video_metadata_resolved = False
_notification_service: VoteNotificationService | None = None
_vote_submission_service: VoteSubmissionService | None = None


def get_vote_config() -> VoteConfig:
    """Get the vote configuration, read from the environment once."""
    global _vote_config
    if _vote_config is None:
        _vote_config = VoteConfig.from_environment()
    return _vote_config


def get_vote_store() -> VoteStoreProtocol:
    """Get the vote store.

    Returns SqlVoteStore when DATABASE_URL is set, otherwise a
    VoteStoreStub for development.
    """
    global _vote_store
    if _vote_store is None:
        if is_database_configured():
            _vote_store = SqlVoteStore(get_session_factory())
        else:
            logger.warning("vote_store_using_stub")
            _vote_store = VoteStoreStub()
    return _vote_store


def get_privilege_registry() -> PrivilegeRegistryProtocol:
    global _privilege_registry
    if _privilege_registry is None:
        if is_database_configured():
            _privilege_registry = SqlPrivilegeRegistry(get_session_factory())
        else:
            _privilege_registry = PrivilegeRegistryStub()
    return _privilege_registry


def get_cache_invalidator() -> CacheInvalidatorProtocol | None:
    """Get the cache invalidator, None when REDIS_URL is not set."""
    global _cache_invalidator, _cache_invalidator_resolved
    if not _cache_invalidator_resolved:
        if is_cache_configured():
            _cache_invalidator = RedisCacheInvalidator(get_redis_client())
        _cache_invalidator_resolved = True
    return _cache_invalidator


def get_video_metadata() -> VideoMetadataProtocol | None:
    """Get the video metadata source, None without a YouTube API key."""
    global _video_metadata, _video_metadata_resolved
    if not _video_metadata_resolved:
        config = get_vote_config()
        if config.youtube_api_key:
            _video_metadata = YouTubeMetadataAdapter(
                config.youtube_api_key,
                timeout=config.webhook_timeout_seconds,
            )
        _video_metadata_resolved = True
    return _video_metadata


def get_notification_service() -> VoteNotificationService:
    global _notification_service
    if _notification_service is None:
        _notification_service = VoteNotificationService(
            store=get_vote_store(),
            config=get_vote_config(),
            video_metadata=get_video_metadata(),
        )
    return _notification_service


def get_vote_submission_service() -> VoteSubmissionService:
    """Get the vote submission service with all collaborators wired."""
    global _vote_submission_service
    if _vote_submission_service is None:
        config = get_vote_config()
        privilege_registry = get_privilege_registry()
        cache_invalidator = get_cache_invalidator()
        _vote_submission_service = VoteSubmissionService(
            store=get_vote_store(),
            identity_service=IdentityService(privilege_registry, config),
            eligibility_gate=EligibilityGateService(config),
            ledger=VoteLedgerService(),
            score_adjustment=ScoreAdjustmentService(cache_invalidator),
            category_consensus=CategoryConsensusService(
                config, privilege_registry, cache_invalidator
            ),
            dispatcher=get_notification_service(),
        )
    return _vote_submission_service


def reset_vote_dependencies() -> None:
    """Reset all vote singletons (for testing)."""
    global _vote_config, _vote_store, _privilege_registry
    global _cache_invalidator, _cache_invalidator_resolved
    global _video_metadata, _video_metadata_resolved
    global _notification_service, _vote_submission_service
    _vote_config = None
    _vote_store = None
    _privilege_registry = None
    _cache_invalidator = None
    _cache_invalidator_resolved = False
    _video_metadata = None
    _video_metadata_resolved = False
    _notification_service = None
    _vote_submission_service = None
