"""Infrastructure stubs for development and testing.

This module provides in-memory implementations of the application
ports for use in development and testing environments.
"""

from segvote.infrastructure.stubs.cache_invalidator_stub import CacheInvalidatorStub
from segvote.infrastructure.stubs.notification_dispatcher_stub import (
    NotificationDispatcherStub,
)
from segvote.infrastructure.stubs.privilege_registry_stub import PrivilegeRegistryStub
from segvote.infrastructure.stubs.video_metadata_stub import VideoMetadataStub
from segvote.infrastructure.stubs.vote_store_stub import (
    VoteRepositoryStub,
    VoteStoreStub,
)

__all__: list[str] = [
    "CacheInvalidatorStub",
    "NotificationDispatcherStub",
    "PrivilegeRegistryStub",
    "VideoMetadataStub",
    "VoteRepositoryStub",
    "VoteStoreStub",
]
