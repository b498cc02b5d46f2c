"""Persistence adapters (SQLAlchemy async)."""

from segvote.infrastructure.adapters.persistence.schema import metadata
from segvote.infrastructure.adapters.persistence.sql_privilege_registry import (
    SqlPrivilegeRegistry,
)
from segvote.infrastructure.adapters.persistence.sql_vote_store import (
    SqlVoteRepository,
    SqlVoteStore,
)

__all__ = [
    "SqlPrivilegeRegistry",
    "SqlVoteRepository",
    "SqlVoteStore",
    "metadata",
]
