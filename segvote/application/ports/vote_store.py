"""Vote store protocol.

The vote engine treats durable storage as a transactional relational
store. Every vote runs inside one unit of work: a repository that reads
and writes segments, the vote ledger, category tallies, warnings and
registries, and that commits or rolls back as a whole.

Concurrency contract:
- unit_of_work(lock_key) serializes all units of work sharing lock_key,
  so the read-modify-write on a (segment, voter) ledger row is atomic.
- Counter changes are relative increments (col = col + delta), safe
  against concurrent votes from different voters on the same segment.
- Seeding a tally row (seed_category_tally) is insert-if-absent, so it
  happens once even when different voters race on a segment.
- Ledger and counter writes commit together or not at all.
"""

from __future__ import annotations

from abc import abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol

from segvote.domain.models import CategoryBallot, Segment, VoteFamily, VoteRecord


@dataclass(frozen=True)
class SubmissionStats:
    """Submission totals of a user, for notification display.

    Attributes:
        total: Number of segments the user submitted.
        ignored: Number of those at or below the suppressed threshold.
    """

    total: int
    ignored: int


class VoteRepositoryProtocol(Protocol):
    """Reads and writes available inside one unit of work."""

    @abstractmethod
    async def get_segment(self, segment_id: str) -> Segment | None:
        """Get a segment by id, None if it does not exist."""
        ...

    @abstractmethod
    async def is_video_category_locked(
        self,
        video_id: str,
        category: str,
        service: str,
    ) -> bool:
        """Check for a category-wide lock on (video, category, service)."""
        ...

    @abstractmethod
    async def count_active_warnings(self, user_id: str, issued_after_ms: int) -> int:
        """Count enabled warnings for user_id issued after issued_after_ms."""
        ...

    @abstractmethod
    async def has_submissions(self, user_id: str) -> bool:
        """Check whether the user submitted at least one segment."""
        ...

    @abstractmethod
    async def is_shadow_banned(self, user_id: str) -> bool:
        """Check the shadow-ban registry."""
        ...

    @abstractmethod
    async def has_other_vote_from_ip(
        self,
        segment_id: str,
        hashed_ip: str,
        voter_id: str,
    ) -> bool:
        """Check whether another voter id voted on the segment from hashed_ip."""
        ...

    @abstractmethod
    async def get_vote_record(
        self,
        segment_id: str,
        voter_id: str,
    ) -> VoteRecord | None:
        """Get the ledger row of (segment, voter), None if never voted."""
        ...

    @abstractmethod
    async def upsert_vote_record(self, record: VoteRecord) -> None:
        """Insert the ledger row or replace the stored vote type.

        The hashed address of an existing row is kept.
        """
        ...

    @abstractmethod
    async def increment_segment_counter(
        self,
        segment_id: str,
        family: VoteFamily,
        delta: int,
    ) -> None:
        """Atomically add delta to the family's counter."""
        ...

    @abstractmethod
    async def set_segment_locked(self, segment_id: str, locked: bool) -> None:
        """Set or clear the segment's lock flag."""
        ...

    @abstractmethod
    async def set_segment_category(self, segment_id: str, category: str) -> None:
        """Reassign the segment's category."""
        ...

    @abstractmethod
    async def get_category_ballot(
        self,
        segment_id: str,
        user_id: str,
    ) -> CategoryBallot | None:
        """Get the user's active category vote on the segment."""
        ...

    @abstractmethod
    async def upsert_category_ballot(self, ballot: CategoryBallot) -> None:
        """Insert the ballot or move it to a new category."""
        ...

    @abstractmethod
    async def get_category_tally(self, segment_id: str, category: str) -> int | None:
        """Get the aggregate tally of a category, None if no row exists."""
        ...

    @abstractmethod
    async def add_category_votes(
        self,
        segment_id: str,
        category: str,
        amount: int,
    ) -> None:
        """Add amount to a category's tally, creating the row if missing."""
        ...

    @abstractmethod
    async def seed_category_tally(
        self,
        segment_id: str,
        category: str,
        votes: int,
    ) -> bool:
        """Create a category's tally row unless one already exists.

        Returns:
            True if this call created the row.
        """
        ...

    @abstractmethod
    async def count_submissions(self, user_id: str) -> int:
        """Count the segments a user submitted."""
        ...

    @abstractmethod
    async def get_submission_stats(
        self,
        user_id: str,
        suppressed_threshold: int,
    ) -> SubmissionStats:
        """Get submission totals for a user."""
        ...

    @abstractmethod
    async def get_user_name(self, user_id: str) -> str | None:
        """Get the display name of a user, if one was set."""
        ...


class VoteStoreProtocol(Protocol):
    """Transactional store opening units of work."""

    @abstractmethod
    def unit_of_work(
        self,
        lock_key: str | None = None,
    ) -> AbstractAsyncContextManager[VoteRepositoryProtocol]:
        """Open a unit of work.

        Commits when the block exits cleanly and rolls back when it raises.

        Args:
            lock_key: Units of work with the same key run one at a time.
                None takes no lock (read-only use).

        Example:
            async with store.unit_of_work(lock_key) as repo:
                record = await repo.get_vote_record(segment_id, voter_id)
        """
        ...
