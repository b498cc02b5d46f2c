"""In-memory stub for VoteStoreProtocol.

Simulates the transactional store for development and tests:
- One unit of work at a time for any lock key (a single asyncio.Lock)
- Rollback by restoring a snapshot when the block raises
- A write counter so tests can assert zero-write paths
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace

from segvote.application.ports.vote_store import SubmissionStats
from segvote.domain.models import (
    CategoryBallot,
    ModeratorWarning,
    Segment,
    VoteFamily,
    VoteRecord,
)


@dataclass
class _StoreState:
    segments: dict[str, Segment] = field(default_factory=dict)
    votes: dict[tuple[str, str], VoteRecord] = field(default_factory=dict)
    category_tallies: dict[tuple[str, str], int] = field(default_factory=dict)
    ballots: dict[tuple[str, str], CategoryBallot] = field(default_factory=dict)
    warnings: list[ModeratorWarning] = field(default_factory=list)
    shadow_banned: set[str] = field(default_factory=set)
    category_locks: set[tuple[str, str, str]] = field(default_factory=set)
    user_names: dict[str, str] = field(default_factory=dict)
    write_count: int = 0


class VoteRepositoryStub:
    """In-memory implementation of VoteRepositoryProtocol over a shared state."""

    def __init__(self, state: _StoreState) -> None:
        self._state = state

    def _write(self) -> None:
        self._state.write_count += 1

    async def get_segment(self, segment_id: str) -> Segment | None:
        return self._state.segments.get(segment_id)

    async def is_video_category_locked(
        self,
        video_id: str,
        category: str,
        service: str,
    ) -> bool:
        return (video_id, category, service) in self._state.category_locks

    async def count_active_warnings(self, user_id: str, issued_after_ms: int) -> int:
        return sum(
            1
            for warning in self._state.warnings
            if warning.user_id == user_id
            and warning.enabled
            and warning.issue_time > issued_after_ms
        )

    async def has_submissions(self, user_id: str) -> bool:
        return any(s.user_id == user_id for s in self._state.segments.values())

    async def is_shadow_banned(self, user_id: str) -> bool:
        return user_id in self._state.shadow_banned

    async def has_other_vote_from_ip(
        self,
        segment_id: str,
        hashed_ip: str,
        voter_id: str,
    ) -> bool:
        return any(
            record.segment_id == segment_id
            and record.hashed_ip == hashed_ip
            and record.voter_id != voter_id
            for record in self._state.votes.values()
        )

    async def get_vote_record(
        self,
        segment_id: str,
        voter_id: str,
    ) -> VoteRecord | None:
        return self._state.votes.get((segment_id, voter_id))

    async def upsert_vote_record(self, record: VoteRecord) -> None:
        key = (record.segment_id, record.voter_id)
        existing = self._state.votes.get(key)
        if existing is not None:
            record = replace(existing, vote_type=record.vote_type)
        self._state.votes[key] = record
        self._write()

    async def increment_segment_counter(
        self,
        segment_id: str,
        family: VoteFamily,
        delta: int,
    ) -> None:
        segment = self._state.segments.get(segment_id)
        if segment is None:
            return
        current = getattr(segment, family.value)
        self._state.segments[segment_id] = replace(
            segment, **{family.value: current + delta}
        )
        self._write()

    async def set_segment_locked(self, segment_id: str, locked: bool) -> None:
        segment = self._state.segments.get(segment_id)
        if segment is None:
            return
        self._state.segments[segment_id] = replace(segment, locked=locked)
        self._write()

    async def set_segment_category(self, segment_id: str, category: str) -> None:
        segment = self._state.segments.get(segment_id)
        if segment is None:
            return
        self._state.segments[segment_id] = replace(segment, category=category)
        self._write()

    async def get_category_ballot(
        self,
        segment_id: str,
        user_id: str,
    ) -> CategoryBallot | None:
        return self._state.ballots.get((segment_id, user_id))

    async def upsert_category_ballot(self, ballot: CategoryBallot) -> None:
        self._state.ballots[(ballot.segment_id, ballot.user_id)] = ballot
        self._write()

    async def get_category_tally(self, segment_id: str, category: str) -> int | None:
        return self._state.category_tallies.get((segment_id, category))

    async def add_category_votes(
        self,
        segment_id: str,
        category: str,
        amount: int,
    ) -> None:
        key = (segment_id, category)
        self._state.category_tallies[key] = (
            self._state.category_tallies.get(key, 0) + amount
        )
        self._write()

    async def seed_category_tally(
        self,
        segment_id: str,
        category: str,
        votes: int,
    ) -> bool:
        key = (segment_id, category)
        if key in self._state.category_tallies:
            return False
        self._state.category_tallies[key] = votes
        self._write()
        return True

    async def count_submissions(self, user_id: str) -> int:
        return sum(1 for s in self._state.segments.values() if s.user_id == user_id)

    async def get_submission_stats(
        self,
        user_id: str,
        suppressed_threshold: int,
    ) -> SubmissionStats:
        owned = [s for s in self._state.segments.values() if s.user_id == user_id]
        return SubmissionStats(
            total=len(owned),
            ignored=sum(1 for s in owned if s.votes <= suppressed_threshold),
        )

    async def get_user_name(self, user_id: str) -> str | None:
        return self._state.user_names.get(user_id)


class VoteStoreStub:
    """In-memory stub implementation of VoteStoreProtocol.

    Units of work that take a lock key run one at a time. Read-only
    units of work (lock_key None) run without the lock and without
    a snapshot.
    """

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._state = _StoreState()
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def unit_of_work(
        self,
        lock_key: str | None = None,
    ) -> AsyncIterator[VoteRepositoryStub]:
        if lock_key is None:
            yield VoteRepositoryStub(self._state)
            return

        async with self._lock:
            snapshot = copy.deepcopy(self._state)
            try:
                yield VoteRepositoryStub(self._state)
            except BaseException:
                self._restore(snapshot)
                raise

    def _restore(self, snapshot: _StoreState) -> None:
        self._state.__dict__.update(snapshot.__dict__)

    # Test helpers

    def add_segment(self, segment: Segment) -> None:
        self._state.segments[segment.segment_id] = segment

    def add_warning(self, warning: ModeratorWarning) -> None:
        self._state.warnings.append(warning)

    def add_shadow_ban(self, user_id: str) -> None:
        self._state.shadow_banned.add(user_id)

    def add_category_lock(self, video_id: str, category: str, service: str) -> None:
        self._state.category_locks.add((video_id, category, service))

    def set_user_name(self, user_id: str, user_name: str) -> None:
        self._state.user_names[user_id] = user_name

    def add_vote_record(self, record: VoteRecord) -> None:
        self._state.votes[(record.segment_id, record.voter_id)] = record

    def add_category_tally(self, segment_id: str, category: str, votes: int) -> None:
        self._state.category_tallies[(segment_id, category)] = votes

    def get_segment(self, segment_id: str) -> Segment | None:
        return self._state.segments.get(segment_id)

    def get_vote_record(self, segment_id: str, voter_id: str) -> VoteRecord | None:
        return self._state.votes.get((segment_id, voter_id))

    def get_vote_records(self, segment_id: str) -> list[VoteRecord]:
        return [r for r in self._state.votes.values() if r.segment_id == segment_id]

    def get_category_tally(self, segment_id: str, category: str) -> int | None:
        return self._state.category_tallies.get((segment_id, category))

    def get_category_ballot(self, segment_id: str, user_id: str) -> CategoryBallot | None:
        return self._state.ballots.get((segment_id, user_id))

    @property
    def write_count(self) -> int:
        return self._state.write_count

    def clear(self) -> None:
        self._state = _StoreState()
