"""SQL implementation of VoteStoreProtocol.

One unit of work is one database transaction. Units of work sharing a
lock key are serialized: on PostgreSQL with a transaction-scoped
advisory lock, elsewhere with an in-process lock per key.

Counter updates are relative (SET col = col + :delta); the column name
comes from VoteFamily, never from request data.

Usage:
    store = SqlVoteStore(get_session_factory())
    async with store.unit_of_work(lock_key) as repo:
        segment = await repo.get_segment(segment_id)
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from segvote.application.ports.vote_store import SubmissionStats
from segvote.domain.models import (
    CategoryBallot,
    Segment,
    VoteFamily,
    VoteRecord,
)

logger = get_logger(__name__)

_COUNTER_COLUMNS: dict[VoteFamily, str] = {
    VoteFamily.NORMAL: "votes",
    VoteFamily.INCORRECT: "incorrect_votes",
}


class SqlVoteRepository:
    """VoteRepositoryProtocol over one AsyncSession transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_segment(self, segment_id: str) -> Segment | None:
        result = await self._session.execute(
            text("""
                SELECT segment_id, video_id, category, user_id, votes,
                       incorrect_votes, views, locked, hashed_video_id,
                       service, time_submitted, start_time, end_time
                FROM segments
                WHERE segment_id = :segment_id
            """),
            {"segment_id": segment_id},
        )
        row = result.mappings().fetchone()
        if row is None:
            return None
        return Segment(
            segment_id=row["segment_id"],
            video_id=row["video_id"],
            category=row["category"],
            user_id=row["user_id"],
            votes=row["votes"],
            incorrect_votes=row["incorrect_votes"],
            views=row["views"],
            locked=bool(row["locked"]),
            hashed_video_id=row["hashed_video_id"],
            service=row["service"],
            time_submitted=row["time_submitted"],
            start_time=row["start_time"],
            end_time=row["end_time"],
        )

    async def is_video_category_locked(
        self,
        video_id: str,
        category: str,
        service: str,
    ) -> bool:
        result = await self._session.execute(
            text("""
                SELECT 1 FROM lock_categories
                WHERE video_id = :video_id
                  AND category = :category
                  AND service = :service
            """),
            {"video_id": video_id, "category": category, "service": service},
        )
        return result.first() is not None

    async def count_active_warnings(self, user_id: str, issued_after_ms: int) -> int:
        result = await self._session.execute(
            text("""
                SELECT COUNT(*) FROM warnings
                WHERE user_id = :user_id
                  AND issue_time > :issued_after
                  AND enabled = 1
            """),
            {"user_id": user_id, "issued_after": issued_after_ms},
        )
        return result.scalar() or 0

    async def has_submissions(self, user_id: str) -> bool:
        result = await self._session.execute(
            text("SELECT 1 FROM segments WHERE user_id = :user_id LIMIT 1"),
            {"user_id": user_id},
        )
        return result.first() is not None

    async def is_shadow_banned(self, user_id: str) -> bool:
        result = await self._session.execute(
            text("SELECT 1 FROM shadow_banned_users WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        return result.first() is not None

    async def has_other_vote_from_ip(
        self,
        segment_id: str,
        hashed_ip: str,
        voter_id: str,
    ) -> bool:
        result = await self._session.execute(
            text("""
                SELECT 1 FROM votes
                WHERE segment_id = :segment_id
                  AND hashed_ip = :hashed_ip
                  AND voter_id != :voter_id
                LIMIT 1
            """),
            {"segment_id": segment_id, "hashed_ip": hashed_ip, "voter_id": voter_id},
        )
        return result.first() is not None

    async def get_vote_record(
        self,
        segment_id: str,
        voter_id: str,
    ) -> VoteRecord | None:
        result = await self._session.execute(
            text("""
                SELECT segment_id, voter_id, hashed_ip, vote_type
                FROM votes
                WHERE segment_id = :segment_id AND voter_id = :voter_id
            """),
            {"segment_id": segment_id, "voter_id": voter_id},
        )
        row = result.mappings().fetchone()
        if row is None:
            return None
        return VoteRecord(
            segment_id=row["segment_id"],
            voter_id=row["voter_id"],
            hashed_ip=row["hashed_ip"],
            vote_type=row["vote_type"],
        )

    async def upsert_vote_record(self, record: VoteRecord) -> None:
        await self._session.execute(
            text("""
                INSERT INTO votes (segment_id, voter_id, hashed_ip, vote_type)
                VALUES (:segment_id, :voter_id, :hashed_ip, :vote_type)
                ON CONFLICT (segment_id, voter_id)
                DO UPDATE SET vote_type = excluded.vote_type
            """),
            {
                "segment_id": record.segment_id,
                "voter_id": record.voter_id,
                "hashed_ip": record.hashed_ip,
                "vote_type": record.vote_type,
            },
        )

    async def increment_segment_counter(
        self,
        segment_id: str,
        family: VoteFamily,
        delta: int,
    ) -> None:
        column = _COUNTER_COLUMNS[family]
        await self._session.execute(
            text(
                f"UPDATE segments SET {column} = {column} + :delta "
                "WHERE segment_id = :segment_id"
            ),
            {"delta": delta, "segment_id": segment_id},
        )

    async def set_segment_locked(self, segment_id: str, locked: bool) -> None:
        await self._session.execute(
            text("UPDATE segments SET locked = :locked WHERE segment_id = :segment_id"),
            {"locked": int(locked), "segment_id": segment_id},
        )

    async def set_segment_category(self, segment_id: str, category: str) -> None:
        await self._session.execute(
            text(
                "UPDATE segments SET category = :category WHERE segment_id = :segment_id"
            ),
            {"category": category, "segment_id": segment_id},
        )

    async def get_category_ballot(
        self,
        segment_id: str,
        user_id: str,
    ) -> CategoryBallot | None:
        result = await self._session.execute(
            text("""
                SELECT segment_id, user_id, category, hashed_ip, time_submitted
                FROM category_vote_ballots
                WHERE segment_id = :segment_id AND user_id = :user_id
            """),
            {"segment_id": segment_id, "user_id": user_id},
        )
        row = result.mappings().fetchone()
        if row is None:
            return None
        return CategoryBallot(
            segment_id=row["segment_id"],
            user_id=row["user_id"],
            category=row["category"],
            hashed_ip=row["hashed_ip"],
            time_submitted=row["time_submitted"],
        )

    async def upsert_category_ballot(self, ballot: CategoryBallot) -> None:
        await self._session.execute(
            text("""
                INSERT INTO category_vote_ballots
                    (segment_id, user_id, hashed_ip, category, time_submitted)
                VALUES (:segment_id, :user_id, :hashed_ip, :category, :time_submitted)
                ON CONFLICT (segment_id, user_id)
                DO UPDATE SET category = excluded.category,
                              hashed_ip = excluded.hashed_ip,
                              time_submitted = excluded.time_submitted
            """),
            {
                "segment_id": ballot.segment_id,
                "user_id": ballot.user_id,
                "hashed_ip": ballot.hashed_ip,
                "category": ballot.category,
                "time_submitted": ballot.time_submitted,
            },
        )

    async def get_category_tally(self, segment_id: str, category: str) -> int | None:
        result = await self._session.execute(
            text("""
                SELECT votes FROM category_votes
                WHERE segment_id = :segment_id AND category = :category
            """),
            {"segment_id": segment_id, "category": category},
        )
        row = result.fetchone()
        return row[0] if row is not None else None

    async def add_category_votes(
        self,
        segment_id: str,
        category: str,
        amount: int,
    ) -> None:
        await self._session.execute(
            text("""
                INSERT INTO category_votes (segment_id, category, votes)
                VALUES (:segment_id, :category, :amount)
                ON CONFLICT (segment_id, category)
                DO UPDATE SET votes = category_votes.votes + excluded.votes
            """),
            {"segment_id": segment_id, "category": category, "amount": amount},
        )

    async def seed_category_tally(
        self,
        segment_id: str,
        category: str,
        votes: int,
    ) -> bool:
        result = await self._session.execute(
            text("""
                INSERT INTO category_votes (segment_id, category, votes)
                VALUES (:segment_id, :category, :votes)
                ON CONFLICT (segment_id, category) DO NOTHING
            """),
            {"segment_id": segment_id, "category": category, "votes": votes},
        )
        return result.rowcount == 1

    async def count_submissions(self, user_id: str) -> int:
        result = await self._session.execute(
            text("SELECT COUNT(*) FROM segments WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        return result.scalar() or 0

    async def get_submission_stats(
        self,
        user_id: str,
        suppressed_threshold: int,
    ) -> SubmissionStats:
        result = await self._session.execute(
            text("""
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(CASE WHEN votes <= :threshold THEN 1 ELSE 0 END), 0)
                           AS ignored
                FROM segments
                WHERE user_id = :user_id
            """),
            {"user_id": user_id, "threshold": suppressed_threshold},
        )
        row = result.mappings().fetchone()
        if row is None:
            return SubmissionStats(total=0, ignored=0)
        return SubmissionStats(total=int(row["total"]), ignored=int(row["ignored"]))

    async def get_user_name(self, user_id: str) -> str | None:
        result = await self._session.execute(
            text("SELECT user_name FROM user_names WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        return result.scalar()


class SqlVoteStore:
    """VoteStoreProtocol over a SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory
        self._local_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @asynccontextmanager
    async def unit_of_work(
        self,
        lock_key: str | None = None,
    ) -> AsyncIterator[SqlVoteRepository]:
        async with self._session_factory() as session:
            is_postgres = session.get_bind().dialect.name == "postgresql"
            if lock_key is None or is_postgres:
                async with session.begin():
                    if lock_key is not None:
                        await session.execute(
                            text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                            {"key": lock_key},
                        )
                    yield SqlVoteRepository(session)
                return

            async with self._local_lock(lock_key):
                async with session.begin():
                    yield SqlVoteRepository(session)

    def _local_lock(self, lock_key: str) -> asyncio.Lock:
        lock = self._local_locks.get(lock_key)
        if lock is None:
            lock = asyncio.Lock()
            self._local_locks[lock_key] = lock
        return lock
