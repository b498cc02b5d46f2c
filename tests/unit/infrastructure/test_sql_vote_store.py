"""Unit tests for the SQL vote store against a SQLite database (aiosqlite)."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from segvote.application.services import (
    CategoryConsensusService,
    EligibilityGateService,
    IdentityService,
    ScoreAdjustmentService,
    VoteLedgerService,
    VoteSubmissionService,
)
from segvote.config import TEST_VOTE_CONFIG
from segvote.domain.models import CategoryBallot, VoteFamily, VoteRecord
from segvote.infrastructure.adapters.persistence import schema
from segvote.infrastructure.adapters.persistence.sql_privilege_registry import (
    SqlPrivilegeRegistry,
)
from segvote.infrastructure.adapters.persistence.sql_vote_store import SqlVoteStore
from tests.helpers.vote_factories import (
    SEGMENT_ID,
    VIDEO_ID,
    category_vote,
    score_vote,
    user_id_of,
    voter_id_of,
)

OWNER = user_id_of("owner")

SEGMENT_ROWS = [
    {
        "segment_id": SEGMENT_ID,
        "video_id": VIDEO_ID,
        "category": "sponsor",
        "user_id": OWNER,
        "votes": 2,
        "hashed_video_id": "abcdef",
        "time_submitted": 1000,
        "start_time": 1.5,
        "end_time": 9.0,
    },
    {
        "segment_id": "seg-2",
        "video_id": VIDEO_ID,
        "category": "intro",
        "user_id": OWNER,
        "votes": -3,
    },
    {
        "segment_id": "own-alice",
        "video_id": "vid-own",
        "category": "sponsor",
        "user_id": user_id_of("alice"),
    },
]

WARNING_ROWS = [
    {"user_id": user_id_of("warned"), "issuer_user_id": "m", "issue_time": 5000},
    {"user_id": user_id_of("warned"), "issuer_user_id": "m", "issue_time": 9000, "enabled": 0},
]


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'votes.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(schema.metadata.create_all)
        for row in SEGMENT_ROWS:
            await conn.execute(insert(schema.segments).values(**row))
        await conn.execute(insert(schema.user_names), [{"user_id": OWNER, "user_name": "Owner"}])
        await conn.execute(insert(schema.vip_users), [{"user_id": user_id_of("vip")}])
        await conn.execute(
            insert(schema.shadow_banned_users), [{"user_id": user_id_of("banned")}]
        )
        await conn.execute(
            insert(schema.lock_categories),
            [{"video_id": VIDEO_ID, "category": "intro", "user_id": user_id_of("vip")}],
        )
        for row in WARNING_ROWS:
            await conn.execute(insert(schema.warnings).values(**row))
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_store(session_factory: async_sessionmaker[AsyncSession]) -> SqlVoteStore:
    return SqlVoteStore(session_factory)


class TestSqlVoteRepository:
    """Tests for the individual repository queries."""

    async def test_get_segment(self, sql_store: SqlVoteStore) -> None:
        async with sql_store.unit_of_work() as repo:
            segment = await repo.get_segment(SEGMENT_ID)
            missing = await repo.get_segment("nope")

        assert missing is None
        assert segment is not None
        assert segment.user_id == OWNER
        assert segment.votes == 2
        assert segment.incorrect_votes == 1
        assert segment.locked is False
        assert segment.service == "YouTube"
        assert segment.hashed_video_id == "abcdef"
        assert segment.start_time == 1.5

    async def test_moderation_lookups(self, sql_store: SqlVoteStore) -> None:
        async with sql_store.unit_of_work() as repo:
            assert await repo.is_video_category_locked(VIDEO_ID, "intro", "YouTube")
            assert not await repo.is_video_category_locked(VIDEO_ID, "sponsor", "YouTube")
            assert await repo.count_active_warnings(user_id_of("warned"), 1000) == 1
            assert await repo.count_active_warnings(user_id_of("warned"), 6000) == 0
            assert await repo.is_shadow_banned(user_id_of("banned"))
            assert not await repo.is_shadow_banned(user_id_of("alice"))
            assert await repo.has_submissions(user_id_of("alice"))
            assert not await repo.has_submissions(user_id_of("nobody"))

    async def test_vote_records(self, sql_store: SqlVoteStore) -> None:
        async with sql_store.unit_of_work("key") as repo:
            await repo.upsert_vote_record(VoteRecord(SEGMENT_ID, "voter-a", "ip-1", 1))
            await repo.upsert_vote_record(VoteRecord(SEGMENT_ID, "voter-a", "ip-2", -4))

        async with sql_store.unit_of_work() as repo:
            record = await repo.get_vote_record(SEGMENT_ID, "voter-a")
            assert await repo.has_other_vote_from_ip(SEGMENT_ID, "ip-1", "voter-b")
            assert not await repo.has_other_vote_from_ip(SEGMENT_ID, "ip-1", "voter-a")

        assert record == VoteRecord(SEGMENT_ID, "voter-a", "ip-1", -4)

    async def test_counter_and_flags(self, sql_store: SqlVoteStore) -> None:
        async with sql_store.unit_of_work("key") as repo:
            await repo.increment_segment_counter(SEGMENT_ID, VoteFamily.NORMAL, -3)
            await repo.increment_segment_counter(SEGMENT_ID, VoteFamily.INCORRECT, 499)
            await repo.set_segment_locked(SEGMENT_ID, True)
            await repo.set_segment_category(SEGMENT_ID, "outro")

        async with sql_store.unit_of_work() as repo:
            segment = await repo.get_segment(SEGMENT_ID)

        assert segment is not None
        assert (segment.votes, segment.incorrect_votes) == (-1, 500)
        assert segment.locked is True
        assert segment.category == "outro"

    async def test_category_tallies_and_ballots(self, sql_store: SqlVoteStore) -> None:
        ballot = CategoryBallot(SEGMENT_ID, "user-a", "intro", "ip", 1)
        async with sql_store.unit_of_work("key") as repo:
            assert await repo.get_category_tally(SEGMENT_ID, "intro") is None
            await repo.add_category_votes(SEGMENT_ID, "intro", 1)
            await repo.add_category_votes(SEGMENT_ID, "intro", 500)
            await repo.add_category_votes(SEGMENT_ID, "intro", -1)
            await repo.upsert_category_ballot(ballot)
            await repo.upsert_category_ballot(
                CategoryBallot(SEGMENT_ID, "user-a", "outro", "ip", 2)
            )

        async with sql_store.unit_of_work() as repo:
            assert await repo.get_category_tally(SEGMENT_ID, "intro") == 500
            stored = await repo.get_category_ballot(SEGMENT_ID, "user-a")

        assert stored == CategoryBallot(SEGMENT_ID, "user-a", "outro", "ip", 2)

    async def test_submission_details(self, sql_store: SqlVoteStore) -> None:
        async with sql_store.unit_of_work() as repo:
            stats = await repo.get_submission_stats(OWNER, -2)
            count = await repo.count_submissions(OWNER)
            name = await repo.get_user_name(OWNER)
            unnamed = await repo.get_user_name("nobody")

        assert (stats.total, stats.ignored) == (2, 1)
        assert count == 2
        assert name == "Owner"
        assert unnamed is None

    async def test_rollback_on_error(self, sql_store: SqlVoteStore) -> None:
        with pytest.raises(RuntimeError):
            async with sql_store.unit_of_work("key") as repo:
                await repo.increment_segment_counter(SEGMENT_ID, VoteFamily.NORMAL, 10)
                raise RuntimeError("boom")

        async with sql_store.unit_of_work() as repo:
            segment = await repo.get_segment(SEGMENT_ID)

        assert segment is not None
        assert segment.votes == 2


class TestSqlPrivilegeRegistry:
    async def test_is_privileged(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        registry = SqlPrivilegeRegistry(session_factory)

        assert await registry.is_privileged(user_id_of("vip"))
        assert not await registry.is_privileged(user_id_of("alice"))


class TestVotingOverSql:
    """The full vote flow against the SQL adapters."""

    @pytest.fixture
    def service(
        self, session_factory: async_sessionmaker[AsyncSession], sql_store: SqlVoteStore
    ) -> VoteSubmissionService:
        registry = SqlPrivilegeRegistry(session_factory)
        return VoteSubmissionService(
            store=sql_store,
            identity_service=IdentityService(registry, TEST_VOTE_CONFIG),
            eligibility_gate=EligibilityGateService(TEST_VOTE_CONFIG),
            ledger=VoteLedgerService(),
            score_adjustment=ScoreAdjustmentService(),
            category_consensus=CategoryConsensusService(TEST_VOTE_CONFIG, registry),
        )

    async def test_concurrent_duplicate_votes_count_once(
        self, service: VoteSubmissionService, sql_store: SqlVoteStore
    ) -> None:
        await asyncio.gather(
            *(service.submit_vote(score_vote("alice", 0)) for _ in range(5))
        )

        async with sql_store.unit_of_work() as repo:
            segment = await repo.get_segment(SEGMENT_ID)
            record = await repo.get_vote_record(SEGMENT_ID, voter_id_of("alice"))

        assert segment is not None
        assert segment.votes == 1
        assert record is not None
        assert record.vote_type == 0

    async def test_vip_downvote_unlocks_and_floors(
        self, service: VoteSubmissionService, sql_store: SqlVoteStore
    ) -> None:
        await service.submit_vote(score_vote("vip", 1))
        outcome = await service.submit_vote(score_vote("vip", 0))

        async with sql_store.unit_of_work() as repo:
            segment = await repo.get_segment(SEGMENT_ID)
            record = await repo.get_vote_record(SEGMENT_ID, voter_id_of("vip"))

        assert outcome.counted
        assert segment is not None
        assert segment.votes == -2
        assert segment.locked is False
        assert record is not None
        assert record.vote_type == -4

    async def test_concurrent_first_category_votes_seed_baseline_once(
        self, service: VoteSubmissionService, sql_store: SqlVoteStore
    ) -> None:
        await asyncio.gather(
            service.submit_vote(category_vote("bob", "intro")),
            service.submit_vote(category_vote("carol", "intro")),
        )

        async with sql_store.unit_of_work() as repo:
            incumbent = await repo.get_category_tally(SEGMENT_ID, "sponsor")
            challenger = await repo.get_category_tally(SEGMENT_ID, "intro")
            owner_ballot = await repo.get_category_ballot(SEGMENT_ID, OWNER)
            segment = await repo.get_segment(SEGMENT_ID)

        assert incumbent == 1
        assert challenger == 2
        assert owner_ballot is not None
        assert owner_ballot.category == "sponsor"
        assert segment is not None
        assert segment.category == "sponsor"

    async def test_seed_category_tally_keeps_existing_row(
        self, sql_store: SqlVoteStore
    ) -> None:
        async with sql_store.unit_of_work("seed") as repo:
            assert await repo.seed_category_tally(SEGMENT_ID, "sponsor", 1)
            assert not await repo.seed_category_tally(SEGMENT_ID, "sponsor", 10_000)

        async with sql_store.unit_of_work() as repo:
            assert await repo.get_category_tally(SEGMENT_ID, "sponsor") == 1
