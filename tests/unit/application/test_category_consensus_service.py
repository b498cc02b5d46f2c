"""Unit tests for CategoryConsensusService."""

from typing import Any

import pytest

from segvote.application.ports.vote_submission import VoteOutcomeStatus
from segvote.application.services.category_consensus_service import (
    UNKNOWN_HASHED_IP,
    CategoryConsensusService,
)
from segvote.config import TEST_VOTE_CONFIG
from segvote.domain.models import VoterIdentity
from segvote.infrastructure.stubs import PrivilegeRegistryStub, VoteStoreStub
from segvote.infrastructure.stubs.vote_store_stub import VoteRepositoryStub
from tests.helpers.vote_factories import SEGMENT_ID, make_segment, user_id_of

NOW_MS = 1_700_000_000_000


def _voter(raw: str, **kwargs: bool) -> VoterIdentity:
    return VoterIdentity(
        user_id=user_id_of(raw), voter_id=f"voter-{raw}", hashed_ip=f"ip-{raw}", **kwargs
    )


@pytest.fixture
def consensus(privileges: PrivilegeRegistryStub) -> CategoryConsensusService:
    return CategoryConsensusService(TEST_VOTE_CONFIG, privileges)


class TestWeights:
    @pytest.mark.parametrize(
        ("votes", "margin"), [(-4, 2), (0, 2), (3, 2), (5, 3), (10, 5), (11, 6)]
    )
    def test_required_margin(
        self, consensus: CategoryConsensusService, votes: int, margin: int
    ) -> None:
        assert consensus.required_margin(votes) == margin

    def test_vote_weight(self, consensus: CategoryConsensusService) -> None:
        assert consensus.vote_weight(_voter("alice")) == 1
        assert consensus.vote_weight(_voter("vip", is_vip=True)) == 500

    async def test_baseline_weight(
        self, consensus: CategoryConsensusService, privileges: PrivilegeRegistryStub
    ) -> None:
        segment = make_segment(owner="owner")

        assert await consensus.baseline_weight(segment) == 1
        privileges.add_vip(user_id_of("owner"))
        assert await consensus.baseline_weight(segment) == 10_000


class TestVote:
    async def test_first_vote_seeds_incumbent_baseline(
        self, consensus: CategoryConsensusService
    ) -> None:
        store = VoteStoreStub()
        segment = make_segment(time_submitted=123)
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            outcome = await consensus.vote(
                repo, _voter("alice"), segment, "intro", now_ms=NOW_MS
            )

        assert outcome.status is VoteOutcomeStatus.APPLIED
        assert outcome.counted
        assert not outcome.category_changed
        assert store.get_category_tally(SEGMENT_ID, "intro") == 1
        assert store.get_category_tally(SEGMENT_ID, "sponsor") == 1

        seeded = store.get_category_ballot(SEGMENT_ID, segment.user_id)
        assert seeded is not None
        assert seeded.category == "sponsor"
        assert seeded.hashed_ip == UNKNOWN_HASHED_IP
        assert seeded.time_submitted == 123

        ballot = store.get_category_ballot(SEGMENT_ID, user_id_of("alice"))
        assert ballot is not None
        assert ballot.time_submitted == NOW_MS

    async def test_changing_ballot_moves_weight(
        self, consensus: CategoryConsensusService
    ) -> None:
        store = VoteStoreStub()
        segment = make_segment()
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            await consensus.vote(repo, _voter("alice"), segment, "intro")
            await consensus.vote(repo, _voter("alice"), segment, "outro")

        assert store.get_category_tally(SEGMENT_ID, "intro") == 0
        assert store.get_category_tally(SEGMENT_ID, "outro") == 1
        ballot = store.get_category_ballot(SEGMENT_ID, user_id_of("alice"))
        assert ballot is not None
        assert ballot.category == "outro"

    async def test_duplicate_ballot_changes_nothing(
        self, consensus: CategoryConsensusService
    ) -> None:
        store = VoteStoreStub()
        segment = make_segment()
        store.add_segment(segment)
        async with store.unit_of_work("key") as repo:
            await consensus.vote(repo, _voter("alice"), segment, "intro")
        writes = store.write_count

        async with store.unit_of_work("key") as repo:
            outcome = await consensus.vote(repo, _voter("alice"), segment, "intro")

        assert outcome.status is VoteOutcomeStatus.NO_CHANGE
        assert not outcome.counted
        assert store.write_count == writes

    async def test_locked_vote_changes_nothing(
        self, consensus: CategoryConsensusService
    ) -> None:
        store = VoteStoreStub()
        segment = make_segment(locked=True)
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            outcome = await consensus.vote(
                repo,
                _voter("alice"),
                segment,
                "intro",
                gate_status=VoteOutcomeStatus.MODERATION_LOCKED,
            )

        assert outcome.status is VoteOutcomeStatus.MODERATION_LOCKED
        assert outcome.http_status == 403
        assert outcome.message is not None
        assert store.write_count == 0

    async def test_vip_reassigns_immediately(
        self, consensus: CategoryConsensusService
    ) -> None:
        store = VoteStoreStub()
        segment = make_segment()
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            outcome = await consensus.vote(
                repo, _voter("vip", is_vip=True), segment, "intro"
            )

        updated = store.get_segment(SEGMENT_ID)
        assert outcome.category_changed
        assert updated is not None
        assert updated.category == "intro"
        assert store.get_category_tally(SEGMENT_ID, "intro") == 500

    async def test_owner_reassigns_immediately(
        self, consensus: CategoryConsensusService
    ) -> None:
        store = VoteStoreStub()
        segment = make_segment(owner="owner")
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            outcome = await consensus.vote(
                repo, _voter("owner", is_own_submission=True), segment, "selfpromo"
            )

        assert outcome.category_changed
        # the owner's own ballot replaces the seeded one
        ballot = store.get_category_ballot(SEGMENT_ID, segment.user_id)
        assert ballot is not None
        assert ballot.category == "selfpromo"

    async def test_vip_owner_baseline_resists_regular_voters(
        self, consensus: CategoryConsensusService, privileges: PrivilegeRegistryStub
    ) -> None:
        privileges.add_vip(user_id_of("owner"))
        store = VoteStoreStub()
        segment = make_segment(owner="owner")
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            for raw in ("a", "b", "c", "d"):
                outcome = await consensus.vote(repo, _voter(raw), segment, "intro")
                assert not outcome.category_changed

        assert store.get_category_tally(SEGMENT_ID, "sponsor") == 10_000
        assert store.get_category_tally(SEGMENT_ID, "intro") == 4

    async def test_margin_scales_with_segment_score(
        self, consensus: CategoryConsensusService
    ) -> None:
        """At score 10 the challenger needs a margin of 5 over the incumbent."""
        store = VoteStoreStub()
        segment = make_segment(votes=10)
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            outcomes = [
                await consensus.vote(repo, _voter(f"user-{i}"), segment, "intro")
                for i in range(6)
            ]

        assert [o.category_changed for o in outcomes] == [False] * 5 + [True]

    async def test_baseline_seeded_elsewhere_is_not_added_again(
        self, consensus: CategoryConsensusService
    ) -> None:
        """Another transaction seeding the incumbent first leaves its row alone."""
        store = VoteStoreStub()
        segment = make_segment()
        store.add_segment(segment)

        async with store.unit_of_work("key") as repo:
            racing = _SeededConcurrently(repo, store)
            outcome = await consensus.vote(racing, _voter("alice"), segment, "intro")

        assert outcome.counted
        assert not outcome.category_changed
        assert store.get_category_tally(SEGMENT_ID, "sponsor") == 1
        assert store.get_category_tally(SEGMENT_ID, "intro") == 1
        assert store.get_category_ballot(SEGMENT_ID, user_id_of("owner")) is None


class _SeededConcurrently:
    """Repository whose incumbent tally row appears just before it is seeded."""

    def __init__(self, repo: VoteRepositoryStub, store: VoteStoreStub) -> None:
        self._repo = repo
        self._store = store

    def __getattr__(self, name: str) -> Any:
        return getattr(self._repo, name)

    async def seed_category_tally(self, segment_id: str, category: str, votes: int) -> bool:
        self._store.add_category_tally(segment_id, category, 1)
        return await self._repo.seed_category_tally(segment_id, category, votes)
