"""Unit tests for ScoreAdjustmentService."""

import pytest

from segvote.application.services.score_adjustment_service import (
    ScoreAdjustmentService,
    invalidate_segment_cache,
)
from segvote.application.services.vote_ledger_service import VoteLedgerService
from segvote.domain.models import VoteKind, VoteRecord
from segvote.infrastructure.stubs import CacheInvalidatorStub, VoteStoreStub
from tests.helpers.vote_factories import SEGMENT_ID, make_segment


@pytest.fixture
def service() -> ScoreAdjustmentService:
    return ScoreAdjustmentService()


class TestTargetLockState:
    def test_vip_plain_votes_drive_lock(self) -> None:
        ledger = VoteLedgerService()
        up = ledger.resolve_weights(VoteKind.UP, None, make_segment(), True)
        down = ledger.resolve_weights(VoteKind.DOWN, None, make_segment(), True)
        incorrect = ledger.resolve_weights(VoteKind.INCORRECT_DOWN, None, make_segment(), True)

        assert ScoreAdjustmentService.target_lock_state(up, is_vip=True) is True
        assert ScoreAdjustmentService.target_lock_state(down, is_vip=True) is False
        assert ScoreAdjustmentService.target_lock_state(incorrect, is_vip=True) is None

    def test_non_vip_never_changes_lock(self) -> None:
        entry = VoteLedgerService().resolve_weights(VoteKind.UP, None, make_segment(), True)

        assert ScoreAdjustmentService.target_lock_state(entry, is_vip=False) is None


class TestApply:
    async def test_applies_counter_deltas(self, service: ScoreAdjustmentService) -> None:
        store = VoteStoreStub()
        segment = make_segment(votes=1, incorrect_votes=1)
        store.add_segment(segment)
        previous = VoteRecord(SEGMENT_ID, "voter", "ip", 1)
        entry = VoteLedgerService().resolve_weights(
            VoteKind.INCORRECT_DOWN, previous, segment, False
        )

        async with store.unit_of_work("key") as repo:
            changed = await service.apply(repo, segment, entry, is_vip=False)

        updated = store.get_segment(SEGMENT_ID)
        assert changed
        assert updated is not None
        assert updated.votes == 0
        assert updated.incorrect_votes == 0

    async def test_vip_upvote_locks(self, service: ScoreAdjustmentService) -> None:
        store = VoteStoreStub()
        segment = make_segment()
        store.add_segment(segment)
        entry = VoteLedgerService().resolve_weights(VoteKind.UP, None, segment, True)

        async with store.unit_of_work("key") as repo:
            await service.apply(repo, segment, entry, is_vip=True)

        updated = store.get_segment(SEGMENT_ID)
        assert updated is not None
        assert updated.locked
        assert updated.votes == 1

    async def test_noop_writes_nothing(self, service: ScoreAdjustmentService) -> None:
        store = VoteStoreStub()
        segment = make_segment(votes=1, locked=True)
        store.add_segment(segment)
        previous = VoteRecord(SEGMENT_ID, "voter", "ip", 1)
        entry = VoteLedgerService().resolve_weights(VoteKind.UP, previous, segment, True)

        async with store.unit_of_work("key") as repo:
            changed = await service.apply(repo, segment, entry, is_vip=True)

        assert not changed
        assert store.write_count == 0


class TestCacheInvalidation:
    async def test_invalidates_video(self) -> None:
        cache = CacheInvalidatorStub()
        service = ScoreAdjustmentService(cache)

        await service.invalidate_cache(make_segment())

        assert cache.invalidated_video_ids == ["vid-1"]

    async def test_failure_is_swallowed(self) -> None:
        await invalidate_segment_cache(CacheInvalidatorStub(fail=True), make_segment())

    async def test_without_invalidator(self) -> None:
        await invalidate_segment_cache(None, make_segment())
