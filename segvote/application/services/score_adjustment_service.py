"""Score adjustment.

Applies a ledger entry to the segment counters and manages lock
transitions. Counters only move through relative increments, never
read-then-overwrite, so concurrent votes from different voters compose.

Lock transitions (plain votes by a VIP):
- upvote   -> locked
- downvote -> unlocked, reopening the segment to scrutiny

Nothing is written when the entry changes no counter, no record and no
lock state.
"""

from __future__ import annotations

from structlog import get_logger

from segvote.application.ports.cache_invalidator import CacheInvalidatorProtocol
from segvote.application.ports.vote_store import VoteRepositoryProtocol
from segvote.application.services.vote_ledger_service import LedgerEntry
from segvote.domain.models import Segment, VoteKind

logger = get_logger(__name__)


async def invalidate_segment_cache(
    cache_invalidator: CacheInvalidatorProtocol | None,
    segment: Segment,
) -> None:
    """Invalidate the segment's video cache, logging instead of raising.

    Called after the unit of work commits; the cache is never relied on
    for correctness, so a failure must not fail the vote.
    """
    if cache_invalidator is None:
        return
    try:
        await cache_invalidator.invalidate_video(segment)
    except Exception as e:
        logger.warning(
            "cache_invalidation_failed",
            segment_id=segment.segment_id,
            video_id=segment.video_id,
            error=str(e),
        )


class ScoreAdjustmentService:
    """Applies eligible score votes to segments."""

    def __init__(self, cache_invalidator: CacheInvalidatorProtocol | None = None) -> None:
        self._cache_invalidator = cache_invalidator

    @staticmethod
    def target_lock_state(entry: LedgerEntry, is_vip: bool) -> bool | None:
        """Lock state a VIP plain vote moves the segment to, None if untouched."""
        if not is_vip:
            return None
        if entry.kind is VoteKind.UP:
            return True
        if entry.kind is VoteKind.DOWN:
            return False
        return None

    async def apply(
        self,
        repo: VoteRepositoryProtocol,
        segment: Segment,
        entry: LedgerEntry,
        is_vip: bool,
    ) -> bool:
        """Apply counter deltas and lock transitions for an eligible vote.

        Args:
            repo: Repository of the current unit of work.
            segment: Segment as read in this unit of work.
            entry: Resolved ledger entry.
            is_vip: Whether the voter is a VIP.

        Returns:
            True if the segment row was written.
        """
        log = logger.bind(segment_id=segment.segment_id, kind=entry.kind.value)
        changed = False

        for family, delta in entry.counter_deltas.items():
            if delta == 0:
                continue
            await repo.increment_segment_counter(segment.segment_id, family, delta)
            log.debug("segment_counter_incremented", counter=family.value, delta=delta)
            changed = True

        lock_state = self.target_lock_state(entry, is_vip)
        if lock_state is not None and lock_state != segment.locked:
            await repo.set_segment_locked(segment.segment_id, lock_state)
            log.info("segment_lock_changed", locked=lock_state)
            changed = True

        return changed

    async def invalidate_cache(self, segment: Segment) -> None:
        await invalidate_segment_cache(self._cache_invalidator, segment)
