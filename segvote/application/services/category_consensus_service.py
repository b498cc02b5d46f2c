"""Category consensus.

Weighted re-voting that moves a segment to another category. Each voter
has at most one active category ballot per segment; changing it moves
the voter's weight from the old category's tally to the new one.

The incumbent category carries an implicit baseline tally (the
submitter's endorsement) before any explicit votes exist: 10000 when the
submitter is a VIP, 1 otherwise. The baseline is written once, attributed
to the submitter, the first time the segment receives a category vote.

A challenger C replaces the incumbent I when

    tally(C) - tally(I) >= max(ceil(votes / 2), 2)

where votes is the segment's score, or immediately when the voter is a
VIP or the submitter. Score counters are never touched.
"""

from __future__ import annotations

import math
import time

from structlog import get_logger

from segvote.application.ports.cache_invalidator import CacheInvalidatorProtocol
from segvote.application.ports.privilege_registry import PrivilegeRegistryProtocol
from segvote.application.ports.vote_store import VoteRepositoryProtocol
from segvote.application.ports.vote_submission import (
    MODERATION_LOCKED_MESSAGE,
    VoteOutcome,
    VoteOutcomeStatus,
)
from segvote.application.services.score_adjustment_service import (
    invalidate_segment_cache,
)
from segvote.config.vote_config import VoteConfig
from segvote.domain.models import CategoryBallot, Segment, VoterIdentity

logger = get_logger(__name__)

# Hashed address recorded on the submitter's seeded ballot
UNKNOWN_HASHED_IP = "unknown"


def _now_ms() -> int:
    return int(time.time() * 1000)


class CategoryConsensusService:
    """Applies category votes and reassigns categories on consensus."""

    def __init__(
        self,
        config: VoteConfig,
        privilege_registry: PrivilegeRegistryProtocol,
        cache_invalidator: CacheInvalidatorProtocol | None = None,
    ) -> None:
        self._config = config
        self._privilege_registry = privilege_registry
        self._cache_invalidator = cache_invalidator

    def vote_weight(self, identity: VoterIdentity) -> int:
        return self._config.vip_category_weight if identity.is_vip else 1

    def required_margin(self, segment_votes: int) -> int:
        """Tally margin a challenger needs over the incumbent."""
        return max(math.ceil(segment_votes / 2), self._config.min_category_margin)

    async def baseline_weight(self, segment: Segment) -> int:
        """Implicit tally of the incumbent category."""
        if await self._privilege_registry.is_privileged(segment.user_id):
            return self._config.vip_baseline_weight
        return self._config.default_baseline_weight

    async def vote(
        self,
        repo: VoteRepositoryProtocol,
        identity: VoterIdentity,
        segment: Segment,
        category: str,
        gate_status: VoteOutcomeStatus = VoteOutcomeStatus.APPLIED,
        now_ms: int | None = None,
    ) -> VoteOutcome:
        """Cast a category vote.

        The category must already be validated by the eligibility gate.

        Args:
            repo: Repository of the current unit of work.
            identity: Voter identity with ownership resolved.
            segment: Segment as read in this unit of work.
            category: Category voted for.
            gate_status: MODERATION_LOCKED if a moderator lock applies.
            now_ms: Ballot timestamp, epoch milliseconds.

        Returns:
            VoteOutcome; a duplicate ballot or a locked segment changes nothing.
        """
        log = logger.bind(
            segment_id=segment.segment_id,
            user_id=identity.user_id,
            category=category,
        )
        locked = gate_status is VoteOutcomeStatus.MODERATION_LOCKED

        previous = await repo.get_category_ballot(segment.segment_id, identity.user_id)
        if previous is not None and previous.category == category:
            log.debug("category_vote_duplicate")
            return self._outcome(
                VoteOutcomeStatus.MODERATION_LOCKED if locked else VoteOutcomeStatus.NO_CHANGE,
                category,
            )

        if locked:
            log.info("category_vote_rejected_locked")
            return self._outcome(VoteOutcomeStatus.MODERATION_LOCKED, category)

        timestamp = _now_ms() if now_ms is None else now_ms
        weight = self.vote_weight(identity)
        challenger_tally = await repo.get_category_tally(segment.segment_id, category)

        await repo.add_category_votes(segment.segment_id, category, weight)
        if previous is not None:
            await repo.add_category_votes(segment.segment_id, previous.category, -weight)
        await repo.upsert_category_ballot(
            CategoryBallot(
                segment_id=segment.segment_id,
                user_id=identity.user_id,
                category=category,
                hashed_ip=identity.hashed_ip,
                time_submitted=timestamp,
            )
        )

        incumbent_tally = await self._incumbent_tally(repo, segment)
        challenger_count = (challenger_tally or 0) + weight
        margin = challenger_count - incumbent_tally
        reassign = (
            margin >= self.required_margin(segment.votes)
            or identity.is_vip
            or identity.is_own_submission
        )

        changed = False
        if reassign and category != segment.category:
            await repo.set_segment_category(segment.segment_id, category)
            changed = True
            log.info(
                "segment_category_reassigned",
                previous_category=segment.category,
                margin=margin,
                is_vip=identity.is_vip,
                is_own_submission=identity.is_own_submission,
            )
        else:
            log.debug(
                "category_vote_recorded",
                challenger_tally=challenger_count,
                incumbent_tally=incumbent_tally,
            )

        return self._outcome(
            VoteOutcomeStatus.APPLIED,
            category,
            counted=True,
            category_changed=changed,
        )

    async def _incumbent_tally(
        self,
        repo: VoteRepositoryProtocol,
        segment: Segment,
    ) -> int:
        """Read the incumbent tally, seeding the baseline on first use."""
        tally = await repo.get_category_tally(segment.segment_id, segment.category)
        if tally is not None:
            return tally

        baseline = await self.baseline_weight(segment)
        seeded = await repo.seed_category_tally(
            segment.segment_id, segment.category, baseline
        )
        if not seeded:
            # a concurrent vote on the segment seeded it first
            tally = await repo.get_category_tally(segment.segment_id, segment.category)
            return baseline if tally is None else tally

        if await repo.get_category_ballot(segment.segment_id, segment.user_id) is None:
            await repo.upsert_category_ballot(
                CategoryBallot(
                    segment_id=segment.segment_id,
                    user_id=segment.user_id,
                    category=segment.category,
                    hashed_ip=UNKNOWN_HASHED_IP,
                    time_submitted=segment.time_submitted,
                )
            )
        logger.debug(
            "incumbent_category_seeded",
            segment_id=segment.segment_id,
            category=segment.category,
            baseline=baseline,
        )
        return baseline

    @staticmethod
    def _outcome(
        status: VoteOutcomeStatus,
        category: str,
        counted: bool = False,
        category_changed: bool = False,
    ) -> VoteOutcome:
        locked = status is VoteOutcomeStatus.MODERATION_LOCKED
        return VoteOutcome(
            status=status,
            http_status=403 if locked else 200,
            message=MODERATION_LOCKED_MESSAGE if locked else None,
            counted=counted,
            category=category,
            category_changed=category_changed,
        )

    async def invalidate_cache(self, segment: Segment) -> None:
        await invalidate_segment_cache(self._cache_invalidator, segment)
