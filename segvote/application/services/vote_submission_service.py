"""Vote submission service.

Entry point of the vote engine. A request flows through

    identity -> eligibility gate -> (ledger + score adjustment)
                                 or category consensus

inside one unit of work keyed by (segment, voter), so concurrent votes
from the same identity serialize and the ledger row and the counters it
explains commit together. The cache is invalidated after commit and the
notification event is returned to the caller for dispatch after the
response; neither can fail the vote.
"""

from __future__ import annotations

import time

from structlog import get_logger

from segvote.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from segvote.application.ports.vote_store import (
    VoteRepositoryProtocol,
    VoteStoreProtocol,
)
from segvote.application.ports.vote_submission import (
    MODERATION_LOCKED_MESSAGE,
    VoteOutcome,
    VoteOutcomeStatus,
    VoteRequest,
)
from segvote.application.services.category_consensus_service import (
    CategoryConsensusService,
)
from segvote.application.services.eligibility_gate_service import (
    EligibilityGateService,
)
from segvote.application.services.identity_service import IdentityService
from segvote.application.services.score_adjustment_service import (
    ScoreAdjustmentService,
)
from segvote.application.services.vote_ledger_service import VoteLedgerService
from segvote.domain.errors import SegmentNotFoundError, VoteRejectedError
from segvote.domain.events import SegmentVoteEvent
from segvote.domain.models import Segment, VoteKind, VoterIdentity
from segvote.infrastructure.monitoring.metrics import get_metrics_collector

logger = get_logger(__name__)

CATEGORY_VOTE_KIND = "category"


def _now_ms() -> int:
    return int(time.time() * 1000)


def vote_lock_key(segment_id: str, voter_id: str) -> str:
    """Serialization key of a (segment, voter) pair."""
    return f"vote:{segment_id}:{voter_id}"


class VoteSubmissionService:
    """Resolves and applies votes (implements VoteSubmissionProtocol)."""

    def __init__(
        self,
        store: VoteStoreProtocol,
        identity_service: IdentityService,
        eligibility_gate: EligibilityGateService,
        ledger: VoteLedgerService,
        score_adjustment: ScoreAdjustmentService,
        category_consensus: CategoryConsensusService,
        dispatcher: NotificationDispatcherProtocol | None = None,
    ) -> None:
        self._store = store
        self._identity = identity_service
        self._gate = eligibility_gate
        self._ledger = ledger
        self._score = score_adjustment
        self._category = category_consensus
        self._dispatcher = dispatcher

    async def submit_vote(self, request: VoteRequest) -> VoteOutcome:
        """Resolve and apply a vote.

        Args:
            request: The raw vote request.

        Returns:
            VoteOutcome describing what happened. Its notification, if
            any, has not been dispatched yet (see dispatch_notification).

        Raises:
            VoteRejectedError: Any rejection before a state change.
        """
        kind = self._gate.validate_request(request)
        metric_kind = kind.value if kind is not None else CATEGORY_VOTE_KIND
        metrics = get_metrics_collector()

        # validate_request guarantees both ids are present
        segment_id = str(request.segment_id)
        raw_user_id = str(request.raw_user_id)

        log = logger.bind(segment_id=segment_id, kind=metric_kind)
        log.debug("vote_submission_started")

        try:
            if kind is None:
                self._gate.validate_category(str(request.category))

            identity = await self._identity.resolve(
                raw_user_id, segment_id, request.client_ip
            )
            log = log.bind(user_id=identity.user_id)

            async with self._store.unit_of_work(
                vote_lock_key(segment_id, identity.voter_id)
            ) as repo:
                segment = await repo.get_segment(segment_id)
                if segment is None:
                    log.info("vote_rejected_segment_not_found")
                    raise SegmentNotFoundError(segment_id)
                identity = self._identity.with_segment(identity, segment)

                locked = await self._gate.is_moderation_locked(
                    repo, segment, identity, kind
                )

                if kind is None:
                    await self._gate.check_warnings(repo, identity.user_id)
                    outcome = await self._category.vote(
                        repo,
                        identity,
                        segment,
                        str(request.category),
                        VoteOutcomeStatus.MODERATION_LOCKED
                        if locked
                        else VoteOutcomeStatus.APPLIED,
                    )
                else:
                    outcome = await self._score_vote(
                        repo, identity, segment, kind, locked
                    )
        except VoteRejectedError as e:
            metrics.increment_segment_votes(metric_kind, "rejected")
            log.info("vote_rejected", reason=type(e).__name__)
            raise
        except Exception:
            log.exception("vote_submission_failed")
            raise

        if outcome.counted:
            if kind is None:
                await self._category.invalidate_cache(segment)
            else:
                await self._score.invalidate_cache(segment)
        if outcome.category_changed:
            metrics.increment_category_reassignments()
        metrics.increment_segment_votes(metric_kind, outcome.status.value)

        log.info(
            "vote_submission_completed",
            status=outcome.status.value,
            counted=outcome.counted,
            delta=outcome.delta,
        )
        return outcome

    async def _score_vote(
        self,
        repo: VoteRepositoryProtocol,
        identity: VoterIdentity,
        segment: Segment,
        kind: VoteKind,
        locked: bool,
    ) -> VoteOutcome:
        if self._gate.is_redundant_downvote(segment, identity, kind):
            logger.debug("vote_redundant", segment_id=segment.segment_id)
            return VoteOutcome(
                status=VoteOutcomeStatus.REDUNDANT,
                votes_before=segment.votes,
                votes_after=segment.votes,
            )

        await self._gate.check_warnings(repo, identity.user_id, _now_ms())

        previous = await repo.get_vote_record(segment.segment_id, identity.voter_id)
        entry = self._ledger.resolve_weights(
            kind, previous, segment, identity.is_privileged
        )

        eligible = not locked and await self._gate.is_eligible(
            repo, identity, segment.segment_id, entry.new_weight
        )

        counted = False
        if eligible:
            if not entry.is_noop:
                await self._ledger.record(repo, identity, entry)
                counted = True
            if await self._score.apply(repo, segment, entry, identity.is_vip):
                counted = True

        votes_after = segment.votes + entry.delta
        notification = None
        if entry.delta != 0:
            notification = SegmentVoteEvent(
                segment_id=segment.segment_id,
                video_id=segment.video_id,
                category=segment.category,
                voter_user_id=identity.user_id,
                kind=entry.kind,
                family=entry.family,
                new_weight=entry.new_weight,
                votes_before=segment.votes,
                votes_after=votes_after,
                views=segment.views,
                is_vip=identity.is_vip,
                is_own_submission=identity.is_own_submission,
                applied=counted,
                message=MODERATION_LOCKED_MESSAGE if locked else None,
            )

        if locked:
            status = VoteOutcomeStatus.MODERATION_LOCKED
        elif eligible and not counted and previous is not None:
            status = VoteOutcomeStatus.NO_CHANGE
        else:
            status = VoteOutcomeStatus.APPLIED

        return VoteOutcome(
            status=status,
            http_status=403 if locked else 200,
            message=MODERATION_LOCKED_MESSAGE if locked else None,
            counted=counted,
            delta=entry.delta,
            votes_before=segment.votes,
            votes_after=votes_after,
            notification=notification,
        )

    def dispatch_notification(self, outcome: VoteOutcome) -> None:
        """Hand the outcome's event to the dispatcher, if both exist."""
        if self._dispatcher is None or outcome.notification is None:
            return
        self._dispatcher.dispatch(outcome.notification)
