"""Vote ledger.

Keeps one vote record per (segment, voter) and computes what a new vote
changes relative to the one it replaces. A repeated vote never stacks:

    delta = new_weight - old_weight

so voting the same way twice nets zero and switching from a downvote to
an upvote nets +2.

Weights:
- plain up / down: +1 / -1
- privileged (VIP or submitter) plain down: -(votes + 2 - old_weight),
  which drives the score to exactly -2 from any starting point
- incorrect-report up / down: +1 / -1, privileged +500 / -500
- undo: 0, applied to the counter family of the vote it undoes
"""

from __future__ import annotations

from dataclasses import dataclass, field

from structlog import get_logger

from segvote.application.ports.vote_store import VoteRepositoryProtocol
from segvote.domain.models import (
    Segment,
    Vote,
    VoteFamily,
    VoteKind,
    VoteRecord,
    VoterIdentity,
    encode_vote,
)
from segvote.domain.models.vote import PRIVILEGED_INCORRECT_WEIGHT

logger = get_logger(__name__)

# Score a privileged downvote lands the segment on
PRIVILEGED_DOWNVOTE_FLOOR = -2


@dataclass(frozen=True)
class LedgerEntry:
    """A resolved vote relative to the voter's previous record.

    Attributes:
        segment_id: Segment voted on.
        vote: The new vote.
        previous: Stored record being replaced, None on a first vote.
        storage_code: Code the new vote is persisted as.
        counter_deltas: Change per counter family. When the previous vote
            belongs to another family its weight is reversed there.
    """

    segment_id: str
    vote: Vote
    previous: VoteRecord | None
    storage_code: int
    counter_deltas: dict[VoteFamily, int] = field(default_factory=dict)

    @property
    def kind(self) -> VoteKind:
        return self.vote.kind

    @property
    def new_weight(self) -> int:
        return self.vote.weight

    @property
    def old_weight(self) -> int:
        return self.previous.vote.weight if self.previous is not None else 0

    @property
    def delta(self) -> int:
        return self.new_weight - self.old_weight

    @property
    def family(self) -> VoteFamily:
        """Counter family the vote is reported against."""
        if self.vote.family is not None:
            return self.vote.family
        if self.previous is not None and self.previous.vote.family is not None:
            return self.previous.vote.family
        return VoteFamily.NORMAL

    @property
    def changes_counters(self) -> bool:
        return any(self.counter_deltas.values())

    @property
    def is_noop(self) -> bool:
        """True when persisting the entry would change nothing."""
        if self.changes_counters:
            return False
        if self.previous is None:
            return self.kind is VoteKind.UNDO
        return self.previous.vote_type == self.storage_code


class VoteLedgerService:
    """Resolves vote weights and maintains the per-voter ledger."""

    def resolve_weights(
        self,
        kind: VoteKind,
        previous: VoteRecord | None,
        segment: Segment,
        privileged: bool,
    ) -> LedgerEntry:
        """Compute the new vote and its effect on the segment counters.

        Args:
            kind: What the voter asked for.
            previous: The voter's stored record on this segment, if any.
            segment: Segment as read in this unit of work.
            privileged: Whether the voter is a VIP or the submitter.

        Returns:
            LedgerEntry with the storage code and per-family counter deltas.
        """
        old_vote = previous.vote if previous is not None else None
        vote = self._weigh(kind, old_vote, segment, privileged)

        deltas: dict[VoteFamily, int] = {}
        if old_vote is not None and old_vote.family is not None and old_vote.weight:
            deltas[old_vote.family] = deltas.get(old_vote.family, 0) - old_vote.weight
        if vote.family is not None:
            deltas[vote.family] = deltas.get(vote.family, 0) + vote.weight

        return LedgerEntry(
            segment_id=segment.segment_id,
            vote=vote,
            previous=previous,
            storage_code=encode_vote(vote),
            counter_deltas=deltas,
        )

    @staticmethod
    def _weigh(
        kind: VoteKind,
        old_vote: Vote | None,
        segment: Segment,
        privileged: bool,
    ) -> Vote:
        if kind is VoteKind.UNDO:
            return Vote(VoteKind.UNDO, 0)
        if kind is VoteKind.UP:
            return Vote(VoteKind.UP, 1)
        if kind is VoteKind.DOWN:
            if not privileged:
                return Vote(VoteKind.DOWN, -1)
            old_normal = (
                old_vote.weight
                if old_vote is not None and old_vote.family is VoteFamily.NORMAL
                else 0
            )
            weight = PRIVILEGED_DOWNVOTE_FLOOR - (segment.votes - old_normal)
            return Vote(VoteKind.DOWN, weight, privileged=True)

        sign = 1 if kind is VoteKind.INCORRECT_UP else -1
        if privileged:
            return Vote(kind, sign * PRIVILEGED_INCORRECT_WEIGHT, privileged=True)
        return Vote(kind, sign)

    async def record(
        self,
        repo: VoteRepositoryProtocol,
        identity: VoterIdentity,
        entry: LedgerEntry,
    ) -> None:
        """Persist the entry as the voter's current record."""
        await repo.upsert_vote_record(
            VoteRecord(
                segment_id=entry.segment_id,
                voter_id=identity.voter_id,
                hashed_ip=identity.hashed_ip,
                vote_type=entry.storage_code,
            )
        )
        logger.debug(
            "vote_recorded",
            segment_id=entry.segment_id,
            kind=entry.kind.value,
            storage_code=entry.storage_code,
            delta=entry.delta,
        )
