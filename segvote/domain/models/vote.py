"""Vote domain model and storage codec.

Votes used to be stored as a single overloaded integer ("type") that
encoded kind, privilege and sign at once. In this codebase a vote is a
tagged value, `Vote(kind, weight, privileged)`, and the integer codes
only exist at the storage boundary through `encode_vote` / `decode_vote`.

Storage codes:

    0     plain downvote                        weight -1
    1     plain upvote                          weight +1
    2     legacy "extra" downvote               weight -4
    10    incorrect-report downvote             weight -1
    11    incorrect-report upvote               weight +1
    12    privileged incorrect-report downvote  weight -500
    13    privileged incorrect-report upvote    weight +500
    20    undo                                  weight 0
    < 0   privileged downvote, raw weight       weight == code
    >= 1000  privileged downvote that lifted the score to the floor,
             weight == code - 1000

Request codes accepted from clients are 0, 1, 10, 11 and 20.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DOWNVOTE_CODE = 0
UPVOTE_CODE = 1
LEGACY_EXTRA_DOWNVOTE_CODE = 2
INCORRECT_DOWNVOTE_CODE = 10
INCORRECT_UPVOTE_CODE = 11
PRIVILEGED_INCORRECT_DOWNVOTE_CODE = 12
PRIVILEGED_INCORRECT_UPVOTE_CODE = 13
UNDO_CODE = 20
PRIVILEGED_LIFT_OFFSET = 1000

LEGACY_EXTRA_DOWNVOTE_WEIGHT = -4
PRIVILEGED_INCORRECT_WEIGHT = 500


class VoteKind(Enum):
    """What the voter asked for."""

    UP = "up"
    DOWN = "down"
    INCORRECT_UP = "incorrect_up"
    INCORRECT_DOWN = "incorrect_down"
    UNDO = "undo"

    @property
    def family(self) -> VoteFamily | None:
        """Counter family this kind adjusts (None for undo)."""
        if self in (VoteKind.UP, VoteKind.DOWN):
            return VoteFamily.NORMAL
        if self in (VoteKind.INCORRECT_UP, VoteKind.INCORRECT_DOWN):
            return VoteFamily.INCORRECT
        return None

    @property
    def is_downvote(self) -> bool:
        return self in (VoteKind.DOWN, VoteKind.INCORRECT_DOWN)


class VoteFamily(Enum):
    """Segment counter a vote adjusts. Values are the counter column names."""

    NORMAL = "votes"
    INCORRECT = "incorrect_votes"


_REQUEST_CODES: dict[int, VoteKind] = {
    DOWNVOTE_CODE: VoteKind.DOWN,
    UPVOTE_CODE: VoteKind.UP,
    INCORRECT_DOWNVOTE_CODE: VoteKind.INCORRECT_DOWN,
    INCORRECT_UPVOTE_CODE: VoteKind.INCORRECT_UP,
    UNDO_CODE: VoteKind.UNDO,
}


@dataclass(frozen=True, eq=True)
class Vote:
    """A weighted vote.

    Attributes:
        kind: Up, down, incorrect-report up/down, or undo.
        weight: Signed contribution to the family's counter.
        privileged: Whether a VIP or the submitter cast it.
    """

    kind: VoteKind
    weight: int
    privileged: bool = False

    @property
    def family(self) -> VoteFamily | None:
        return self.kind.family


def kind_from_request_code(code: int) -> VoteKind | None:
    """Map a client-supplied vote type to a kind, None if unrecognised."""
    return _REQUEST_CODES.get(code)


def encode_vote(vote: Vote) -> int:
    """Encode a vote as its storage code."""
    if vote.kind is VoteKind.UNDO:
        return UNDO_CODE
    if vote.kind is VoteKind.UP:
        return UPVOTE_CODE
    if vote.kind is VoteKind.DOWN:
        if not vote.privileged:
            return DOWNVOTE_CODE
        if vote.weight < 0:
            return vote.weight
        return PRIVILEGED_LIFT_OFFSET + vote.weight
    if vote.kind is VoteKind.INCORRECT_UP:
        return PRIVILEGED_INCORRECT_UPVOTE_CODE if vote.privileged else INCORRECT_UPVOTE_CODE
    return (
        PRIVILEGED_INCORRECT_DOWNVOTE_CODE if vote.privileged else INCORRECT_DOWNVOTE_CODE
    )


def decode_vote(code: int) -> Vote:
    """Decode a storage code into a vote.

    Unrecognised codes decode as a weightless undo so that a stray legacy
    row never blocks a voter from voting again.
    """
    if code < 0:
        return Vote(VoteKind.DOWN, code, privileged=True)
    if code >= PRIVILEGED_LIFT_OFFSET:
        return Vote(VoteKind.DOWN, code - PRIVILEGED_LIFT_OFFSET, privileged=True)
    if code == DOWNVOTE_CODE:
        return Vote(VoteKind.DOWN, -1)
    if code == UPVOTE_CODE:
        return Vote(VoteKind.UP, 1)
    if code == LEGACY_EXTRA_DOWNVOTE_CODE:
        return Vote(VoteKind.DOWN, LEGACY_EXTRA_DOWNVOTE_WEIGHT)
    if code == INCORRECT_DOWNVOTE_CODE:
        return Vote(VoteKind.INCORRECT_DOWN, -1)
    if code == INCORRECT_UPVOTE_CODE:
        return Vote(VoteKind.INCORRECT_UP, 1)
    if code == PRIVILEGED_INCORRECT_DOWNVOTE_CODE:
        return Vote(VoteKind.INCORRECT_DOWN, -PRIVILEGED_INCORRECT_WEIGHT, privileged=True)
    if code == PRIVILEGED_INCORRECT_UPVOTE_CODE:
        return Vote(VoteKind.INCORRECT_UP, PRIVILEGED_INCORRECT_WEIGHT, privileged=True)
    return Vote(VoteKind.UNDO, 0)


@dataclass(frozen=True)
class VoteRecord:
    """Stored ledger row: one per (segment, voter).

    Attributes:
        segment_id: Segment voted on.
        voter_id: Per-segment pseudonymous voter id.
        hashed_ip: Hashed network address of the voter.
        vote_type: Storage code (see module docstring).
    """

    segment_id: str
    voter_id: str
    hashed_ip: str
    vote_type: int

    @property
    def vote(self) -> Vote:
        return decode_vote(self.vote_type)
