"""Domain models for segment voting."""

from segvote.domain.models.category import (
    CategoryActionType,
    CategoryBallot,
    category_kind,
)
from segvote.domain.models.segment import DEFAULT_SERVICE, Segment
from segvote.domain.models.vote import (
    Vote,
    VoteFamily,
    VoteKind,
    VoteRecord,
    decode_vote,
    encode_vote,
    kind_from_request_code,
)
from segvote.domain.models.voter import VoterIdentity
from segvote.domain.models.warning import ModeratorWarning, active_warning_cutoff

__all__: list[str] = [
    "DEFAULT_SERVICE",
    "CategoryActionType",
    "CategoryBallot",
    "Segment",
    "Vote",
    "VoteFamily",
    "VoteKind",
    "VoteRecord",
    "VoterIdentity",
    "ModeratorWarning",
    "active_warning_cutoff",
    "category_kind",
    "decode_vote",
    "encode_vote",
    "kind_from_request_code",
]
