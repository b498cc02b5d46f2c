"""Application services for segment voting."""

from segvote.application.services.category_consensus_service import (
    CategoryConsensusService,
)
from segvote.application.services.eligibility_gate_service import (
    EligibilityGateService,
)
from segvote.application.services.identity_service import IdentityService, get_hash
from segvote.application.services.score_adjustment_service import (
    ScoreAdjustmentService,
)
from segvote.application.services.vote_ledger_service import (
    LedgerEntry,
    VoteLedgerService,
)
from segvote.application.services.vote_notification_service import (
    VoteNotificationService,
)
from segvote.application.services.vote_submission_service import (
    VoteSubmissionService,
)

__all__: list[str] = [
    "CategoryConsensusService",
    "EligibilityGateService",
    "IdentityService",
    "LedgerEntry",
    "ScoreAdjustmentService",
    "VoteLedgerService",
    "VoteNotificationService",
    "VoteSubmissionService",
    "get_hash",
]
