"""Eligibility gate.

Short-circuiting checks applied before any mutation. In request order:

1. Malformed request or unknown vote type            -> 400, raised
   Segment does not exist                             -> 400, raised
2. Moderation lock (not VIP, not a plain upvote)      -> 403, acknowledged
3. Suppressed segment (score votes, not VIP/owner)
   plain upvote                                       -> 403, raised
   plain downvote                                     -> 200, redundant no-op
4. Active moderator warnings                          -> 403, raised
5. Score-vote eligibility (unless VIP): prior submission, not
   shadow-banned, not upvoting own segment, no other voter id from the
   same address on this segment. Failure makes the vote silently
   ineligible: the caller sees success, nothing is written.

The lock check does not short-circuit: the request is still resolved so
that a redundant downvote or a suspension wins over the lock message.
"""

from __future__ import annotations

import time

from structlog import get_logger

from segvote.application.ports.vote_store import VoteRepositoryProtocol
from segvote.application.ports.vote_submission import VoteRequest
from segvote.config.vote_config import VoteConfig
from segvote.domain.errors import (
    CategoryNotFoundError,
    CategoryNotVotableError,
    MalformedVoteRequestError,
    SuppressedSegmentUpvoteError,
    UnknownVoteTypeError,
    WarningSuspensionError,
)
from segvote.domain.models import (
    CategoryActionType,
    Segment,
    VoteKind,
    VoterIdentity,
    active_warning_cutoff,
    category_kind,
    kind_from_request_code,
)

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class EligibilityGateService:
    """Decides whether a vote may be applied at all."""

    def __init__(self, config: VoteConfig) -> None:
        self._config = config

    def validate_request(self, request: VoteRequest) -> VoteKind | None:
        """Check required fields and decode the vote type.

        Returns:
            The requested VoteKind for score votes, None for category votes.

        Raises:
            MalformedVoteRequestError: Segment id, user id, or both vote
                type and category are missing.
            UnknownVoteTypeError: The vote type code is not recognised.
        """
        if not request.segment_id:
            raise MalformedVoteRequestError("missing segment id")
        if not request.raw_user_id:
            raise MalformedVoteRequestError("missing user id")
        if request.vote_type is None and request.category is None:
            raise MalformedVoteRequestError("missing vote type or category")
        if request.vote_type is None:
            return None

        kind = kind_from_request_code(request.vote_type)
        if kind is None:
            raise UnknownVoteTypeError(request.vote_type)
        return kind

    def validate_category(self, category: str) -> None:
        """Check that a category can be voted into.

        Raises:
            CategoryNotFoundError: Category is not configured.
            CategoryNotVotableError: Category is not skippable.
        """
        if category not in self._config.category_list:
            raise CategoryNotFoundError(category)
        if category_kind(category) is not CategoryActionType.SKIPPABLE:
            raise CategoryNotVotableError(category)

    async def is_moderation_locked(
        self,
        repo: VoteRepositoryProtocol,
        segment: Segment,
        identity: VoterIdentity,
        kind: VoteKind | None,
    ) -> bool:
        """Check whether a moderator lock blocks this vote.

        Applies to non-VIP voters casting anything but a plain upvote,
        category votes (kind None) included.
        """
        if identity.is_vip or kind is VoteKind.UP:
            return False
        if segment.locked:
            return True
        return await repo.is_video_category_locked(
            segment.video_id,
            segment.category,
            segment.service,
        )

    def is_redundant_downvote(
        self,
        segment: Segment,
        identity: VoterIdentity,
        kind: VoteKind,
    ) -> bool:
        """Apply the suppressed-segment rule to a score vote.

        Returns:
            True if the vote is a downvote on an already suppressed segment.

        Raises:
            SuppressedSegmentUpvoteError: Regular voter upvoting a suppressed
                segment.
        """
        if identity.is_privileged:
            return False
        if not segment.is_suppressed(self._config.suppressed_vote_threshold):
            return False
        if kind is VoteKind.UP:
            logger.info(
                "suppressed_segment_upvote_rejected",
                segment_id=segment.segment_id,
                votes=segment.votes,
            )
            raise SuppressedSegmentUpvoteError(segment.segment_id, segment.votes)
        return kind is VoteKind.DOWN

    async def check_warnings(
        self,
        repo: VoteRepositoryProtocol,
        user_id: str,
        now_ms: int | None = None,
    ) -> None:
        """Reject voters with too many active warnings.

        Raises:
            WarningSuspensionError: Active warnings reach the configured limit.
        """
        cutoff = active_warning_cutoff(
            _now_ms() if now_ms is None else now_ms,
            self._config.hours_after_warning_expires,
        )
        active = await repo.count_active_warnings(user_id, cutoff)
        if active >= self._config.max_active_warnings:
            logger.info(
                "vote_rejected_active_warnings",
                user_id=user_id,
                active_warnings=active,
            )
            raise WarningSuspensionError(active, self._config.max_active_warnings)

    async def is_eligible(
        self,
        repo: VoteRepositoryProtocol,
        identity: VoterIdentity,
        segment_id: str,
        new_weight: int,
    ) -> bool:
        """Decide whether a score vote counts.

        VIPs always count. Everyone else needs a prior submission, must not
        be shadow-banned, must not be upvoting their own segment, and must
        be the only voter id seen on this segment from their address.
        """
        if identity.is_vip:
            return True

        log = logger.bind(segment_id=segment_id, user_id=identity.user_id)
        if identity.is_own_submission and new_weight > 0:
            log.debug("vote_ineligible", reason="own_submission_upvote")
            return False
        if not await repo.has_submissions(identity.user_id):
            log.debug("vote_ineligible", reason="no_submissions")
            return False
        if await repo.is_shadow_banned(identity.user_id):
            log.debug("vote_ineligible", reason="shadow_banned")
            return False
        if await repo.has_other_vote_from_ip(
            segment_id, identity.hashed_ip, identity.voter_id
        ):
            log.debug("vote_ineligible", reason="duplicate_address")
            return False
        return True
