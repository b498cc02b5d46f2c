"""Identity and privilege resolution.

Derives the pseudonymous identifiers a vote is recorded under and the
privilege flags that decide its weight:

- user_id   = hash(raw_user_id), stable across every action of a user
- voter_id  = hash(raw_user_id + segment_id), stable per user and segment
  so one user's votes cannot be correlated across segments
- hashed_ip = hash(client_ip + global_salt)

The hash is SHA-256 hex digest applied repeatedly, which keeps the
identifiers compatible with those already stored.
"""

from __future__ import annotations

import hashlib
from dataclasses import replace

from structlog import get_logger

from segvote.application.ports.privilege_registry import PrivilegeRegistryProtocol
from segvote.config.vote_config import VoteConfig
from segvote.domain.models import Segment, VoterIdentity

logger = get_logger(__name__)


def get_hash(value: str, iterations: int = 5000) -> str:
    """Hash value with SHA-256 iterations times.

    Args:
        value: Text to hash.
        iterations: Number of rounds; each round hashes the previous hex digest.

    Returns:
        Hex digest, or an empty string when iterations is not positive.
    """
    if iterations <= 0:
        return ""
    digest = value
    for _ in range(iterations):
        digest = hashlib.sha256(digest.encode("utf-8")).hexdigest()
    return digest


class IdentityService:
    """Resolves voter identities. Pure lookups, no side effects."""

    def __init__(
        self,
        privilege_registry: PrivilegeRegistryProtocol,
        config: VoteConfig,
    ) -> None:
        self._privilege_registry = privilege_registry
        self._config = config

    def hash(self, value: str) -> str:
        return get_hash(value, self._config.hash_iterations)

    async def resolve(
        self,
        raw_user_id: str,
        segment_id: str,
        client_ip: str,
    ) -> VoterIdentity:
        """Derive pseudonymous ids and VIP status for a vote request.

        Ownership is not known until the segment is loaded, see
        with_segment().

        Args:
            raw_user_id: Private user id as sent by the client.
            segment_id: Segment being voted on.
            client_ip: Client network address.

        Returns:
            VoterIdentity with is_own_submission False.
        """
        user_id = self.hash(raw_user_id)
        identity = VoterIdentity(
            user_id=user_id,
            voter_id=self.hash(raw_user_id + segment_id),
            hashed_ip=self.hash(client_ip + self._config.global_salt),
            is_vip=await self.is_vip(user_id),
        )
        logger.debug(
            "voter_identity_resolved",
            segment_id=segment_id,
            user_id=user_id,
            is_vip=identity.is_vip,
        )
        return identity

    async def is_vip(self, user_id: str) -> bool:
        return await self._privilege_registry.is_privileged(user_id)

    @staticmethod
    def is_own_submission(user_id: str, segment: Segment) -> bool:
        return segment.user_id == user_id

    def with_segment(self, identity: VoterIdentity, segment: Segment) -> VoterIdentity:
        """Return identity with ownership of segment filled in."""
        return replace(
            identity,
            is_own_submission=self.is_own_submission(identity.user_id, segment),
        )
