"""Voter identity model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class VoterIdentity:
    """Pseudonymous identity of a voter for one vote request.

    Attributes:
        user_id: Stable pseudonymous user id, shared across all actions.
        voter_id: Per-segment voter id; cannot be correlated across segments.
        hashed_ip: Salted hash of the client network address.
        is_vip: Whether the user is in the privileged-user registry.
        is_own_submission: Whether the user submitted the segment.
    """

    user_id: str
    voter_id: str
    hashed_ip: str
    is_vip: bool = False
    is_own_submission: bool = False

    @property
    def is_privileged(self) -> bool:
        """VIPs and submitters cast privileged votes on a segment."""
        return self.is_vip or self.is_own_submission

