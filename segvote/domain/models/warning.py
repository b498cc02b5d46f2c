"""Moderator warning model."""

from __future__ import annotations

from dataclasses import dataclass

MILLISECONDS_IN_HOUR = 3_600_000


@dataclass(frozen=True)
class ModeratorWarning:
    """A time-scoped penalty issued by a moderator.

    A warning counts against a user while it is enabled and was issued
    within the configured expiry window.

    Attributes:
        user_id: Pseudonymous id of the warned user.
        issuer_user_id: Pseudonymous id of the issuing moderator.
        issue_time: Epoch milliseconds when the warning was issued.
        enabled: False once a moderator lifts the warning.
        reason: Free-text reason shown to the user.
    """

    user_id: str
    issuer_user_id: str
    issue_time: int
    enabled: bool = True
    reason: str = ""

    def is_active(self, now_ms: int, expiry_hours: int) -> bool:
        """Return True if the warning still gates votes at now_ms."""
        return self.enabled and self.issue_time > active_warning_cutoff(
            now_ms, expiry_hours
        )


def active_warning_cutoff(now_ms: int, expiry_hours: int) -> int:
    """Earliest issue time (exclusive) of a warning that is still active."""
    return now_ms - expiry_hours * MILLISECONDS_IN_HOUR
