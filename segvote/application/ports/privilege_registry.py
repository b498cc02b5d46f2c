"""Privilege registry protocol.

Answers whether a pseudonymous user id belongs to a VIP.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol


class PrivilegeRegistryProtocol(Protocol):
    """Lookup of privileged (VIP) users."""

    @abstractmethod
    async def is_privileged(self, user_id: str) -> bool:
        """Check whether user_id is in the VIP registry.

        Args:
            user_id: Hashed, pseudonymous user id.

        Returns:
            True if the user is a VIP.
        """
        ...
