"""In-memory stub for PrivilegeRegistryProtocol."""

from __future__ import annotations


class PrivilegeRegistryStub:
    """VIP registry backed by a set of user ids."""

    def __init__(self, vip_user_ids: set[str] | None = None) -> None:
        self._vip_user_ids: set[str] = set(vip_user_ids or ())

    async def is_privileged(self, user_id: str) -> bool:
        return user_id in self._vip_user_ids

    def add_vip(self, user_id: str) -> None:
        self._vip_user_ids.add(user_id)

    def remove_vip(self, user_id: str) -> None:
        self._vip_user_ids.discard(user_id)

    def clear(self) -> None:
        self._vip_user_ids.clear()
