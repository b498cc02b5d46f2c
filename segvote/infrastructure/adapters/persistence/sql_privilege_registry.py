"""SQL implementation of PrivilegeRegistryProtocol (vip_users table)."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class SqlPrivilegeRegistry:
    """VIP lookup against the vip_users table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def is_privileged(self, user_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT COUNT(*) FROM vip_users WHERE user_id = :user_id"),
                {"user_id": user_id},
            )
            return (result.scalar() or 0) > 0
