"""Persistence for the platform catalogue."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.platform import Platform


class PlatformRepository:
    """Read access to configured platforms."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[Platform]:
        """Every configured platform, by name."""
        result = await self._session.execute(select(Platform).order_by(Platform.name))
        return list(result.scalars().all())
