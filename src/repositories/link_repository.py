"""Persistence for links."""
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.link import Link


class LinkRepository:
    """Link queries and writes on a request-scoped session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, link_id: UUID) -> Link | None:
        """Fetch a link by primary key, whoever owns it."""
        return await self._session.get(Link, link_id)

    async def list_for_user(self, user_id: UUID, active_only: bool = False) -> list[Link]:
        """All of a user's links ordered by display_order."""
        query = select(Link).where(Link.user_id == user_id)
        if active_only:
            query = query.where(Link.is_active.is_(True))
        query = query.order_by(Link.display_order, Link.created_at)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: UUID) -> int:
        """Number of links a user has."""
        result = await self._session.execute(
            select(func.count()).select_from(Link).where(Link.user_id == user_id),
        )
        return result.scalar_one()

    async def max_display_order(self, user_id: UUID) -> int | None:
        """Highest display_order among a user's links, None when they have none."""
        result = await self._session.execute(
            select(func.max(Link.display_order)).where(Link.user_id == user_id),
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        user_id: UUID,
        platform: str,
        url: str,
        title: str,
        display_order: int,
        is_active: bool = True,
    ) -> Link:
        """Insert a link."""
        link = Link(
            user_id=user_id,
            platform=platform,
            url=url,
            title=title,
            display_order=display_order,
            is_active=is_active,
        )
        self._session.add(link)
        await self._session.flush()
        await self._session.refresh(link)
        return link

    async def update(self, link: Link, **fields: Any) -> Link:
        """Apply field changes to a link."""
        for name, value in fields.items():
            setattr(link, name, value)
        await self._session.flush()
        await self._session.refresh(link)
        return link

    async def delete(self, link: Link) -> None:
        """Delete a link."""
        await self._session.delete(link)
        await self._session.flush()

    async def reorder(self, user_id: UUID, orders: Mapping[UUID, int]) -> list[Link]:
        """
        Set display_order for several links in one transaction.

        Only links owned by `user_id` are touched. Nothing is committed here;
        if the caller's commit fails, every position rolls back together.

        Returns:
            The user's links in their new order.
        """
        result = await self._session.execute(
            select(Link).where(Link.user_id == user_id, Link.id.in_(list(orders))),
        )
        for link in result.scalars().all():
            link.display_order = orders[link.id]
        await self._session.flush()
        return await self.list_for_user(user_id)

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._session.commit()
