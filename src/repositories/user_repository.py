"""Persistence for users."""
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User


class UserRepository:
    """
    User queries and writes on a request-scoped session.

    Writes flush but do not commit; the service commits once the whole
    use-case has succeeded.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Fetch a user by primary key."""
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive)."""
        result = await self._session.execute(
            select(User).where(User.email == email.strip().lower()),
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Fetch a user by username (case-insensitive)."""
        result = await self._session.execute(
            select(User).where(User.username == username.strip().lower()),
        )
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        """Whether an account already uses this email."""
        result = await self._session.execute(
            select(exists().where(User.email == email.strip().lower())),
        )
        return bool(result.scalar())

    async def exists_by_username(self, username: str) -> bool:
        """Whether an account already uses this username."""
        result = await self._session.execute(
            select(exists().where(User.username == username.strip().lower())),
        )
        return bool(result.scalar())

    async def create(
        self,
        *,
        email: str,
        username: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        bio: str | None = None,
        avatar_url: str | None = None,
    ) -> User:
        """Insert a new user and return it with server defaults populated."""
        user = User(
            email=email.strip().lower(),
            username=username.strip().lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            bio=bio,
            avatar_url=avatar_url,
        )
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def update(self, user: User, **fields: Any) -> User:
        """Apply field changes to a user."""
        for name, value in fields.items():
            setattr(user, name, value)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def touch_last_login(self, user_id: UUID, when: datetime) -> None:
        """Record a successful login."""
        await self._session.execute(
            update(User).where(User.id == user_id).values(last_login_at=when),
        )

    async def delete(self, user: User) -> None:
        """Delete a user; links and verification tokens cascade."""
        await self._session.delete(user)
        await self._session.flush()

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        await self._session.rollback()
