"""Persistence for password reset tokens."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.password_reset_token import PasswordResetToken


class PasswordResetTokenRepository:
    """Password reset token storage."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user_id: UUID, token: str, expires_at: datetime) -> PasswordResetToken:
        """Store a new token for a user."""
        record = PasswordResetToken(user_id=user_id, token=token, expires_at=expires_at)
        self._session.add(record)
        await self._session.flush()
        return record

    async def get_by_token(self, token: str) -> PasswordResetToken | None:
        """The token record whether or not it is used or expired."""
        result = await self._session.execute(
            select(PasswordResetToken).where(PasswordResetToken.token == token),
        )
        return result.scalar_one_or_none()

    async def mark_used(self, token_id: UUID, used_at: datetime) -> None:
        """Record when a token was consumed."""
        await self._session.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token_id)
            .values(used_at=used_at),
        )

    async def delete_for_user(self, user_id: UUID, keep_id: UUID | None = None) -> None:
        """Remove a user's tokens, except `keep_id` when given."""
        stmt = delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        if keep_id is not None:
            stmt = stmt.where(PasswordResetToken.id != keep_id)
        await self._session.execute(stmt)
