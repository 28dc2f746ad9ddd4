"""Persistence for email verification tokens."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.email_verification_token import EmailVerificationToken


class VerificationTokenRepository:
    """Email verification token storage."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user_id: UUID, token: str, expires_at: datetime) -> EmailVerificationToken:
        """Store a new token for a user."""
        record = EmailVerificationToken(user_id=user_id, token=token, expires_at=expires_at)
        self._session.add(record)
        await self._session.flush()
        return record

    async def get_valid(self, token: str, now: datetime) -> EmailVerificationToken | None:
        """The token record if it exists and has not expired."""
        result = await self._session.execute(
            select(EmailVerificationToken).where(
                EmailVerificationToken.token == token,
                EmailVerificationToken.expires_at > now,
            ),
        )
        return result.scalar_one_or_none()

    async def delete_for_user(self, user_id: UUID) -> None:
        """Remove every outstanding token for a user."""
        await self._session.execute(
            delete(EmailVerificationToken).where(EmailVerificationToken.user_id == user_id),
        )
