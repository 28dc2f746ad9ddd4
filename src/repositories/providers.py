"""FastAPI dependencies that bind repositories to the request's session."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_async_session
from repositories.link_repository import LinkRepository
from repositories.password_reset_token_repository import PasswordResetTokenRepository
from repositories.platform_repository import PlatformRepository
from repositories.user_repository import UserRepository
from repositories.verification_token_repository import VerificationTokenRepository


def get_user_repository(db: AsyncSession = Depends(get_async_session)) -> UserRepository:
    """User repository for this request."""
    return UserRepository(db)


def get_link_repository(db: AsyncSession = Depends(get_async_session)) -> LinkRepository:
    """Link repository for this request."""
    return LinkRepository(db)


def get_platform_repository(
    db: AsyncSession = Depends(get_async_session),
) -> PlatformRepository:
    """Platform repository for this request."""
    return PlatformRepository(db)


def get_verification_token_repository(
    db: AsyncSession = Depends(get_async_session),
) -> VerificationTokenRepository:
    """Verification token repository for this request."""
    return VerificationTokenRepository(db)


def get_password_reset_token_repository(
    db: AsyncSession = Depends(get_async_session),
) -> PasswordResetTokenRepository:
    """Password reset token repository for this request."""
    return PasswordResetTokenRepository(db)
