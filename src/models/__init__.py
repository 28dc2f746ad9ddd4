"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.email_verification_token import EmailVerificationToken
from models.link import Link
from models.password_reset_token import PasswordResetToken
from models.platform import Platform
from models.user import User

__all__ = [
    "Base",
    "EmailVerificationToken",
    "Link",
    "PasswordResetToken",
    "Platform",
    "TimestampMixin",
    "UUIDv7Mixin",
    "User",
]
