"""Password reset token model."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.user import User


class PasswordResetToken(Base, UUIDv7Mixin, TimestampMixin):
    """
    Single-use token mailed to a user who forgot their password.

    A consumed token keeps its row with ``used_at`` set so a second attempt
    can be told apart from an unknown token.
    """

    __tablename__ = "password_reset_tokens"
    __mapper_args__ = {"eager_defaults": True}  # noqa: RUF012

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        comment="64 hex chars from secrets.token_hex(32)",
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    user: Mapped["User"] = relationship(back_populates="password_reset_tokens")
