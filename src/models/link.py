"""Link model: one entry on a user's link-in-bio page."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.user import User


class Link(Base, UUIDv7Mixin, TimestampMixin):
    """A link to an external platform, ordered by ``display_order``."""

    __tablename__ = "links"
    __mapper_args__ = {"eager_defaults": True}  # noqa: RUF012

    # id provided by UUIDv7Mixin
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    platform: Mapped[str] = mapped_column(
        String(50),
        comment="Platform name, e.g. 'instagram'; matches platforms.name",
    )
    url: Mapped[str] = mapped_column(String(2048))
    title: Mapped[str] = mapped_column(String(200))
    display_order: Mapped[int] = mapped_column(Integer, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())

    user: Mapped["User"] = relationship(back_populates="links")
