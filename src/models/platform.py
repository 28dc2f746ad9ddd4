"""Platform model: the external services a link may point to."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class Platform(Base, TimestampMixin):
    """Supported platform and the URL pattern its links must match."""

    __tablename__ = "platforms"
    __mapper_args__ = {"eager_defaults": True}  # noqa: RUF012

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(100))
    url_pattern: Mapped[str] = mapped_column(
        String(500),
        comment="Case-insensitive regex a link URL must match",
    )
