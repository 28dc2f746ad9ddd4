"""Pydantic schemas for link endpoints and the links cache entry."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from schemas.validators import strip_whitespace

MAX_TITLE_LENGTH = 200


class LinkRead(BaseModel):
    """A link as its owner sees it (also the links cache entry element)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    platform: str
    url: str
    title: str
    display_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PublicLink(BaseModel):
    """A link as shown on the public profile page."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    platform: str
    url: str
    title: str
    display_order: int


class LinkCreate(BaseModel):
    """Schema for creating a link."""

    platform: str = Field(..., min_length=1, max_length=50)
    url: HttpUrl
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    is_active: bool = True

    @field_validator("platform", "title", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim before the length checks run."""
        return strip_whitespace(v)

    @field_validator("platform")
    @classmethod
    def normalize_platform(cls, v: str) -> str:
        """Platform names are stored lower-case."""
        return v.lower()


class LinkUpdate(BaseModel):
    """Partial link update. Omitted fields are left unchanged."""

    platform: str | None = Field(default=None, min_length=1, max_length=50)
    url: HttpUrl | None = None
    title: str | None = Field(default=None, min_length=1, max_length=MAX_TITLE_LENGTH)
    is_active: bool | None = None

    @field_validator("platform", "title", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim before the length checks run."""
        return strip_whitespace(v)

    @field_validator("platform")
    @classmethod
    def normalize_platform(cls, v: str | None) -> str | None:
        """Platform names are stored lower-case."""
        return v.lower() if v is not None else v


class LinkOrderItem(BaseModel):
    """New position for one link."""

    id: UUID
    display_order: int = Field(..., ge=1)


class LinkReorder(BaseModel):
    """Batch of new positions; applied atomically."""

    links: list[LinkOrderItem] = Field(..., min_length=1)

    @field_validator("links")
    @classmethod
    def unique_ids(cls, v: list[LinkOrderItem]) -> list[LinkOrderItem]:
        """Each link may appear only once."""
        ids = [item.id for item in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each link may appear only once")
        return v
