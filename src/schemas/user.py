"""Pydantic schemas for profile endpoints and profile cache entries."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from schemas.link import PublicLink
from schemas.validators import strip_whitespace, validate_and_normalize_username


class UserProfile(BaseModel):
    """
    The owner's view of their account.

    Also the shape stored in the user-profile cache entry, so it must never
    grow a password field.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    first_name: str
    last_name: str
    bio: str | None
    avatar_url: str | None
    is_active: bool
    email_verified: bool
    last_login_at: datetime | None
    created_at: datetime
    updated_at: datetime


class PublicProfile(BaseModel):
    """What anyone can see at /public/{username}; cached in the public-profile entry."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    first_name: str
    last_name: str
    bio: str | None
    avatar_url: str | None
    links: list[PublicLink]


class ProfileUpdate(BaseModel):
    """Partial profile update. Omitted fields are left unchanged."""

    username: str | None = Field(default=None, min_length=3, max_length=50)
    bio: str | None = Field(default=None, max_length=1000)
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str | None) -> str | None:
        """Lower-case and validate the username."""
        if v is None:
            return v
        return validate_and_normalize_username(v)

    @field_validator("bio", "first_name", "last_name", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim before the length checks run."""
        return strip_whitespace(v)


class AvatarUpdate(BaseModel):
    """New avatar location (the image itself is hosted elsewhere)."""

    avatar_url: HttpUrl

    @property
    def url(self) -> str:
        """Avatar URL as a plain string."""
        return str(self.avatar_url)


class UsernameAvailability(BaseModel):
    """Result of a username availability check."""

    username: str
    available: bool
