"""Pydantic schemas for authentication endpoints."""
from pydantic import BaseModel, EmailStr, Field, field_validator

from schemas.user import UserProfile
from schemas.validators import (
    strip_whitespace,
    validate_and_normalize_username,
    validate_password,
)


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    username: str = Field(..., min_length=3, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=1000)
    avatar_url: str | None = Field(default=None, max_length=500)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are compared case-insensitively."""
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Enforce password length limits."""
        return validate_password(v)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        """Lower-case and validate the username."""
        return validate_and_normalize_username(v)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        """Trim before the length checks run."""
        return strip_whitespace(v)


class LoginRequest(BaseModel):
    """Schema for logging in."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are compared case-insensitively."""
        return v.strip().lower()


class VerifyEmailRequest(BaseModel):
    """Token from the verification email."""

    token: str = Field(..., min_length=1, max_length=128)


class ResendVerificationRequest(BaseModel):
    """Request another verification email."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are compared case-insensitively."""
        return v.strip().lower()


class AuthResponse(BaseModel):
    """Body returned by register and login. Tokens travel in cookies."""

    user: UserProfile


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ForgotPasswordRequest(BaseModel):
    """Request a password reset link."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are compared case-insensitively."""
        return v.strip().lower()


class ResetTokenRequest(BaseModel):
    """Token from the password reset email."""

    token: str = Field(..., min_length=1, max_length=128)


class ResetPasswordRequest(BaseModel):
    """Token from the password reset email and the new password."""

    token: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=8)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Enforce password length limits."""
        return validate_password(v)
