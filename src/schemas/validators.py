"""Shared validation functions for Pydantic schemas."""
import re

from core.passwords import MAX_PASSWORD_BYTES

# Username format: lowercase letters, digits, underscores, dots and hyphens
# (must start with a letter or digit). Usernames appear in public URLs.
USERNAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_.-]*$")

MIN_PASSWORD_LENGTH = 8


def validate_and_normalize_username(username: str) -> str:
    """
    Normalize and validate a username.

    Args:
        username: The username to validate.

    Returns:
        The normalized username (lowercase, trimmed).

    Raises:
        ValueError: If the username has an invalid format.
    """
    normalized = username.strip().lower()
    if not USERNAME_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid username: '{normalized}'. "
            "Use lowercase letters, numbers, dots, hyphens and underscores only.",
        )
    return normalized


def validate_password(password: str) -> str:
    """
    Check password length constraints.

    bcrypt ignores everything after 72 bytes, so longer passwords are rejected
    instead of being silently truncated.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


def strip_whitespace(value: object) -> object:
    """
    Trim surrounding whitespace from strings, leaving other input untouched.

    Used as a ``mode="before"`` validator so length constraints apply to the
    trimmed value.
    """
    return value.strip() if isinstance(value, str) else value
