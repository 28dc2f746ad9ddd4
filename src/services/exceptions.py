"""
Business errors raised by the service layer.

Every error carries the HTTP status it maps to and a stable machine-readable
``code``; the API layer turns them into responses without inspecting
tracebacks. Infrastructure failures (database errors) are not
part of this hierarchy.
"""


class ServiceError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code = 400
    code = "bad_request"

    def __init__(self, message: str) -> None:
        self.message = message
        self.headers: dict[str, str] | None = None
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


class DuplicateUserError(ServiceError):
    """Raised when registering an email that already has an account."""

    status_code = 409
    code = "duplicate_user"

    def __init__(self) -> None:
        super().__init__("User already exists")


class UsernameTakenError(ServiceError):
    """Raised when a username is already used by another account."""

    status_code = 409
    code = "username_taken"

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username '{username}' is not available")


class InvalidCredentialsError(ServiceError):
    """
    Raised for an unknown email or a wrong password.

    The message is identical in both cases so responses never reveal whether
    an email is registered.
    """

    status_code = 401
    code = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class AccountInactiveError(ServiceError):
    """Raised when a deactivated account tries to sign in."""

    status_code = 403
    code = "account_inactive"

    def __init__(self) -> None:
        super().__init__("Account is inactive")


class EmailNotVerifiedError(ServiceError):
    """Raised on login when email verification is enforced and pending."""

    status_code = 403
    code = "email_not_verified"

    def __init__(self) -> None:
        super().__init__("Email is not verified")


class InvalidVerificationTokenError(ServiceError):
    """Raised when an email verification token is unknown or expired."""

    status_code = 400
    code = "invalid_verification_token"

    def __init__(self) -> None:
        super().__init__("Verification token is invalid or has expired")


class InvalidResetTokenError(ServiceError):
    """Raised when a password reset token does not exist."""

    status_code = 400
    code = "invalid_reset_token"

    def __init__(self) -> None:
        super().__init__("Invalid reset link")


class ResetTokenUsedError(ServiceError):
    """Raised when a password reset token has already been consumed."""

    status_code = 400
    code = "reset_token_used"

    def __init__(self) -> None:
        super().__init__("This reset link has already been used")


class ResetTokenExpiredError(ServiceError):
    """Raised when a password reset token is past its expiry."""

    status_code = 400
    code = "reset_token_expired"

    def __init__(self) -> None:
        super().__init__("This reset link has expired")


# --------------------------------------------------------------------------- #
# Resources
# --------------------------------------------------------------------------- #


class UserNotFoundError(ServiceError):
    """Raised when a user (by id or username) does not exist."""

    status_code = 404
    code = "user_not_found"

    def __init__(self) -> None:
        super().__init__("User not found")


class LinkNotFoundError(ServiceError):
    """Raised when a link id does not exist."""

    status_code = 404
    code = "link_not_found"

    def __init__(self) -> None:
        super().__init__("Link not found")


class ForbiddenError(ServiceError):
    """Raised when a user touches a resource they do not own."""

    status_code = 403
    code = "forbidden"


class LinkLimitExceededError(ServiceError):
    """Raised when a user already has the maximum number of links."""

    code = "link_limit_exceeded"

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"You have reached the maximum number of links ({limit})")


class InvalidLinkUrlError(ServiceError):
    """Raised when a link URL does not match its platform's URL pattern."""

    code = "invalid_link_url"

    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"URL is not a valid {platform} URL")


class UnknownPlatformError(ServiceError):
    """Raised when a link names a platform that is not configured."""

    code = "unknown_platform"

    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"Unknown platform: {platform}")


class InvalidReorderError(ServiceError):
    """Raised when a reorder request references links the user does not own."""

    code = "invalid_reorder"
