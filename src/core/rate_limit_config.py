"""
Rate limit policy: buckets, limits per window, and the result type.

Enforcement lives in rate_limiter.py. To change a limit, edit RATE_LIMITS.
"""
from dataclasses import dataclass
from enum import Enum

from services.exceptions import ServiceError

# Every bucket is a fixed window of one hour.
RATE_LIMIT_WINDOW_SECONDS = 3600

DEFAULT_REQUESTS_PER_WINDOW = 10


class RateLimitedEndpoint(Enum):
    """Endpoints that are rate limited; the value is the bucket name in the key."""

    REGISTER = "register"
    LOGIN = "login"
    REFRESH = "refresh"
    VERIFY_EMAIL = "verify-email"
    RESEND_VERIFICATION = "resend-verification"
    USERNAME_AVAILABILITY = "username-availability"
    FORGOT_PASSWORD = "forgot-password"
    VALIDATE_RESET_TOKEN = "validate-reset-token"
    RESET_PASSWORD = "reset-password"


@dataclass
class RateLimitResult:
    """Outcome of one rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset: int  # unix time the window ends, 0 when unknown
    retry_after: int  # seconds, 0 when allowed

    def headers(self) -> dict[str, str]:
        """X-RateLimit-* headers, plus Retry-After for a denied request."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimitExceededError(ServiceError):
    """Raised when a client has used up its window."""

    status_code = 429
    code = "rate_limit_exceeded"

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__("Rate limit exceeded. Please try again later.")
        self.headers = result.headers()


# Requests allowed per client per window.
RATE_LIMITS: dict[RateLimitedEndpoint, int] = {
    RateLimitedEndpoint.REGISTER: 5,
    RateLimitedEndpoint.LOGIN: DEFAULT_REQUESTS_PER_WINDOW,
    RateLimitedEndpoint.REFRESH: 60,
    RateLimitedEndpoint.VERIFY_EMAIL: DEFAULT_REQUESTS_PER_WINDOW,
    RateLimitedEndpoint.RESEND_VERIFICATION: 3,
    RateLimitedEndpoint.USERNAME_AVAILABILITY: 60,
    RateLimitedEndpoint.FORGOT_PASSWORD: 3,
    RateLimitedEndpoint.VALIDATE_RESET_TOKEN: DEFAULT_REQUESTS_PER_WINDOW,
    RateLimitedEndpoint.RESET_PASSWORD: 5,
}
