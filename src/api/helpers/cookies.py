"""Auth cookie handling."""
from fastapi import Response

from core.auth import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from core.config import Settings
from core.tokens import TokenPair


def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    """
    Attach both tokens as httpOnly cookies.

    Max-age matches each token's lifetime so the browser drops the cookie when
    the token would be rejected anyway.
    """
    for name, value, max_age in (
        (ACCESS_TOKEN_COOKIE, tokens.access_token, settings.access_token_ttl_seconds),
        (REFRESH_TOKEN_COOKIE, tokens.refresh_token, settings.refresh_token_ttl_seconds),
    ):
        response.set_cookie(
            key=name,
            value=value,
            max_age=max_age,
            path="/",
            domain=settings.cookie_domain,
            secure=settings.cookie_secure,
            httponly=True,
            samesite=settings.cookie_samesite,
        )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    """Expire both auth cookies (logout is client-side discard)."""
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            key=name,
            path="/",
            domain=settings.cookie_domain,
            secure=settings.cookie_secure,
            httponly=True,
            samesite=settings.cookie_samesite,
        )
