"""Request authentication: access token from cookie or bearer header."""
import logging
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.cache import CacheLayer
from core.state import get_cache_layer, get_token_codec
from core.tokens import TokenClaims, TokenCodec, TokenVerificationError
from repositories.providers import get_user_repository
from repositories.user_repository import UserRepository
from schemas.cached_user import CachedUser

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"

# HTTP Bearer token scheme (for clients that cannot hold cookies)
security = HTTPBearer(auto_error=False)

# One message for every token failure; the specific reason is only logged
INVALID_TOKEN_DETAIL = "Invalid or expired token"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_access_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Access token from the cookie, falling back to the Authorization header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    return None


async def get_current_claims(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenClaims:
    """
    Dependency that verifies the access token and returns its claims.

    Does not touch the database; use get_current_user when the account must
    still exist.
    """
    token = extract_access_token(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")
    try:
        return codec.verify_access_token(token)
    except TokenVerificationError as e:
        logger.info("access_token_rejected reason=%s", e.code)
        raise _unauthorized(INVALID_TOKEN_DETAIL) from e


async def get_current_user(
    claims: TokenClaims = Depends(get_current_claims),
    users: UserRepository = Depends(get_user_repository),
    cache: CacheLayer = Depends(get_cache_layer),
) -> CachedUser:
    """
    Dependency that resolves the token's user.

    A valid signature only proves the token was issued by us; the account may
    have been deleted or deactivated since. The session snapshot in the cache
    answers that for most requests, the database for the rest.
    """
    try:
        user_id = UUID(claims.user_id)
    except ValueError as e:
        logger.info("access_token_rejected reason=bad_subject")
        raise _unauthorized(INVALID_TOKEN_DETAIL) from e

    current = await cache.get_session(user_id)
    if current is None:
        user = await users.get_by_id(user_id)
        if user is None:
            logger.info("access_token_rejected reason=unknown_user user_id=%s", user_id)
            raise _unauthorized(INVALID_TOKEN_DETAIL)
        current = await cache.set_session(user)

    if not current.is_active:
        logger.info("access_token_rejected reason=inactive_user user_id=%s", user_id)
        raise _unauthorized(INVALID_TOKEN_DETAIL)
    return current
