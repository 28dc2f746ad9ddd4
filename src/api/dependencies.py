"""FastAPI dependencies for injection."""
from collections.abc import Awaitable, Callable

from fastapi import Depends, Request

from core.auth import get_current_claims, get_current_user
from core.cache import CacheLayer
from core.config import Settings, get_settings
from core.passwords import PasswordHasher
from core.rate_limit_config import RateLimitedEndpoint, RateLimitExceededError
from core.rate_limiter import check_rate_limit
from core.redis import RedisClient
from core.state import (
    get_cache_layer,
    get_email_dispatcher,
    get_password_hasher,
    get_redis_client,
    get_token_codec,
)
from core.tokens import TokenCodec
from db.session import get_async_session
from repositories.link_repository import LinkRepository
from repositories.password_reset_token_repository import PasswordResetTokenRepository
from repositories.platform_repository import PlatformRepository
from repositories.providers import (
    get_link_repository,
    get_password_reset_token_repository,
    get_platform_repository,
    get_user_repository,
    get_verification_token_repository,
)
from repositories.user_repository import UserRepository
from repositories.verification_token_repository import VerificationTokenRepository
from services.auth_service import AuthService
from services.email_service import EmailDispatcher
from services.link_service import LinkService
from services.platform_service import PlatformService
from services.profile_service import ProfileService

__all__ = [
    "get_async_session",
    "get_auth_service",
    "get_cache_layer",
    "get_current_claims",
    "get_current_user",
    "get_link_service",
    "get_platform_service",
    "get_profile_service",
    "get_redis_client",
    "get_settings",
    "rate_limit",
]


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    verification_tokens: VerificationTokenRepository = Depends(
        get_verification_token_repository,
    ),
    reset_tokens: PasswordResetTokenRepository = Depends(
        get_password_reset_token_repository,
    ),
    codec: TokenCodec = Depends(get_token_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
    cache: CacheLayer = Depends(get_cache_layer),
    emails: EmailDispatcher = Depends(get_email_dispatcher),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    """Auth service bound to the request's session."""
    return AuthService(
        users=users,
        verification_tokens=verification_tokens,
        reset_tokens=reset_tokens,
        codec=codec,
        hasher=hasher,
        cache=cache,
        emails=emails,
        frontend_url=settings.frontend_url,
        require_email_verification=settings.require_email_verification,
    )


def get_profile_service(
    users: UserRepository = Depends(get_user_repository),
    links: LinkRepository = Depends(get_link_repository),
    cache: CacheLayer = Depends(get_cache_layer),
) -> ProfileService:
    """Profile service bound to the request's session."""
    return ProfileService(users=users, links=links, cache=cache)


def get_platform_service(
    platforms: PlatformRepository = Depends(get_platform_repository),
    cache: CacheLayer = Depends(get_cache_layer),
) -> PlatformService:
    """Platform service bound to the request's session."""
    return PlatformService(platforms=platforms, cache=cache)


def get_link_service(
    links: LinkRepository = Depends(get_link_repository),
    platforms: PlatformService = Depends(get_platform_service),
    cache: CacheLayer = Depends(get_cache_layer),
    settings: Settings = Depends(get_settings),
) -> LinkService:
    """Link service bound to the request's session."""
    return LinkService(
        links=links,
        platforms=platforms,
        cache=cache,
        max_links_per_user=settings.max_links_per_user,
    )


def client_ip(request: Request) -> str:
    """Best-effort client address used as the rate limit identity."""
    return request.client.host if request.client else "unknown"


def rate_limit(endpoint: RateLimitedEndpoint) -> Callable[..., Awaitable[None]]:
    """
    Build a dependency that counts the request against `endpoint`'s bucket.

    The result is kept on request.state.rate_limit so the response carries
    the X-RateLimit-* headers.

    Raises:
        RateLimitExceededError: The client has used up the window.
    """

    async def dependency(
        request: Request,
        redis_client: RedisClient = Depends(get_redis_client),
    ) -> None:
        result = await check_rate_limit(redis_client, endpoint, client_ip(request))
        request.state.rate_limit = result
        if not result.allowed:
            raise RateLimitExceededError(result)

    return dependency
