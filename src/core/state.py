"""
Accessors for the clients built in the application lifespan.

Each one is a FastAPI dependency, so tests can swap any client with
``app.dependency_overrides``.
"""
from fastapi import Request

from core.cache import CacheLayer
from core.passwords import PasswordHasher
from core.redis import RedisClient
from core.tokens import TokenCodec
from services.email_service import EmailDispatcher


def get_redis_client(request: Request) -> RedisClient:
    """Process-wide Redis client."""
    return request.app.state.redis_client


def get_cache_layer(request: Request) -> CacheLayer:
    """Cache-aside layer over the Redis client."""
    return request.app.state.cache


def get_token_codec(request: Request) -> TokenCodec:
    """Access/refresh token codec."""
    return request.app.state.token_codec


def get_password_hasher(request: Request) -> PasswordHasher:
    """bcrypt password hasher."""
    return request.app.state.password_hasher


def get_email_dispatcher(request: Request) -> EmailDispatcher:
    """Background email dispatcher."""
    return request.app.state.email_dispatcher
