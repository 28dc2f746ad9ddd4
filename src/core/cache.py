"""Cache-aside read layer with namespaced keys and write-triggered invalidation."""
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Any, TypeVar
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from schemas.cached_user import CachedUser

if TYPE_CHECKING:
    from core.redis import RedisClient
    from models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_PREFIX = "linkbio"

# Cache schema version - included in all cache keys (e.g., "linkbio:v1:links:user:...")
#
# Bump this version when any cached shape changes (CachedUser, UserProfile,
# PublicProfile, LinkRead, PlatformConfig). Old entries are then never found
# and expire naturally via TTL, so deployments need no cache flush.
CACHE_SCHEMA_VERSION = 1


class CacheNamespace(StrEnum):
    """Key namespaces; the value is the key segment between version and identifier."""

    SESSION = "session"
    PUBLIC_PROFILE = "profile:public"
    USER_PROFILE = "profile:user"
    LINKS = "links:user"
    RATE_LIMIT = "ratelimit"
    PLATFORM_CONFIG = "platforms"


CACHE_TTLS: dict[CacheNamespace, int] = {
    CacheNamespace.SESSION: 86400,
    CacheNamespace.PUBLIC_PROFILE: 300,
    CacheNamespace.USER_PROFILE: 600,
    CacheNamespace.LINKS: 600,
    CacheNamespace.RATE_LIMIT: 3600,
    CacheNamespace.PLATFORM_CONFIG: 86400,
}

PLATFORM_CONFIG_ID = "config"


def cache_key(namespace: CacheNamespace, identifier: str | UUID) -> str:
    """
    Build the versioned key for an entry.

    Usernames are lower-cased so that the public profile key is canonical
    regardless of how the username was typed in the URL.
    """
    ident = str(identifier)
    if namespace is CacheNamespace.PUBLIC_PROFILE:
        ident = ident.lower()
    return f"{KEY_PREFIX}:v{CACHE_SCHEMA_VERSION}:{namespace.value}:{ident}"


@lru_cache(maxsize=64)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


class CacheLayer:
    """
    Cache-aside reads and invalidation rules on top of RedisClient.

    The underlying client is fail-open, so every method here degrades to
    "always miss" / "no-op" when Redis is down and callers fall through to the
    database.
    """

    def __init__(self, redis_client: "RedisClient") -> None:
        """Initialize cache layer with Redis client."""
        self._redis = redis_client

    @property
    def redis(self) -> "RedisClient":
        """Underlying Redis client."""
        return self._redis

    async def get(
        self,
        namespace: CacheNamespace,
        identifier: str | UUID,
        type_: type[T] | Any,
    ) -> T | None:
        """
        Read and decode an entry.

        Returns None on a miss, when Redis is unavailable, or when the stored
        payload no longer decodes into `type_`.
        """
        key = cache_key(namespace, identifier)
        data = await self._redis.get(key)
        if data is None:
            logger.debug("cache_miss key=%s", key)
            return None
        try:
            value = _adapter(type_).validate_json(data)
        except ValidationError as e:
            logger.warning("cache_decode_failed key=%s error=%s", key, e.error_count())
            return None
        logger.debug("cache_hit key=%s", key)
        return value

    async def set(
        self,
        namespace: CacheNamespace,
        identifier: str | UUID,
        value: Any,
        type_: type[T] | Any,
    ) -> bool:
        """Encode and store an entry with the namespace TTL."""
        key = cache_key(namespace, identifier)
        payload = _adapter(type_).dump_json(value)
        stored = await self._redis.setex(key, CACHE_TTLS[namespace], payload)
        if stored:
            logger.debug("cache_set key=%s", key)
        return stored

    async def read(
        self,
        namespace: CacheNamespace,
        identifier: str | UUID,
        loader: Callable[[], Awaitable[T | None]],
        type_: type[T] | Any,
    ) -> T | None:
        """
        Cache-aside read.

        On a hit the cached value is returned and the loader is not called; the
        TTL is not refreshed. On a miss the loader runs and a non-None result is
        stored with the namespace TTL. A None result is never cached, and an
        exception from the loader propagates without caching anything.

        Args:
            namespace: Key namespace (selects the TTL).
            identifier: Entity identifier within the namespace.
            loader: Coroutine function that fetches the value from the database.
            type_: Type used to decode the cached JSON (e.g. list[LinkRead]).
        """
        cached = await self.get(namespace, identifier, type_)
        if cached is not None:
            return cached
        value = await loader()
        if value is not None:
            await self.set(namespace, identifier, value, type_)
        return value

    async def invalidate(self, namespace: CacheNamespace, *identifiers: str | UUID) -> None:
        """Delete the entries for the given identifiers in one namespace."""
        await self._delete([cache_key(namespace, ident) for ident in identifiers if ident])

    async def invalidate_links(self, user_id: UUID, username: str) -> None:
        """After any link write: the user's link list and their public profile."""
        await self._delete([
            cache_key(CacheNamespace.LINKS, user_id),
            cache_key(CacheNamespace.PUBLIC_PROFILE, username),
        ])

    async def invalidate_profile(self, user_id: UUID, username: str) -> None:
        """After a profile write: the owner's profile and the public profile."""
        await self._delete([
            cache_key(CacheNamespace.USER_PROFILE, user_id),
            cache_key(CacheNamespace.PUBLIC_PROFILE, username),
        ])

    async def invalidate_username_change(self, old_username: str, new_username: str) -> None:
        """
        After a username change: the public profile under both names.

        The new name is cleared as well in case a stale "not found" was ever
        cached or another account held the name earlier.
        """
        await self._delete([
            cache_key(CacheNamespace.PUBLIC_PROFILE, old_username),
            cache_key(CacheNamespace.PUBLIC_PROFILE, new_username),
        ])

    async def invalidate_user(self, user_id: UUID, username: str) -> None:
        """After account deletion: every entry derived from the user."""
        await self._delete([
            cache_key(CacheNamespace.SESSION, user_id),
            cache_key(CacheNamespace.USER_PROFILE, user_id),
            cache_key(CacheNamespace.LINKS, user_id),
            cache_key(CacheNamespace.PUBLIC_PROFILE, username),
        ])

    async def set_session(self, user: "User") -> CachedUser:
        """Store the session snapshot for a user (best-effort) and return it."""
        cached = CachedUser(
            id=user.id,
            email=user.email,
            username=user.username,
            is_active=user.is_active,
            email_verified=user.email_verified,
        )
        await self.set(CacheNamespace.SESSION, user.id, cached, CachedUser)
        return cached

    async def get_session(self, user_id: UUID | str) -> CachedUser | None:
        """Session snapshot for a user, None on miss."""
        return await self.get(CacheNamespace.SESSION, user_id, CachedUser)

    async def _delete(self, keys: list[str]) -> None:
        if not keys:
            return
        if await self._redis.delete(*keys):
            logger.debug("cache_invalidate keys=%s", keys)
