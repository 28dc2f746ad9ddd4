"""Redis client with connection pooling and graceful fallback."""
import logging
from collections.abc import Awaitable, Callable
from typing import NamedTuple, TypeVar

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import NoScriptError, RedisError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Increments the window counter and starts its expiry on the first hit.
# Returns {count, ttl}; the caller compares count against its limit.
FIXED_WINDOW_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
end
return {count, redis.call('TTL', KEYS[1])}
"""


class WindowCount(NamedTuple):
    """Counter state of one fixed window after a hit."""

    count: int
    ttl: int


class RedisClient:
    """
    Async Redis wrapper shared by the cache layer and the rate limiter.

    Nothing here raises on a Redis problem. A client that never connected,
    or a RedisError mid-call, yields the operation's fallback value (a miss,
    False, or None) and a warning in the log.

    Created once in the application lifespan and exposed through app.state.
    """

    def __init__(
        self,
        url: str,
        enabled: bool = True,
        pool_size: int = 20,
        client: Redis | None = None,
    ) -> None:
        self._url = url
        self._enabled = enabled
        self._pool_size = pool_size
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = client
        self._fixed_window_sha: str | None = None

    @classmethod
    async def from_client(cls, client: Redis) -> "RedisClient":
        """Wrap an existing redis.asyncio client, e.g. fakeredis in tests."""
        instance = cls(url="", client=client)
        await instance._load_scripts()
        return instance

    async def connect(self) -> None:
        """Open the pool, check it answers and register the Lua scripts."""
        if not self._enabled:
            logger.info("Redis disabled by configuration")
            return
        try:
            self._pool = ConnectionPool.from_url(self._url, max_connections=self._pool_size)
            self._client = Redis(connection_pool=self._pool)
            await self._client.ping()
        except RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            self._client = None
            self._pool = None
            return
        await self._load_scripts()
        logger.info("Redis connected", extra={"url": self._url})

    async def _load_scripts(self) -> None:
        self._fixed_window_sha = await self._guarded(
            "SCRIPT LOAD", None, lambda c: c.script_load(FIXED_WINDOW_SCRIPT),
        )

    async def close(self) -> None:
        """Release the pool."""
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        self._pool = None
        logger.info("Redis connection closed")

    @property
    def is_connected(self) -> bool:
        """True once a client is available."""
        return self._client is not None

    @property
    def fixed_window_sha(self) -> str | None:
        """SHA of the loaded fixed window script, None if it is not loaded."""
        return self._fixed_window_sha

    async def _guarded(
        self,
        operation: str,
        fallback: T,
        call: Callable[[Redis], Awaitable[T]],
    ) -> T:
        """Run `call` against the client, returning `fallback` when Redis is unusable."""
        if self._client is None:
            return fallback
        try:
            return await call(self._client)
        except RedisError as e:
            logger.warning("Redis %s failed: %s", operation, e)
            return fallback

    async def ping(self) -> bool:
        """Whether the server answers."""
        return bool(await self._guarded("PING", False, lambda c: c.ping()))

    async def get(self, key: str) -> bytes | None:
        """Raw value of `key`, None on a miss or failure."""
        return await self._guarded("GET", None, lambda c: c.get(key))

    async def setex(self, key: str, seconds: int, value: str | bytes) -> bool:
        """Store `value` with a TTL. False if it was not stored."""

        async def _setex(c: Redis) -> bool:
            await c.setex(key, seconds, value)
            return True

        return await self._guarded("SETEX", False, _setex)

    async def delete(self, *keys: str) -> bool:
        """Remove keys. False if the delete did not reach Redis."""

        async def _delete(c: Redis) -> bool:
            await c.delete(*keys)
            return True

        return await self._guarded("DELETE", False, _delete)

    async def ttl(self, key: str) -> int | None:
        """Seconds until `key` expires (negative when absent or persistent)."""
        return await self._guarded("TTL", None, lambda c: c.ttl(key))

    async def eval_fixed_window(self, key: str, window_seconds: int) -> WindowCount | None:
        """
        Count one hit in the fixed window stored at `key`.

        A NOSCRIPT reply (Redis restarted and lost its script cache) reloads
        the script and retries once.

        Returns:
            The window's count and remaining TTL, or None when Redis is
            unavailable and the caller should fail open.
        """
        if self._client is None or self._fixed_window_sha is None:
            return None

        for attempt in range(2):
            try:
                count, ttl = await self._client.evalsha(
                    self._fixed_window_sha, 1, key, window_seconds,
                )
                return WindowCount(int(count), int(ttl))
            except NoScriptError:
                if attempt:
                    break
                logger.warning("redis_script_reload", extra={"script": "fixed_window"})
                await self._load_scripts()
                if self._fixed_window_sha is None:
                    break
            except RedisError as e:
                logger.warning("Redis fixed window failed: %s", e)
                break
        return None
