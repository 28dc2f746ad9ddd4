"""Fixed window rate limiting backed by Redis. Limits live in rate_limit_config."""
import logging
import time

from core import rate_limit_config
from core.cache import CacheNamespace, cache_key
from core.rate_limit_config import (
    RATE_LIMIT_WINDOW_SECONDS,
    RateLimitedEndpoint,
    RateLimitResult,
)
from core.redis import RedisClient

logger = logging.getLogger(__name__)


async def check_rate_limit(
    redis_client: RedisClient,
    endpoint: RateLimitedEndpoint,
    identifier: str,
) -> RateLimitResult:
    """
    Count a request against the `endpoint` bucket of `identifier`.

    Args:
        redis_client: Cache store holding the counters.
        endpoint: Which bucket to count against.
        identifier: Who is counted, a user id or the client IP.

    Returns:
        The decision plus the values for the X-RateLimit-* headers. When Redis
        cannot be reached every request is allowed.
    """
    max_requests = rate_limit_config.RATE_LIMITS[endpoint]
    now = int(time.time())

    key = cache_key(CacheNamespace.RATE_LIMIT, f"{endpoint.value}:{identifier}")
    window = await redis_client.eval_fixed_window(key, RATE_LIMIT_WINDOW_SECONDS)
    if window is None:
        logger.warning("redis_unavailable", extra={"operation": "rate_limit"})
        return RateLimitResult(
            allowed=True, limit=max_requests, remaining=max_requests, reset=0, retry_after=0,
        )

    ttl = window.ttl if window.ttl > 0 else RATE_LIMIT_WINDOW_SECONDS
    allowed = window.count <= max_requests
    if not allowed:
        logger.warning(
            "rate_limit_exceeded",
            extra={"endpoint": endpoint.value, "identifier": identifier},
        )
    return RateLimitResult(
        allowed=allowed,
        limit=max_requests,
        remaining=max(0, max_requests - window.count),
        reset=now + ttl,
        retry_after=0 if allowed else ttl,
    )
