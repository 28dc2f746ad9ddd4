"""Session snapshot stored in the cache at login."""
from dataclasses import dataclass
from uuid import UUID


@dataclass
class CachedUser:
    """
    Lightweight user representation for the session cache entry.

    Written at register/login and read by the request auth gate so that most
    authenticated requests do not touch the database.

    IMPORTANT: When adding, removing, or renaming fields in this class, you MUST bump
    CACHE_SCHEMA_VERSION in core/cache.py. Old entries then live under the previous
    key prefix and expire naturally via TTL instead of failing to deserialize.

    WARNING: Do NOT access ORM relationships like .links on CachedUser.
    Those only exist on User ORM objects.
    """

    id: UUID
    email: str
    username: str
    is_active: bool
    email_verified: bool
