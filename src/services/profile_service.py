"""Profile use-cases: cached reads, writes that invalidate what they change."""
import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from core.cache import CacheLayer, CacheNamespace
from models.user import User
from repositories.link_repository import LinkRepository
from repositories.user_repository import UserRepository
from schemas.link import PublicLink
from schemas.user import ProfileUpdate, PublicProfile, UserProfile, UsernameAvailability
from services.exceptions import UserNotFoundError, UsernameTakenError

logger = logging.getLogger(__name__)

# Columns that cannot be cleared by sending null
_NON_NULLABLE_FIELDS = frozenset({"username", "first_name", "last_name"})


class ProfileService:
    """Owner and public views of a user's profile."""

    def __init__(
        self,
        users: UserRepository,
        links: LinkRepository,
        cache: CacheLayer,
    ) -> None:
        self._users = users
        self._links = links
        self._cache = cache

    async def get_profile(self, user_id: UUID) -> UserProfile:
        """
        The owner's profile, read through the user-profile cache.

        Raises:
            UserNotFoundError: The account no longer exists.
        """

        async def load() -> UserProfile | None:
            user = await self._users.get_by_id(user_id)
            return UserProfile.model_validate(user) if user else None

        profile = await self._cache.read(CacheNamespace.USER_PROFILE, user_id, load, UserProfile)
        if profile is None:
            raise UserNotFoundError()
        return profile

    async def get_public_profile(self, username: str) -> PublicProfile:
        """
        Public page data: profile fields and active links by display_order.

        Inactive accounts are reported as not found.

        Raises:
            UserNotFoundError: No active account with that username.
        """
        username = username.strip().lower()

        async def load() -> PublicProfile | None:
            user = await self._users.get_by_username(username)
            if user is None or not user.is_active:
                return None
            links = await self._links.list_for_user(user.id, active_only=True)
            return PublicProfile(
                username=user.username,
                first_name=user.first_name,
                last_name=user.last_name,
                bio=user.bio,
                avatar_url=user.avatar_url,
                links=[PublicLink.model_validate(link) for link in links],
            )

        profile = await self._cache.read(
            CacheNamespace.PUBLIC_PROFILE, username, load, PublicProfile,
        )
        if profile is None:
            raise UserNotFoundError()
        return profile

    async def update_profile(self, user_id: UUID, data: ProfileUpdate) -> UserProfile:
        """
        Apply a partial update.

        Raises:
            UserNotFoundError: The account no longer exists.
            UsernameTakenError: The new username belongs to someone else.
        """
        user = await self._get_user(user_id)
        fields = {
            name: value
            for name, value in data.model_dump(exclude_unset=True).items()
            if value is not None or name not in _NON_NULLABLE_FIELDS
        }
        old_username = user.username
        new_username = fields.get("username", old_username)
        username_changed = new_username != old_username
        if username_changed and await self._users.exists_by_username(new_username):
            raise UsernameTakenError(new_username)
        if not username_changed:
            fields.pop("username", None)

        if fields:
            try:
                user = await self._users.update(user, **fields)
                await self._users.commit()
            except IntegrityError as e:
                # Lost a race with another account claiming the same username
                await self._users.rollback()
                logger.info("username_conflict user_id=%s username=%s", user_id, new_username)
                raise UsernameTakenError(new_username) from e

        await self._cache.invalidate_profile(user.id, user.username)
        if username_changed:
            await self._cache.invalidate_username_change(old_username, new_username)
            # The session snapshot carries the username used for invalidation
            await self._cache.invalidate(CacheNamespace.SESSION, user.id)
            logger.info(
                "username_changed",
                extra={"user_id": str(user.id), "old": old_username, "new": new_username},
            )
        return UserProfile.model_validate(user)

    async def update_avatar(self, user_id: UUID, avatar_url: str) -> UserProfile:
        """Point the avatar at an already-hosted image."""
        user = await self._get_user(user_id)
        user = await self._users.update(user, avatar_url=avatar_url)
        await self._users.commit()
        await self._cache.invalidate_profile(user.id, user.username)
        return UserProfile.model_validate(user)

    async def delete_avatar(self, user_id: UUID) -> UserProfile:
        """Remove the avatar."""
        user = await self._get_user(user_id)
        user = await self._users.update(user, avatar_url=None)
        await self._users.commit()
        await self._cache.invalidate_profile(user.id, user.username)
        return UserProfile.model_validate(user)

    async def delete_account(self, user_id: UUID) -> None:
        """Delete the account, its links and every cache entry derived from it."""
        user = await self._get_user(user_id)
        username = user.username
        await self._users.delete(user)
        await self._users.commit()
        await self._cache.invalidate_user(user_id, username)
        logger.info("account_deleted", extra={"user_id": str(user_id)})

    async def check_username_availability(self, username: str) -> UsernameAvailability:
        """
        Report whether a username is free.

        Raises:
            UsernameTakenError: Another account already uses it.
        """
        normalized = username.strip().lower()
        if await self._users.exists_by_username(normalized):
            raise UsernameTakenError(normalized)
        return UsernameAvailability(username=normalized, available=True)

    async def _get_user(self, user_id: UUID) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user
