"""Link use-cases: cached listing, ownership-checked writes, atomic reorder."""
import logging
from uuid import UUID

from core.cache import CacheLayer, CacheNamespace
from models.link import Link
from repositories.link_repository import LinkRepository
from schemas.cached_user import CachedUser
from schemas.link import LinkCreate, LinkOrderItem, LinkRead, LinkUpdate
from services.exceptions import (
    ForbiddenError,
    InvalidReorderError,
    LinkLimitExceededError,
    LinkNotFoundError,
)
from services.platform_service import PlatformService

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINKS_PER_USER = 20


class LinkService:
    """
    A user's links.

    Every write flushes, commits, then invalidates the owner's link list and
    public profile before returning.
    """

    def __init__(
        self,
        links: LinkRepository,
        platforms: PlatformService,
        cache: CacheLayer,
        max_links_per_user: int = DEFAULT_MAX_LINKS_PER_USER,
    ) -> None:
        self._links = links
        self._platforms = platforms
        self._cache = cache
        self._max_links = max_links_per_user

    async def list_links(self, user_id: UUID) -> list[LinkRead]:
        """All of a user's links (active or not) by display_order, read through the cache."""

        async def load() -> list[LinkRead]:
            links = await self._links.list_for_user(user_id)
            return [LinkRead.model_validate(link) for link in links]

        return await self._cache.read(CacheNamespace.LINKS, user_id, load, list[LinkRead]) or []

    async def create_link(self, owner: CachedUser, data: LinkCreate) -> LinkRead:
        """
        Append a link to the end of the owner's list.

        Raises:
            LinkLimitExceededError: The owner already has the maximum number of links.
            UnknownPlatformError: The platform is not configured.
            InvalidLinkUrlError: The URL does not match the platform's pattern.
        """
        if await self._links.count_for_user(owner.id) >= self._max_links:
            raise LinkLimitExceededError(self._max_links)
        url = str(data.url)
        await self._platforms.validate_link_url(data.platform, url)

        current_max = await self._links.max_display_order(owner.id)
        link = await self._links.create(
            user_id=owner.id,
            platform=data.platform,
            url=url,
            title=data.title,
            display_order=(current_max or 0) + 1,
            is_active=data.is_active,
        )
        await self._links.commit()
        await self._cache.invalidate_links(owner.id, owner.username)
        logger.info("link_created", extra={"user_id": str(owner.id), "link_id": str(link.id)})
        return LinkRead.model_validate(link)

    async def update_link(self, owner: CachedUser, link_id: UUID, data: LinkUpdate) -> LinkRead:
        """
        Apply a partial update to one of the owner's links.

        Changing the platform or URL re-validates the resulting pair.
        """
        link = await self._get_owned(owner, link_id)
        fields = {
            name: value
            for name, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if "url" in fields:
            fields["url"] = str(data.url)
        if "platform" in fields or "url" in fields:
            await self._platforms.validate_link_url(
                fields.get("platform", link.platform),
                fields.get("url", link.url),
            )
        if fields:
            link = await self._links.update(link, **fields)
            await self._links.commit()
        await self._cache.invalidate_links(owner.id, owner.username)
        return LinkRead.model_validate(link)

    async def toggle_visibility(self, owner: CachedUser, link_id: UUID) -> LinkRead:
        """Flip whether a link shows on the public profile."""
        link = await self._get_owned(owner, link_id)
        link = await self._links.update(link, is_active=not link.is_active)
        await self._links.commit()
        await self._cache.invalidate_links(owner.id, owner.username)
        return LinkRead.model_validate(link)

    async def delete_link(self, owner: CachedUser, link_id: UUID) -> None:
        """Remove one of the owner's links."""
        link = await self._get_owned(owner, link_id)
        await self._links.delete(link)
        await self._links.commit()
        await self._cache.invalidate_links(owner.id, owner.username)
        logger.info("link_deleted", extra={"user_id": str(owner.id), "link_id": str(link_id)})

    async def reorder_links(self, owner: CachedUser, items: list[LinkOrderItem]) -> list[LinkRead]:
        """
        Set new positions for several links at once.

        All ids must belong to the owner; if any does not, nothing changes.

        Raises:
            InvalidReorderError: An id is unknown or belongs to another user.
        """
        owned_ids = {link.id for link in await self._links.list_for_user(owner.id)}
        foreign = [item.id for item in items if item.id not in owned_ids]
        if foreign:
            raise InvalidReorderError("One or more links do not exist or do not belong to you")

        links = await self._links.reorder(
            owner.id, {item.id: item.display_order for item in items},
        )
        await self._links.commit()
        await self._cache.invalidate_links(owner.id, owner.username)
        return [LinkRead.model_validate(link) for link in links]

    async def _get_owned(self, owner: CachedUser, link_id: UUID) -> Link:
        link = await self._links.get_by_id(link_id)
        if link is None:
            raise LinkNotFoundError()
        if link.user_id != owner.id:
            raise ForbiddenError("You do not have permission to modify this link")
        return link
