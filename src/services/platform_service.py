"""Platform catalogue: cached configuration and link URL validation."""
import logging
import re

from core.cache import PLATFORM_CONFIG_ID, CacheLayer, CacheNamespace
from repositories.platform_repository import PlatformRepository
from schemas.platform import PlatformConfig
from services.exceptions import InvalidLinkUrlError, UnknownPlatformError

logger = logging.getLogger(__name__)


class PlatformService:
    """Read-mostly access to the configured platforms."""

    def __init__(self, platforms: PlatformRepository, cache: CacheLayer) -> None:
        self._platforms = platforms
        self._cache = cache

    async def get_platform_config(self) -> list[PlatformConfig]:
        """Every configured platform with its URL pattern (cached for a day)."""

        async def load() -> list[PlatformConfig] | None:
            rows = await self._platforms.list_all()
            # An empty catalogue is not cached so seeding takes effect immediately
            return [PlatformConfig.model_validate(row) for row in rows] or None

        configs = await self._cache.read(
            CacheNamespace.PLATFORM_CONFIG,
            PLATFORM_CONFIG_ID,
            load,
            list[PlatformConfig],
        )
        return configs or []

    async def validate_link_url(self, platform: str, url: str) -> None:
        """
        Check that `url` is a valid link for `platform`.

        Raises:
            UnknownPlatformError: No platform with that name is configured.
            InvalidLinkUrlError: The URL does not match the platform's pattern.
        """
        name = platform.lower()
        config = next((p for p in await self.get_platform_config() if p.name == name), None)
        if config is None:
            raise UnknownPlatformError(platform)
        try:
            matched = re.match(config.url_pattern, url, re.IGNORECASE) is not None
        except re.error as e:
            logger.error("platform_pattern_invalid platform=%s error=%s", name, e)
            matched = False
        if not matched:
            raise InvalidLinkUrlError(config.display_name)
