"""Platform catalogue endpoint."""
from fastapi import APIRouter, Depends

from api.dependencies import get_platform_service
from schemas.platform import PlatformConfig
from services.platform_service import PlatformService

router = APIRouter(prefix="/platforms", tags=["platforms"])


@router.get("", response_model=list[PlatformConfig])
async def list_platforms(
    service: PlatformService = Depends(get_platform_service),
) -> list[PlatformConfig]:
    """Supported platforms and the URL pattern each link must match."""
    return await service.get_platform_config()
