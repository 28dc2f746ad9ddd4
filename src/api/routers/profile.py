"""Own-profile endpoints."""
from fastapi import APIRouter, Depends, Response

from api.dependencies import get_current_user, get_profile_service, get_settings
from api.helpers import clear_auth_cookies
from core.config import Settings
from schemas.cached_user import CachedUser
from schemas.user import AvatarUpdate, ProfileUpdate, UserProfile
from services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserProfile)
async def get_profile(
    current_user: CachedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    """Get the current user's profile."""
    return await service.get_profile(current_user.id)


@router.patch("", response_model=UserProfile)
async def update_profile(
    data: ProfileUpdate,
    current_user: CachedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    """Update username, bio or names. Omitted fields are unchanged."""
    return await service.update_profile(current_user.id, data)


@router.delete("", status_code=204)
async def delete_profile(
    response: Response,
    current_user: CachedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
    settings: Settings = Depends(get_settings),
) -> None:
    """Delete the account and all of its links."""
    await service.delete_account(current_user.id)
    clear_auth_cookies(response, settings)


@router.put("/avatar", response_model=UserProfile)
async def update_avatar(
    data: AvatarUpdate,
    current_user: CachedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    """Set the avatar to an already-hosted image URL."""
    return await service.update_avatar(current_user.id, data.url)


@router.delete("/avatar", response_model=UserProfile)
async def delete_avatar(
    current_user: CachedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    """Remove the avatar."""
    return await service.delete_avatar(current_user.id)
