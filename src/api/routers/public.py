"""Unauthenticated endpoints: public profile pages and username availability."""
from fastapi import APIRouter, Depends

from api.dependencies import get_profile_service, rate_limit
from core.rate_limit_config import RateLimitedEndpoint
from schemas.user import PublicProfile, UsernameAvailability
from services.profile_service import ProfileService

router = APIRouter(prefix="/public", tags=["public"])


@router.get(
    "/username-availability/{username}",
    response_model=UsernameAvailability,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.USERNAME_AVAILABILITY))],
)
async def check_username_availability(
    username: str,
    service: ProfileService = Depends(get_profile_service),
) -> UsernameAvailability:
    """200 if the username is free, 409 if it is taken."""
    return await service.check_username_availability(username)


@router.get("/{username}", response_model=PublicProfile)
async def get_public_profile(
    username: str,
    service: ProfileService = Depends(get_profile_service),
) -> PublicProfile:
    """A user's public page: profile fields and visible links."""
    return await service.get_public_profile(username)
