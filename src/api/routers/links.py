"""Link management endpoints for the signed-in user."""
from uuid import UUID

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_link_service
from schemas.cached_user import CachedUser
from schemas.link import LinkCreate, LinkRead, LinkReorder, LinkUpdate
from services.link_service import LinkService

router = APIRouter(prefix="/links", tags=["links"])


@router.get("", response_model=list[LinkRead])
async def list_links(
    current_user: CachedUser = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> list[LinkRead]:
    """All of the user's links, including hidden ones, by display order."""
    return await service.list_links(current_user.id)


@router.post("", response_model=LinkRead, status_code=201)
async def create_link(
    data: LinkCreate,
    current_user: CachedUser = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> LinkRead:
    """Add a link at the end of the list."""
    return await service.create_link(current_user, data)


@router.put("/reorder", response_model=list[LinkRead])
async def reorder_links(
    data: LinkReorder,
    current_user: CachedUser = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> list[LinkRead]:
    """Set new positions for several links in one transaction."""
    return await service.reorder_links(current_user, data.links)


@router.patch("/{link_id}", response_model=LinkRead)
async def update_link(
    link_id: UUID,
    data: LinkUpdate,
    current_user: CachedUser = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> LinkRead:
    """Update a link's platform, URL, title or visibility."""
    return await service.update_link(current_user, link_id, data)


@router.patch("/{link_id}/visibility", response_model=LinkRead)
async def toggle_visibility(
    link_id: UUID,
    current_user: CachedUser = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> LinkRead:
    """Show or hide a link on the public profile."""
    return await service.toggle_visibility(current_user, link_id)


@router.delete("/{link_id}", status_code=204)
async def delete_link(
    link_id: UUID,
    current_user: CachedUser = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> None:
    """Delete a link."""
    await service.delete_link(current_user, link_id)
