"""Redirect routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from ..dependencies import get_service
from golinks.service import GoLinksService

router = APIRouter()


@router.get("/{key}", include_in_schema=False)
async def redirect_to_target(key: str, service: GoLinksService = Depends(get_service)):
    """Redirect to the target URL stored for a key."""
    location = await service.resolve(key)

    if location is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Key '{key}' not found",
        )

    # Temporary so clients pick up later updates of the key
    return RedirectResponse(url=location, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
