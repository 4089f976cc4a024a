"""API routes implementation."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError

from .schemas import (
    DeleteResponse,
    ErrorResponse,
    FlushResponse,
    HealthResponse,
    LinkListResponse,
    LinkResponse,
    SetLinkRequest,
    StatisticsResponse,
)
from ..dependencies import get_config, get_service
from config import Config
from golinks.common.url_builder import build_short_url, public_base_url
from golinks.database.models import Record
from golinks.exceptions import InvalidInputError, RegistryClosedError
from golinks.service import GoLinksService

router = APIRouter()


def _to_response(request: Request, config: Config, record: Record) -> LinkResponse:
    """Build the JSON view of a record, including its public URL."""
    base_url = public_base_url(
        headers=dict(request.headers),
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    return LinkResponse(
        **record.to_dict(),
        short_url=build_short_url(
            key=record.key,
            base_url=base_url,
            path_prefix=config.path_prefix,
        ),
    )


async def _read_target(request: Request) -> str:
    """Read the target URL from a form field or a JSON body."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            payload = SetLinkRequest.model_validate(await request.json())
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid request body: {e.errors()[0]['msg']}",
            )
        except ValueError as e:
            # Malformed JSON and undecodable bytes both land here
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid JSON body: {e}",
            )
        url = payload.url
    else:
        form = await request.form()
        url = form.get("url")
        if url is None:
            url = request.query_params.get("url")

    if not isinstance(url, str) or not url.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing 'url' value",
        )
    return url


@router.get(
    "/get/{key}",
    response_model=LinkResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Key not found"},
    },
    summary="Get go link",
    description="Get the record stored for a key.",
)
async def get_link(
    request: Request,
    key: str,
    service: GoLinksService = Depends(get_service),
    config: Config = Depends(get_config),
):
    """Get the record stored for a key."""
    record = await service.get_link(key)

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Key '{key}' not found",
        )

    return _to_response(request, config, record)


@router.post(
    "/set/{key}",
    response_model=LinkResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid key or URL"},
        503: {"model": ErrorResponse, "description": "Registry is shutting down"},
    },
    summary="Create or update go link",
    description="Point a key at a URL. Send 'url' as a form field or in a JSON body.",
)
async def set_link(
    request: Request,
    key: str,
    service: GoLinksService = Depends(get_service),
    config: Config = Depends(get_config),
):
    """Create or update a go link."""
    url = await _read_target(request)

    try:
        record = await service.set_link(key, url)
    except InvalidInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except RegistryClosedError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )

    return _to_response(request, config, record)


@router.delete(
    "/delete/{key}",
    response_model=DeleteResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Key not found"},
        503: {"model": ErrorResponse, "description": "Registry is shutting down"},
    },
    summary="Delete go link",
)
async def delete_link(
    key: str,
    service: GoLinksService = Depends(get_service),
):
    """Delete a go link."""
    try:
        deleted = await service.delete_link(key)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RegistryClosedError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Key '{key}' not found",
        )

    return DeleteResponse(key=key, deleted=True)


@router.get(
    "/list",
    response_model=LinkListResponse,
    summary="List go links",
    description="List the most recently updated go links.",
)
async def list_links(
    request: Request,
    limit: int = Query(100, ge=1, le=1000),
    service: GoLinksService = Depends(get_service),
    config: Config = Depends(get_config),
):
    """List recently updated go links."""
    records = await service.list_links(limit)
    links = [_to_response(request, config, record) for record in records]
    return LinkListResponse(links=links, count=len(links))


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get link count and persistence statistics.",
)
async def get_statistics(service: GoLinksService = Depends(get_service)):
    """Get service statistics."""
    stats = await service.get_statistics()
    return StatisticsResponse(**stats)


@router.post(
    "/flush",
    response_model=FlushResponse,
    responses={
        503: {"model": ErrorResponse, "description": "Registry is shutting down"},
    },
    summary="Write snapshot now",
    description="Persist the store immediately instead of waiting for the sync interval.",
)
async def flush(service: GoLinksService = Depends(get_service)):
    """Write a snapshot now."""
    try:
        written = await service.flush()
    except RegistryClosedError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return FlushResponse(written=written)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(service: GoLinksService = Depends(get_service)):
    """Health check endpoint for load balancers and monitoring."""
    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        persistence="healthy" if health["persistence"] else "unhealthy",
        worker="healthy" if health["worker"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
