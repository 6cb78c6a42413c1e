"""Source subscription endpoints."""

import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from src.api.auth import verify_api_key
from src.api.dependencies import get_orchestrator, get_sources_repository
from src.api.models import (
    ErrorResponse,
    SourceItem,
    SourcesListResponse,
    SubscribeRequest,
)
from src.crawler.errors import (
    LoginTimeout,
    RemoteError,
    SourceAlreadyTracked,
    SourceNotFound,
    StorageError,
)
from src.crawler.orchestrator import CrawlOrchestrator
from src.sources.repository import SourcesRepository
from src.sources.schemas import TrackedSource

logger = structlog.get_logger(__name__)
router = APIRouter()


def _source_to_item(s: TrackedSource) -> SourceItem:
    return SourceItem(
        source_id=s.source_id,
        name=s.name,
        alias=s.alias,
        remote_id=s.remote_id,
        watermark=s.watermark,
        is_active=s.is_active,
        created_at=s.created_at.isoformat() if s.created_at else None,
        updated_at=s.updated_at.isoformat() if s.updated_at else None,
    )


@router.get(
    "/sources",
    response_model=SourcesListResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List tracked sources",
)
async def list_sources(
    active_only: bool = Query(default=False, description="Only active sources"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    api_key: str = Depends(verify_api_key),
    repo: SourcesRepository = Depends(get_sources_repository),
) -> SourcesListResponse:
    start = time.perf_counter()

    try:
        sources, total = await repo.list_sources(
            active_only=active_only, limit=limit, offset=offset
        )
    except StorageError as e:
        logger.error("list_sources_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to list sources")

    latency_ms = (time.perf_counter() - start) * 1000
    return SourcesListResponse(
        sources=[_source_to_item(s) for s in sources],
        total=total,
        has_more=(offset + limit) < total,
        latency_ms=round(latency_ms, 2),
    )


@router.post(
    "/sources",
    response_model=SourceItem,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Subscribe to a source by name",
)
async def subscribe_source(
    body: SubscribeRequest,
    api_key: str = Depends(verify_api_key),
    orchestrator: CrawlOrchestrator = Depends(get_orchestrator),
) -> SourceItem:
    try:
        source = await orchestrator.subscribe(body.name.strip(), body.alias.strip())
    except SourceAlreadyTracked as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except SourceNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RemoteError as e:
        logger.warning("subscribe_remote_error", name=body.name, code=e.code, error=e.message)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except LoginTimeout as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StorageError as e:
        logger.error("subscribe_failed", name=body.name, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to subscribe source")

    return _source_to_item(source)


@router.delete(
    "/sources/{source_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Unsubscribe (soft-disable) a source",
)
async def unsubscribe_source(
    source_id: str,
    api_key: str = Depends(verify_api_key),
    orchestrator: CrawlOrchestrator = Depends(get_orchestrator),
) -> Response:
    try:
        changed = await orchestrator.unsubscribe(source_id)
    except StorageError as e:
        logger.error("unsubscribe_failed", source_id=source_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to unsubscribe source")

    if not changed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No active source {source_id}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
