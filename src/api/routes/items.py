"""Collected item listing endpoint."""

import time
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.auth import verify_api_key
from src.api.dependencies import get_item_repository
from src.api.models import ErrorResponse, ItemsListResponse, ItemSummary
from src.crawler.errors import StorageError
from src.items.repository import ItemRepository
from src.items.schemas import CollectedItem

logger = structlog.get_logger(__name__)
router = APIRouter()


def _item_to_summary(item: CollectedItem) -> ItemSummary:
    return ItemSummary(
        item_id=item.item_id,
        source_id=item.source_id,
        source_name=item.source_name,
        title=item.title,
        author=item.author,
        summary=item.summary,
        content_url=item.content_url,
        cover_url=item.cover_url,
        has_content=bool(item.content),
        published_at=item.published_at.isoformat() if item.published_at else None,
        collected_at=item.collected_at.isoformat() if item.collected_at else None,
    )


@router.get(
    "/items",
    response_model=ItemsListResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List collected items, newest first",
)
async def list_items(
    source_id: str | None = Query(default=None, description="Filter by source"),
    keyword: str | None = Query(default=None, description="Case-insensitive title match"),
    since: datetime | None = Query(default=None, description="Published at or after"),
    until: datetime | None = Query(default=None, description="Published at or before"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    api_key: str = Depends(verify_api_key),
    repo: ItemRepository = Depends(get_item_repository),
) -> ItemsListResponse:
    start = time.perf_counter()

    try:
        items, total = await repo.list_items(
            source_id=source_id,
            keyword=keyword,
            since=since,
            until=until,
            limit=limit,
            offset=offset,
        )
    except StorageError as e:
        logger.error("list_items_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to list items")

    latency_ms = (time.perf_counter() - start) * 1000
    return ItemsListResponse(
        items=[_item_to_summary(i) for i in items],
        total=total,
        has_more=(offset + limit) < total,
        latency_ms=round(latency_ms, 2),
    )
