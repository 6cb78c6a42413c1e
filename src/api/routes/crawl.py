"""On-demand crawl pass endpoint."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from src.api.auth import verify_api_key
from src.api.dependencies import get_orchestrator
from src.api.models import CrawlPassResponse, ErrorResponse, SourceCrawlSummary
from src.crawler.errors import StorageError
from src.crawler.orchestrator import CrawlOrchestrator
from src.crawler.schemas import CrawlPassResult

logger = structlog.get_logger(__name__)
router = APIRouter()


def _result_to_response(result: CrawlPassResult) -> CrawlPassResponse:
    return CrawlPassResponse(
        status=result.status,
        sources_total=result.sources_total,
        sources_failed=result.sources_failed,
        items_collected=result.items_collected,
        sources=[
            SourceCrawlSummary(
                source_id=s.source_id,
                source_name=s.source_name,
                items_listed=s.items_listed,
                items_collected=s.items_collected,
                items_skipped=s.items_skipped,
                content_failures=s.content_failures,
                error=s.error,
            )
            for s in result.sources
        ],
        elapsed_seconds=round(result.elapsed_seconds, 2),
    )


@router.post(
    "/crawl",
    response_model=CrawlPassResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Run one crawl pass now",
    description="Crawls every active source and waits for the pass to finish.",
)
async def trigger_crawl(
    api_key: str = Depends(verify_api_key),
    orchestrator: CrawlOrchestrator = Depends(get_orchestrator),
) -> CrawlPassResponse:
    try:
        result = await orchestrator.fetch_all()
    except StorageError as e:
        logger.error("crawl_pass_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load sources")
    return _result_to_response(result)
