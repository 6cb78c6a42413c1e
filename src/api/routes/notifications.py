"""Notifier settings and digest endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from src.api.auth import verify_api_key
from src.api.dependencies import get_notification_service, get_scheduler
from src.api.models import ErrorResponse, NotifierConfigModel, NotifyResponse
from src.crawler.errors import StorageError
from src.notifications.schemas import DEFAULT_TITLE, NotifierConfig
from src.notifications.service import NotificationService
from src.scheduling.scheduler import CrawlScheduler

logger = structlog.get_logger(__name__)
router = APIRouter()


def _to_model(config: NotifierConfig) -> NotifierConfigModel:
    return NotifierConfigModel(
        enabled=config.enabled,
        period=config.period,
        notify_time=config.notify_time,
        webhook_url=config.webhook_url,
        title=config.title,
    )


@router.get(
    "/notifications/config",
    response_model=NotifierConfigModel,
    responses={401: {"model": ErrorResponse}},
    summary="Current notifier settings",
)
async def get_notifier_config(
    api_key: str = Depends(verify_api_key),
    service: NotificationService = Depends(get_notification_service),
) -> NotifierConfigModel:
    return _to_model(await service.get_config())


@router.put(
    "/notifications/config",
    response_model=NotifierConfigModel,
    responses={401: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Replace notifier settings",
    description="Saves the settings and reschedules the digest job if the scheduler runs.",
)
async def update_notifier_config(
    body: NotifierConfigModel,
    api_key: str = Depends(verify_api_key),
    service: NotificationService = Depends(get_notification_service),
    scheduler: CrawlScheduler | None = Depends(get_scheduler),
) -> NotifierConfigModel:
    config = NotifierConfig(
        enabled=body.enabled,
        period=body.period,
        notify_time=body.notify_time,
        webhook_url=body.webhook_url.strip(),
        title=body.title.strip() or DEFAULT_TITLE,
    )
    try:
        saved = await service.update_config(config)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        logger.error("notifier_config_save_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to save notifier settings")

    if scheduler is not None:
        await scheduler.reload_notify_job()
    return _to_model(saved)


@router.post(
    "/notifications/test",
    response_model=NotifyResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Send a test message to the configured webhook",
)
async def send_test_notification(
    api_key: str = Depends(verify_api_key),
    service: NotificationService = Depends(get_notification_service),
) -> NotifyResponse:
    return NotifyResponse(delivered=await service.send_test())


@router.post(
    "/notifications/digest",
    response_model=NotifyResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Send the digest for the current window now",
)
async def send_digest_now(
    api_key: str = Depends(verify_api_key),
    service: NotificationService = Depends(get_notification_service),
) -> NotifyResponse:
    sent = await service.send_digest()
    return NotifyResponse(delivered=sent > 0, items=sent)
