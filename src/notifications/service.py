"""
Notification service - periodic digest of recently collected items.

Reads the stored NotifierConfig, queries items collected inside the
digest window (1h hourly, 24h daily) and pushes them to the webhook.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from src.items.repository import ItemRepository
from src.notifications.channels import Notifier, WebhookNotifier
from src.notifications.config import NotificationConfig
from src.notifications.repository import NotifierConfigRepository
from src.notifications.schemas import VALID_PERIODS, NotifierConfig
from src.scheduling.translator import notify_schedule

logger = structlog.get_logger(__name__)


class NotificationService:
    """
    Sends item digests according to the stored notifier settings.

    Usage:
        service = NotificationService(config_repo, item_repo)
        sent = await service.send_digest()
    """

    def __init__(
        self,
        config_repo: NotifierConfigRepository,
        items: ItemRepository,
        config: NotificationConfig | None = None,
        notifier_factory: Callable[[str], Notifier] | None = None,
    ) -> None:
        self._config_repo = config_repo
        self._items = items
        self._config = config or NotificationConfig()
        self._notifier_factory = notifier_factory or self._webhook_notifier

    def _webhook_notifier(self, url: str) -> Notifier:
        return WebhookNotifier(
            url,
            timeout=self._config.webhook_timeout_seconds,
            max_display=self._config.max_display,
        )

    async def get_config(self) -> NotifierConfig:
        return await self._config_repo.get()

    async def update_config(self, config: NotifierConfig) -> NotifierConfig:
        """Validate and store new settings.

        Raises:
            ValueError: Unknown period or malformed notify time.
        """
        if config.period not in VALID_PERIODS:
            raise ValueError(f"period must be one of {VALID_PERIODS}, got {config.period!r}")
        notify_schedule(config.period, config.notify_time)
        return await self._config_repo.upsert(config)

    async def send_digest(self, now: datetime | None = None) -> int:
        """Push items collected in the current window.

        Returns:
            Number of items delivered; 0 when skipped or delivery failed.
        """
        settings = await self._config_repo.get()
        if not settings.enabled:
            logger.debug("Notifications disabled, skipping digest")
            return 0
        if not settings.webhook_url:
            logger.warning("Notifications enabled without a webhook URL, skipping digest")
            return 0

        now = now or datetime.now(timezone.utc)
        since = now - timedelta(hours=settings.window_hours)
        items = await self._items.list_collected_since(since, limit=self._config.max_items)
        if not items:
            logger.info("No new items for digest", since=since.isoformat())
            return 0

        notifier = self._notifier_factory(settings.webhook_url)
        delivered = await notifier.send(settings.title, items)
        if not delivered:
            logger.warning("Digest delivery failed", items=len(items))
            return 0

        logger.info("Digest delivered", items=len(items), period=settings.period)
        return len(items)

    async def send_test(self) -> bool:
        """Send a test message to the configured webhook."""
        settings = await self._config_repo.get()
        if not settings.webhook_url:
            logger.warning("No webhook URL configured")
            return False
        notifier = self._notifier_factory(settings.webhook_url)
        if isinstance(notifier, WebhookNotifier):
            return await notifier.send_test()
        return await notifier.send(settings.title, [])
