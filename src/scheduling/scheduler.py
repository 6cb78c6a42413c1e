"""
Crawl scheduler - periodic crawl passes and notification digests.

Wraps an APScheduler ``AsyncIOScheduler`` with two jobs:
- ``crawl``: runs ``CrawlOrchestrator.fetch_all`` on the interval schedule
  (``max_instances=1`` so a slow pass is never overlapped by the next)
- ``notify``: runs ``NotificationService.send_digest`` hourly or daily,
  installed only while notifications are enabled
"""

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.crawler.orchestrator import CrawlOrchestrator
from src.crawler.schemas import CrawlPassResult
from src.notifications.service import NotificationService
from src.scheduling.config import SchedulerConfig
from src.scheduling.translator import (
    interval_to_schedule,
    notify_schedule,
    parse_schedule,
)

logger = structlog.get_logger(__name__)

CRAWL_JOB_ID = "crawl"
NOTIFY_JOB_ID = "notify"


class CrawlScheduler:
    """
    Schedules crawl passes and notification digests.

    Usage:
        scheduler = CrawlScheduler(orchestrator, notifications)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        orchestrator: CrawlOrchestrator,
        notifications: NotificationService | None = None,
        config: SchedulerConfig | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._notifications = notifications
        self._config = config or SchedulerConfig()
        self._scheduler = scheduler or AsyncIOScheduler(timezone=self._config.timezone)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def crawl_trigger(self) -> BaseTrigger:
        """Trigger for the crawl job.

        Raises:
            InvalidInterval: If the configured interval is out of range.
        """
        minutes = self._config.interval_minutes
        expr = interval_to_schedule(minutes)
        if self._config.exact_interval:
            return IntervalTrigger(minutes=minutes, timezone=self._config.timezone)
        return CronTrigger(
            **parse_schedule(expr).as_trigger_kwargs(),
            timezone=self._config.timezone,
        )

    async def start(self) -> None:
        """Install the jobs and start the scheduler.

        Raises:
            InvalidInterval: If the configured interval is out of range.
        """
        trigger = self.crawl_trigger()
        self._scheduler.add_job(
            self._run_crawl,
            trigger,
            id=CRAWL_JOB_ID,
            name="crawl pass",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self._config.misfire_grace_seconds,
            replace_existing=True,
        )
        logger.info(
            "Crawl job scheduled",
            interval_minutes=self._config.interval_minutes,
            exact_interval=self._config.exact_interval,
            trigger=str(trigger),
        )

        await self.reload_notify_job()
        self._scheduler.start()
        logger.info("Scheduler started")

        if self._config.run_on_start:
            await self.run_once()

    async def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    async def run_once(self) -> CrawlPassResult:
        """Run one crawl pass immediately, outside the schedule."""
        logger.info("Manual crawl pass triggered")
        return await self._orchestrator.fetch_all()

    async def reload_notify_job(self) -> bool:
        """Re-read notifier settings and (re)install the notify job.

        Returns:
            True if a notify job is installed afterwards.
        """
        if self._scheduler.get_job(NOTIFY_JOB_ID) is not None:
            self._scheduler.remove_job(NOTIFY_JOB_ID)

        if self._notifications is None:
            return False

        settings = await self._notifications.get_config()
        if not settings.is_deliverable:
            logger.info(
                "Notify job not installed",
                enabled=settings.enabled,
                has_webhook=bool(settings.webhook_url),
            )
            return False

        expr = notify_schedule(settings.period, settings.notify_time)
        self._scheduler.add_job(
            self._run_notify,
            CronTrigger(
                **parse_schedule(expr).as_trigger_kwargs(),
                timezone=self._config.timezone,
            ),
            id=NOTIFY_JOB_ID,
            name="notification digest",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("Notify job scheduled", period=settings.period, schedule=expr)
        return True

    async def _run_crawl(self) -> None:
        try:
            await self._orchestrator.fetch_all()
        except Exception as e:
            logger.error("Scheduled crawl pass failed", error=str(e), error_type=type(e).__name__)

    async def _run_notify(self) -> None:
        try:
            await self._notifications.send_digest()
        except Exception as e:
            logger.error("Scheduled digest failed", error=str(e), error_type=type(e).__name__)
