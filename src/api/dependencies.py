"""
Dependency injection for FastAPI endpoints.

Instances are created lazily on first request and shared for the life of
the process. The browser session is only started when an endpoint needs
the orchestrator.
"""

import structlog

from src.crawler.orchestrator import CrawlOrchestrator
from src.items.repository import ItemRepository
from src.notifications.repository import NotifierConfigRepository
from src.notifications.service import NotificationService
from src.scheduling.scheduler import CrawlScheduler
from src.session.config import SessionConfig
from src.session.driver import PlaywrightDriver
from src.session.manager import SessionManager
from src.session.store import SessionStore
from src.sources.repository import SourcesRepository
from src.storage.database import Database

logger = structlog.get_logger(__name__)

# Global instances (initialized on first request)
_database: Database | None = None
_session_manager: SessionManager | None = None
_orchestrator: CrawlOrchestrator | None = None
_notification_service: NotificationService | None = None
_scheduler: CrawlScheduler | None = None


async def get_database() -> Database:
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def get_sources_repository() -> SourcesRepository:
    return SourcesRepository(await get_database())


async def get_item_repository() -> ItemRepository:
    return ItemRepository(await get_database())


def get_session_manager() -> SessionManager:
    """Session manager backed by a lazily launched Playwright browser."""
    global _session_manager

    if _session_manager is None:
        config = SessionConfig()
        _session_manager = SessionManager(
            PlaywrightDriver(headless=config.headless, user_agent=config.user_agent),
            SessionStore(config.cookie_file),
            config,
        )

    return _session_manager


async def get_orchestrator() -> CrawlOrchestrator:
    global _orchestrator

    if _orchestrator is None:
        db = await get_database()
        _orchestrator = CrawlOrchestrator(
            get_session_manager(),
            SourcesRepository(db),
            ItemRepository(db),
        )

    return _orchestrator


async def get_notification_service() -> NotificationService:
    global _notification_service

    if _notification_service is None:
        db = await get_database()
        _notification_service = NotificationService(
            NotifierConfigRepository(db),
            ItemRepository(db),
        )

    return _notification_service


def get_scheduler() -> CrawlScheduler | None:
    """The in-process scheduler, if ``serve`` started one."""
    return _scheduler


def set_scheduler(scheduler: CrawlScheduler | None) -> None:
    global _scheduler
    _scheduler = scheduler


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _session_manager, _orchestrator, _notification_service, _scheduler

    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None

    _orchestrator = None
    _notification_service = None

    if _session_manager is not None:
        try:
            await _session_manager.close()
        except Exception as e:
            logger.warning("Failed to close browser session", error=str(e))
        _session_manager = None

    if _database is not None:
        await _database.close()
        _database = None
