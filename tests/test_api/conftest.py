"""Shared fixtures for API tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.auth import verify_api_key
from src.api.dependencies import (
    get_database,
    get_item_repository,
    get_notification_service,
    get_orchestrator,
    get_scheduler,
    get_session_manager,
    get_sources_repository,
)
from src.notifications.schemas import NotifierConfig
from src.sources.schemas import TrackedSource


def _make_source(
    source_id: str = "src_abc123def456",
    name: str = "Semiconductor Weekly",
    **kwargs,
) -> TrackedSource:
    """Helper to create a TrackedSource with sensible defaults."""
    return TrackedSource(
        source_id=source_id,
        name=name,
        alias=kwargs.pop("alias", "semis"),
        remote_id=kwargs.pop("remote_id", "MzA5MDAyNjQ3Mw=="),
        watermark=kwargs.pop("watermark", ""),
        is_active=kwargs.pop("is_active", True),
        created_at=kwargs.pop("created_at", datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)),
        updated_at=kwargs.pop("updated_at", datetime(2026, 2, 5, 8, 30, tzinfo=timezone.utc)),
    )


@pytest.fixture
def make_source():
    return _make_source


@pytest.fixture
def mock_db():
    """Mock Database reporting healthy."""
    db = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def mock_sources_repo():
    """Mock SourcesRepository."""
    repo = AsyncMock()
    repo.list_sources = AsyncMock(return_value=([], 0))
    return repo


@pytest.fixture
def mock_item_repo():
    """Mock ItemRepository."""
    repo = AsyncMock()
    repo.list_items = AsyncMock(return_value=([], 0))
    return repo


@pytest.fixture
def mock_orchestrator():
    """Mock CrawlOrchestrator."""
    return AsyncMock()


@pytest.fixture
def mock_session():
    """Mock SessionManager."""
    session = MagicMock()
    session.is_authenticated = False
    return session


@pytest.fixture
def mock_notification_service():
    """Mock NotificationService."""
    service = AsyncMock()
    service.get_config = AsyncMock(return_value=NotifierConfig())
    service.update_config = AsyncMock(side_effect=lambda config: config)
    service.send_test = AsyncMock(return_value=True)
    service.send_digest = AsyncMock(return_value=0)
    return service


@pytest.fixture
def mock_scheduler():
    """Mock CrawlScheduler; tests opt in by overriding get_scheduler."""
    scheduler = MagicMock()
    scheduler.running = True
    scheduler.reload_notify_job = AsyncMock(return_value=True)
    return scheduler


@pytest.fixture
def app(
    mock_db,
    mock_sources_repo,
    mock_item_repo,
    mock_orchestrator,
    mock_session,
    mock_notification_service,
):
    app = create_app()

    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    app.dependency_overrides[get_database] = lambda: mock_db
    app.dependency_overrides[get_sources_repository] = lambda: mock_sources_repo
    app.dependency_overrides[get_item_repository] = lambda: mock_item_repo
    app.dependency_overrides[get_orchestrator] = lambda: mock_orchestrator
    app.dependency_overrides[get_session_manager] = lambda: mock_session
    app.dependency_overrides[get_notification_service] = lambda: mock_notification_service
    app.dependency_overrides[get_scheduler] = lambda: None

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """FastAPI TestClient with dependency overrides."""
    with TestClient(app) as c:
        yield c
