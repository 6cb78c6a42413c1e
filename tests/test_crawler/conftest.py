"""In-memory collaborators for CrawlOrchestrator tests."""

import asyncio

import pytest

from src.crawler.config import CrawlerConfig
from src.crawler.errors import ContentFetchFailed, SourceNotFound, StorageError
from src.crawler.orchestrator import CrawlOrchestrator
from src.items.schemas import CollectedItem, RemoteItemSummary
from src.sources.schemas import TrackedSource


class FakeSession:
    """Stands in for SessionManager.

    ``listings`` maps remote_id to the summaries returned newest first;
    a remote_id mapped to an exception raises it instead.
    """

    def __init__(self) -> None:
        self.listings: dict[str, list[RemoteItemSummary] | Exception] = {}
        self.failing_details: set[str] = set()
        self.search_results: dict[str, str] = {}
        self.logins = 0
        self.detail_calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self.list_delay = 0.0

    async def ensure_authenticated(self) -> None:
        self.logins += 1

    async def search_source(self, name: str) -> str:
        if name not in self.search_results:
            raise SourceNotFound(name)
        return self.search_results[name]

    async def fetch_item_list(self, remote_id: str, count: int) -> list[RemoteItemSummary]:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.list_delay:
                await asyncio.sleep(self.list_delay)
            listing = self.listings.get(remote_id, [])
            if isinstance(listing, Exception):
                raise listing
            return listing[:count]
        finally:
            self.active -= 1

    async def fetch_item_detail(self, url: str) -> str:
        self.detail_calls.append(url)
        if url in self.failing_details:
            raise ContentFetchFailed(url, "item unavailable")
        return f"<div>{url}</div>"


class InMemorySources:
    def __init__(self) -> None:
        self.rows: dict[str, TrackedSource] = {}
        self.fail_watermark = False
        self.watermark_writes: list[tuple[str, str]] = []

    def add(self, source: TrackedSource) -> TrackedSource:
        self.rows[source.source_id] = source
        return source

    async def list_active(self) -> list[TrackedSource]:
        return [s for s in self.rows.values() if s.is_active]

    async def get_by_name(self, name: str) -> TrackedSource | None:
        return next((s for s in self.rows.values() if s.name == name), None)

    async def create(self, source: TrackedSource) -> TrackedSource:
        return self.add(source)

    async def update_watermark(self, source_id: str, watermark: str) -> bool:
        if self.fail_watermark:
            raise StorageError("update watermark failed: connection reset")
        if source_id not in self.rows:
            return False
        self.rows[source_id].watermark = watermark
        self.watermark_writes.append((source_id, watermark))
        return True

    async def deactivate(self, source_id: str) -> bool:
        source = self.rows.get(source_id)
        if source is None or not source.is_active:
            return False
        source.is_active = False
        return True

    async def reactivate(self, source_id: str) -> bool:
        source = self.rows.get(source_id)
        if source is None or source.is_active:
            return False
        source.is_active = True
        return True


class InMemoryItems:
    def __init__(self) -> None:
        self.by_url: dict[str, CollectedItem] = {}
        self.failing_exists: set[str] = set()
        self.conflicts: set[str] = set()

    async def exists_by_content_url(self, content_url: str) -> bool:
        if content_url in self.failing_exists:
            raise StorageError("check item existence failed")
        return content_url in self.by_url

    async def batch_create(self, items: list[CollectedItem]) -> list[CollectedItem]:
        inserted = []
        for item in items:
            if item.content_url in self.by_url or item.content_url in self.conflicts:
                continue
            self.by_url[item.content_url] = item
            inserted.append(item)
        return inserted


class RecordingNotifier:
    name = "recording"

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[CollectedItem]]] = []

    async def send(self, title: str, items: list[CollectedItem]) -> bool:
        self.calls.append((title, items))
        return True


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sources() -> InMemorySources:
    return InMemorySources()


@pytest.fixture
def items() -> InMemoryItems:
    return InMemoryItems()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def orchestrator(session, sources, items, notifier) -> CrawlOrchestrator:
    return CrawlOrchestrator(
        session, sources, items, CrawlerConfig(concurrency=3, fetch_count=10), notifier
    )
