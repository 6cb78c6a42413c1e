"""
Crawl orchestrator - runs crawl passes across all active sources.

Per pass:
1. Load active sources (none → empty result)
2. Crawl each source in its own task, at most ``concurrency`` at a time
3. Per source: list recent items, stop at the watermark, skip stored
   content URLs, fetch details, persist, advance the watermark
4. Aggregate per-source outcomes; one failing source never aborts the pass

Also manages subscriptions (subscribe / unsubscribe).
"""

import asyncio
import time
from datetime import datetime, timezone

import structlog

from src.crawler.config import CrawlerConfig
from src.crawler.errors import ContentFetchFailed, SourceAlreadyTracked, StorageError
from src.crawler.schemas import CrawlPassResult, SourceCrawlResult
from src.items.repository import ItemRepository
from src.items.schemas import CollectedItem
from src.notifications.channels import Notifier
from src.observability.logging import bind_context, clear_context
from src.observability.metrics import get_metrics
from src.session.manager import SessionManager
from src.sources.repository import SourcesRepository
from src.sources.schemas import TrackedSource

logger = structlog.get_logger(__name__)


class CrawlOrchestrator:
    """
    Drives crawl passes for every active tracked source.

    Usage:
        orchestrator = CrawlOrchestrator(session, sources_repo, items_repo)
        result = await orchestrator.fetch_all()
    """

    def __init__(
        self,
        session: SessionManager,
        sources: SourcesRepository,
        items: ItemRepository,
        config: CrawlerConfig | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._session = session
        self._sources = sources
        self._items = items
        self._config = config or CrawlerConfig()
        self._notifier = notifier
        self._metrics = get_metrics()

    async def fetch_all(self) -> CrawlPassResult:
        """Run one crawl pass over all active sources.

        Per-source failures are recorded in the result, never raised.

        Raises:
            StorageError: The active source list could not be loaded.
        """
        start_time = time.monotonic()
        result = CrawlPassResult(started_at=datetime.now(timezone.utc))

        sources = await self._sources.list_active()
        result.sources_total = len(sources)
        if not sources:
            logger.info("No active sources, skipping crawl pass")
            result.elapsed_seconds = time.monotonic() - start_time
            self._metrics.record_pass(result.status, result.elapsed_seconds, 0)
            return result

        logger.info(
            "Starting crawl pass",
            sources=len(sources),
            concurrency=self._config.concurrency,
        )
        semaphore = asyncio.Semaphore(self._config.concurrency)

        async def _bounded(source: TrackedSource) -> tuple[SourceCrawlResult, list[CollectedItem]]:
            async with semaphore:
                return await self._crawl_source(source)

        outcomes = await asyncio.gather(*(_bounded(s) for s in sources))

        for source_result, items in outcomes:
            result.sources.append(source_result)
            result.new_items.extend(items)
            if source_result.error is not None:
                result.errors.append(f"{source_result.source_name}: {source_result.error}")

        result.elapsed_seconds = time.monotonic() - start_time
        self._metrics.record_pass(result.status, result.elapsed_seconds, len(sources))
        logger.info(
            "Crawl pass complete",
            status=result.status,
            sources=len(sources),
            failed=result.sources_failed,
            new_items=result.items_collected,
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )

        if result.new_items and self._notifier is not None:
            await self._notify(result.new_items)
        return result

    async def fetch_one(
        self,
        source: TrackedSource,
        stats: SourceCrawlResult | None = None,
    ) -> list[CollectedItem]:
        """Collect new items for one source and advance its watermark.

        Args:
            source: Source to crawl; its ``watermark`` is updated in place
                when the stored watermark moves.
            stats: Optional accumulator for per-source counters.

        Returns:
            The items actually inserted by this call.

        Raises:
            StorageError: An existence check or the batch insert failed;
                the watermark is left where it was.
        """
        stats = stats or SourceCrawlResult(source.source_id, source.name)

        await self._session.ensure_authenticated()
        summaries = await self._session.fetch_item_list(
            source.remote_id, self._config.fetch_count
        )
        stats.items_listed = len(summaries)
        if not summaries:
            logger.info("Source listed no items")
            return []

        pending: list[CollectedItem] = []
        seen: set[str] = set()
        for summary in summaries:
            url = summary.content_url
            if not url:
                logger.debug("Listed item has no content URL", title=summary.title)
                continue
            if source.watermark and url == source.watermark:
                logger.debug("Reached watermark", url=url)
                break
            if url in seen:
                continue
            seen.add(url)

            if await self._items.exists_by_content_url(url):
                stats.items_skipped += 1
                self._metrics.items_skipped.inc()
                continue

            content = ""
            try:
                content = await self._session.fetch_item_detail(url)
            except ContentFetchFailed as e:
                stats.content_failures += 1
                self._metrics.content_fetch_failures.inc()
                logger.warning("Content fetch failed, keeping metadata only", url=url, reason=e.reason)

            pending.append(
                CollectedItem.from_summary(
                    summary,
                    source_id=source.source_id,
                    source_name=source.name,
                    content=content,
                )
            )

        inserted = await self._items.batch_create(pending)
        stats.items_collected = len(inserted)
        self._metrics.items_collected.inc(len(inserted))

        newest_url = summaries[0].content_url
        if inserted and newest_url and newest_url != source.watermark:
            try:
                if await self._sources.update_watermark(source.source_id, newest_url):
                    source.watermark = newest_url
                    stats.watermark_advanced = True
            except StorageError as e:
                logger.warning("Watermark update failed", watermark=newest_url, error=str(e))

        logger.info(
            "Source crawled",
            listed=stats.items_listed,
            collected=stats.items_collected,
            skipped=stats.items_skipped,
            content_failures=stats.content_failures,
        )
        return inserted

    async def subscribe(self, name: str, alias: str = "") -> TrackedSource:
        """Start tracking a remote source by its human-readable name.

        A previously unsubscribed source with the same name is reactivated.

        Raises:
            SourceAlreadyTracked: An active source with this name exists.
            SourceNotFound: The remote search found no match.
        """
        existing = await self._sources.get_by_name(name)
        if existing is not None:
            if existing.is_active:
                raise SourceAlreadyTracked(name)
            await self._sources.reactivate(existing.source_id)
            existing.is_active = True
            logger.info("Source reactivated", source_id=existing.source_id, name=name)
            return existing

        await self._session.ensure_authenticated()
        remote_id = await self._session.search_source(name)
        source = await self._sources.create(
            TrackedSource(name=name, alias=alias, remote_id=remote_id)
        )
        logger.info("Source subscribed", source_id=source.source_id, name=name)
        return source

    async def unsubscribe(self, source_id: str) -> bool:
        """Stop tracking a source. Returns False if it was not active."""
        changed = await self._sources.deactivate(source_id)
        logger.info("Source unsubscribed", source_id=source_id, changed=changed)
        return changed

    async def _crawl_source(
        self, source: TrackedSource
    ) -> tuple[SourceCrawlResult, list[CollectedItem]]:
        stats = SourceCrawlResult(source.source_id, source.name)
        start = time.monotonic()
        bind_context(source_id=source.source_id, source_name=source.name)
        try:
            items = await self.fetch_one(source, stats)
        except Exception as e:
            stats.error = str(e) or type(e).__name__
            stats.elapsed_seconds = time.monotonic() - start
            self._metrics.record_source("error", stats.elapsed_seconds)
            logger.error("Source crawl failed", error=stats.error, error_type=type(e).__name__)
            return stats, []
        finally:
            clear_context()

        stats.elapsed_seconds = time.monotonic() - start
        self._metrics.record_source("success", stats.elapsed_seconds)
        return stats, items

    async def _notify(self, items: list[CollectedItem]) -> None:
        try:
            delivered = await self._notifier.send(self._config.notify_title, items)
        except Exception as e:
            logger.warning("Pass notification failed", error=str(e))
            return
        if not delivered:
            logger.warning("Pass notification not delivered", items=len(items))
