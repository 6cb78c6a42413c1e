"""
Prometheus metrics for the crawl pipeline.

Defines and exposes metrics for:
- Login attempts per method (cookie / interactive)
- Crawl passes and per-source outcomes
- Items collected and content-fetch failures
- Pass and source latency

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for crawl latency histograms (in seconds); driver calls are slow
CRAWL_BUCKETS = (1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0)


class MetricsCollector:
    """
    Prometheus metrics collector for article-tracker.

    Usage:
        metrics = get_metrics()
        metrics.start_server()
        metrics.record_login("cookie", "success")
    """

    def __init__(self):
        self.login_attempts = Counter(
            "article_tracker_login_attempts_total",
            "Login attempts by method and outcome",
            ["method", "status"],  # method: cookie, interactive
        )

        self.crawl_passes = Counter(
            "article_tracker_crawl_passes_total",
            "Completed crawl passes",
            ["status"],  # success, partial, empty
        )

        self.sources_crawled = Counter(
            "article_tracker_sources_crawled_total",
            "Per-source crawl outcomes",
            ["status"],  # success, error
        )

        self.items_collected = Counter(
            "article_tracker_items_collected_total",
            "Items persisted by crawl passes",
        )

        self.items_skipped = Counter(
            "article_tracker_items_skipped_total",
            "Listed items skipped because they were already collected",
        )

        self.content_fetch_failures = Counter(
            "article_tracker_content_fetch_failures_total",
            "Item detail fetches that degraded to empty content",
        )

        self.pass_latency = Histogram(
            "article_tracker_crawl_pass_seconds",
            "Duration of a full crawl pass",
            buckets=CRAWL_BUCKETS,
        )

        self.source_latency = Histogram(
            "article_tracker_source_crawl_seconds",
            "Duration of a single source crawl",
            buckets=CRAWL_BUCKETS,
        )

        self.active_sources = Gauge(
            "article_tracker_active_sources",
            "Active tracked sources seen by the last pass",
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    def record_login(self, method: str, status: str) -> None:
        self.login_attempts.labels(method=method, status=status).inc()

    def record_source(self, status: str, latency: float | None = None) -> None:
        """
        Record the outcome of one source crawl.

        Args:
            status: success or error
            latency: Optional source latency in seconds
        """
        self.sources_crawled.labels(status=status).inc()
        if latency is not None:
            self.source_latency.observe(latency)

    def record_pass(self, status: str, latency: float, active_sources: int) -> None:
        """
        Record a completed crawl pass.

        Args:
            status: success, partial or empty
            latency: Pass duration in seconds
            active_sources: Number of sources the pass loaded
        """
        self.crawl_passes.labels(status=status).inc()
        self.pass_latency.observe(latency)
        self.active_sources.set(active_sources)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
