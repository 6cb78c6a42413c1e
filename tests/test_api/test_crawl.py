"""Tests for the on-demand crawl endpoint."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

from src.crawler.errors import StorageError
from src.crawler.schemas import CrawlPassResult, SourceCrawlResult


class TestTriggerCrawl:
    def test_pass_summary(self, client, mock_orchestrator):
        result = CrawlPassResult(
            started_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
            sources_total=2,
            sources=[
                SourceCrawlResult("src_1", "Semiconductor Weekly", items_listed=3, items_collected=2),
                SourceCrawlResult("src_2", "Broken", error="remote error 200013"),
            ],
            elapsed_seconds=1.234,
        )
        mock_orchestrator.fetch_all = AsyncMock(return_value=result)

        response = client.post("/crawl")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "partial"
        assert data["sources_total"] == 2
        assert data["sources_failed"] == 1
        assert data["elapsed_seconds"] == 1.23
        assert data["sources"][1]["error"] == "remote error 200013"

    def test_no_sources(self, client, mock_orchestrator):
        mock_orchestrator.fetch_all = AsyncMock(
            return_value=CrawlPassResult(started_at=datetime.now(timezone.utc))
        )

        assert client.post("/crawl").json()["status"] == "empty"

    def test_source_list_unavailable(self, client, mock_orchestrator):
        mock_orchestrator.fetch_all = AsyncMock(side_effect=StorageError("down"))

        assert client.post("/crawl").status_code == 500
