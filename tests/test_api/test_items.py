"""Tests for the item listing endpoint."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

from src.crawler.errors import StorageError
from src.items.schemas import CollectedItem


def _item(content: str = "") -> CollectedItem:
    return CollectedItem(
        source_id="src_1",
        source_name="Semiconductor Weekly",
        content_url="https://mp.example.com/s/1",
        title="HBM supply update",
        content=content,
        published_at=datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc),
    )


class TestListItems:
    def test_filters_forwarded(self, client, mock_item_repo):
        mock_item_repo.list_items = AsyncMock(return_value=([_item("<p>x</p>")], 1))

        response = client.get(
            "/items",
            params={
                "source_id": "src_1",
                "keyword": "HBM",
                "since": "2026-01-01T00:00:00Z",
                "limit": 10,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["has_content"] is True
        assert "content" not in data["items"][0]
        kwargs = mock_item_repo.list_items.call_args.kwargs
        assert kwargs["source_id"] == "src_1"
        assert kwargs["keyword"] == "HBM"
        assert kwargs["since"] == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert kwargs["until"] is None
        assert kwargs["limit"] == 10

    def test_item_without_content(self, client, mock_item_repo):
        mock_item_repo.list_items = AsyncMock(return_value=([_item()], 1))

        data = client.get("/items").json()

        assert data["items"][0]["has_content"] is False
        assert data["items"][0]["published_at"].startswith("2026-02-01T08:00")

    def test_bad_date(self, client):
        assert client.get("/items?since=yesterday").status_code == 422

    def test_storage_error(self, client, mock_item_repo):
        mock_item_repo.list_items = AsyncMock(side_effect=StorageError("down"))

        assert client.get("/items").status_code == 500
