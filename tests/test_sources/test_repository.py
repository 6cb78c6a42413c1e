"""Tests for SourcesRepository."""

from unittest.mock import AsyncMock

import asyncpg
import pytest

from src.crawler.errors import StorageError
from src.sources.repository import SourcesRepository
from src.sources.schemas import TrackedSource


class TestCreate:
    """Tests for inserting a source."""

    @pytest.mark.asyncio
    async def test_passes_correct_params(
        self, mock_database: AsyncMock, source_row: dict
    ) -> None:
        repo = SourcesRepository(mock_database)
        mock_database.fetchrow.return_value = source_row
        source = TrackedSource(
            name="Semiconductor Weekly",
            remote_id="MzA5MDAyNjQ3Mw==",
            alias="semis",
            source_id="src_abc123def456",
        )

        created = await repo.create(source)

        args = mock_database.fetchrow.call_args[0]
        assert "INSERT INTO tracked_sources" in args[0]
        assert args[1:] == (
            "src_abc123def456",
            "Semiconductor Weekly",
            "semis",
            "MzA5MDAyNjQ3Mw==",
            "",
            "",
            True,
        )
        assert created.created_at is not None
        assert created.watermark == source_row["watermark"]

    def test_generated_ids_are_prefixed(self) -> None:
        source = TrackedSource(name="a", remote_id="b")
        assert source.source_id.startswith("src_")
        assert source.watermark == ""


class TestLookups:
    """Tests for single-row reads."""

    @pytest.mark.asyncio
    async def test_get_by_name(self, mock_database: AsyncMock, source_row: dict) -> None:
        mock_database.fetchrow.return_value = source_row
        repo = SourcesRepository(mock_database)

        source = await repo.get_by_name("Semiconductor Weekly")

        assert source.source_id == "src_abc123def456"
        assert mock_database.fetchrow.call_args[0][1] == "Semiconductor Weekly"

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, mock_database: AsyncMock) -> None:
        repo = SourcesRepository(mock_database)
        assert await repo.get_by_id("src_nope") is None

    @pytest.mark.asyncio
    async def test_list_active_filters_and_orders(
        self, mock_database: AsyncMock, source_row: dict
    ) -> None:
        mock_database.fetch.return_value = [source_row]
        repo = SourcesRepository(mock_database)

        sources = await repo.list_active()

        sql = mock_database.fetch.call_args[0][0]
        assert "is_active = TRUE" in sql
        assert "ORDER BY created_at" in sql
        assert [s.name for s in sources] == ["Semiconductor Weekly"]


class TestListSources:
    """Tests for paginated listing."""

    @pytest.mark.asyncio
    async def test_pagination_params(self, mock_database: AsyncMock, source_row: dict) -> None:
        mock_database.fetchval.return_value = 7
        mock_database.fetch.return_value = [source_row]
        repo = SourcesRepository(mock_database)

        sources, total = await repo.list_sources(active_only=True, limit=5, offset=5)

        assert total == 7
        assert len(sources) == 1
        assert "WHERE is_active = TRUE" in mock_database.fetchval.call_args[0][0]
        assert mock_database.fetch.call_args[0][1:] == (5, 5)

    @pytest.mark.asyncio
    async def test_all_sources_has_no_filter(self, mock_database: AsyncMock) -> None:
        repo = SourcesRepository(mock_database)

        _, total = await repo.list_sources()

        assert total == 0
        assert "WHERE" not in mock_database.fetchval.call_args[0][0]


class TestUpdates:
    """Tests for watermark and activation updates."""

    @pytest.mark.asyncio
    async def test_update_watermark(self, mock_database: AsyncMock) -> None:
        mock_database.execute.return_value = "UPDATE 1"
        repo = SourcesRepository(mock_database)

        changed = await repo.update_watermark("src_1", "https://mp.example.com/s/new")

        assert changed is True
        args = mock_database.execute.call_args[0]
        assert "SET watermark = $2" in args[0]
        assert args[1:] == ("src_1", "https://mp.example.com/s/new")

    @pytest.mark.asyncio
    async def test_update_watermark_unknown_source(self, mock_database: AsyncMock) -> None:
        mock_database.execute.return_value = "UPDATE 0"
        repo = SourcesRepository(mock_database)

        assert await repo.update_watermark("src_gone", "x") is False

    @pytest.mark.asyncio
    async def test_deactivate_only_active_rows(self, mock_database: AsyncMock) -> None:
        mock_database.execute.return_value = "UPDATE 1"
        repo = SourcesRepository(mock_database)

        assert await repo.deactivate("src_1") is True
        assert "is_active = TRUE" in mock_database.execute.call_args[0][0]

    @pytest.mark.asyncio
    async def test_reactivate_only_inactive_rows(self, mock_database: AsyncMock) -> None:
        mock_database.execute.return_value = "UPDATE 0"
        repo = SourcesRepository(mock_database)

        assert await repo.reactivate("src_1") is False
        assert "is_active = FALSE" in mock_database.execute.call_args[0][0]


class TestErrors:
    @pytest.mark.asyncio
    async def test_driver_errors_become_storage_errors(
        self, mock_database: AsyncMock
    ) -> None:
        mock_database.fetch.side_effect = asyncpg.InterfaceError("pool is closed")
        repo = SourcesRepository(mock_database)

        with pytest.raises(StorageError, match="list active sources"):
            await repo.list_active()
