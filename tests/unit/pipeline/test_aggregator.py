"""
Unit tests for CellAggregator.

Tests fan-out over cells, merging of per-cell results and isolation of
per-cell failures.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from dashquery.data.schemas import Cell, Dashboard
from dashquery.pipeline.aggregator import CellAggregator
from dashquery.util.errors import DecodeError, TransportError


def make_dashboard(dashboard_id: str, *views: str) -> Dashboard:
    return Dashboard(
        id=dashboard_id,
        name=dashboard_id.upper(),
        cells=[Cell.model_validate({"links": {"view": view}}) for view in views],
    )


class TestCellAggregator:
    """Test CellAggregator functionality."""

    @pytest.fixture
    def client(self):
        client = Mock()
        client.fetch_cell_queries = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_merges_all_cell_queries(self, client):
        answers = {"/c1": ["SELECT 1"], "/c2": ["SELECT 2", "SELECT 3"], "/c3": []}
        client.fetch_cell_queries.side_effect = lambda cell: answers[cell.view_link]

        queries = await CellAggregator(client).aggregate(make_dashboard("d1", "/c1", "/c2", "/c3"))

        assert sorted(queries) == ["SELECT 1", "SELECT 2", "SELECT 3"]
        assert client.fetch_cell_queries.await_count == 3

    @pytest.mark.asyncio
    async def test_failed_cell_is_omitted(self, client):
        async def fetch(cell):
            if cell.view_link == "/bad":
                raise TransportError("http://u/bad", "HTTP 500", status=500)
            if cell.view_link == "/garbled":
                raise DecodeError("http://u/garbled", "Expecting value")
            return [f"q{cell.view_link}"]

        client.fetch_cell_queries.side_effect = fetch

        queries = await CellAggregator(client).aggregate(
            make_dashboard("d1", "/a", "/bad", "/b", "/garbled")
        )

        assert sorted(queries) == ["q/a", "q/b"]

    @pytest.mark.asyncio
    async def test_failed_cell_is_logged(self, client, caplog):
        client.fetch_cell_queries.side_effect = TransportError("http://u/bad", "HTTP 500", status=500)

        with caplog.at_level("WARNING"):
            queries = await CellAggregator(client).aggregate(make_dashboard("d1", "/bad"))

        assert queries == []
        assert "failed to get cell queries for '/bad'" in caplog.text

    @pytest.mark.asyncio
    async def test_no_cells(self, client):
        queries = await CellAggregator(client).aggregate(make_dashboard("d1"))

        assert queries == []
        client.fetch_cell_queries.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cells_fetched_concurrently(self, client):
        """Every cell fetch is in flight before any of them completes."""
        state = {"active": 0, "peak": 0}

        async def fetch(cell):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return [cell.view_link]

        client.fetch_cell_queries.side_effect = fetch
        views = [f"/c{i}" for i in range(12)]

        queries = await CellAggregator(client).aggregate(make_dashboard("d1", *views))

        assert sorted(queries) == sorted(views)
        assert state["peak"] == len(views)

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self, client):
        client.fetch_cell_queries.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await CellAggregator(client).aggregate(make_dashboard("d1", "/c1"))
