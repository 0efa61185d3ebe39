"""
Cell aggregation for a single dashboard.

Fetches every cell of a dashboard concurrently and merges their query texts.
Each fetch returns its own result; the results are combined only after all
fetches have finished, so no state is shared between the concurrent tasks.
"""

import asyncio
from typing import List

from ..data.schemas import Cell, Dashboard
from ..util.errors import DashQueryError
from ..util.log import get_logger, log_extra
from .client import UpstreamClient

logger = get_logger(__name__)


class CellAggregator:
    """Collects the query texts of all cells on a dashboard."""

    def __init__(self, client: UpstreamClient):
        self.client = client

    async def aggregate(self, dashboard: Dashboard) -> List[str]:
        """Return the queries of every cell that could be fetched.

        One fetch per cell runs concurrently with no width cap. A failed cell
        is logged and contributes nothing; it never fails the dashboard.
        """
        if not dashboard.cells:
            return []

        per_cell = await asyncio.gather(
            *(self._fetch_cell(dashboard, cell) for cell in dashboard.cells)
        )

        queries: List[str] = []
        for cell_queries in per_cell:
            queries.extend(cell_queries)

        logger.debug(
            "Aggregated %d queries from %d cells of dashboard %s",
            len(queries), len(dashboard.cells), dashboard.id,
            extra=log_extra(dashboard_id=dashboard.id),
        )
        return queries

    async def _fetch_cell(self, dashboard: Dashboard, cell: Cell) -> List[str]:
        try:
            return await self.client.fetch_cell_queries(cell)
        except DashQueryError as e:
            logger.warning(
                "failed to get cell queries for %r: %s",
                cell.view_link, e.message,
                extra=log_extra(dashboard_id=dashboard.id, cell_link=cell.view_link, error=e.to_dict()),
            )
            return []
