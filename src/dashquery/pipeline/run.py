"""
Extraction run orchestration.

Fetches the dashboard list, applies the limit, prepares the destination
directory and hands the dashboards to the worker pool.
"""

from typing import List

from ..config import ExtractorConfig
from ..data.schemas import Dashboard
from ..util.errors import NoDashboardsError, create_error_context
from ..util.log import get_logger
from .artifacts import ArtifactStore
from .client import UpstreamClient
from .pool import DashboardWorkerPool, RunReport

logger = get_logger(__name__)


class DashboardExtractor:
    """One extraction run against a configured upstream."""

    def __init__(self, config: ExtractorConfig):
        self.config = config
        self.store = ArtifactStore(config.dest_dir)

    def select(self, dashboards: List[Dashboard]) -> List[Dashboard]:
        """Apply the configured dashboard limit, keeping list order."""
        limit = self.config.effective_limit
        if limit is None:
            return list(dashboards)
        return list(dashboards[:limit])

    async def run(self) -> RunReport:
        """Execute the run.

        Raises:
            DashQueryError: if the list cannot be fetched, is empty, or the
                destination directory cannot be created
        """
        async with UpstreamClient(self.config) as client:
            dashboards = await client.list_dashboards()
            if not dashboards:
                raise NoDashboardsError(
                    self.config.dashboards_url,
                    context=create_error_context("run", "list_dashboards", url=self.config.dashboards_url),
                )

            selected = self.select(dashboards)
            if len(selected) < len(dashboards):
                logger.info("Limiting run to %d of %d dashboards", len(selected), len(dashboards))

            self.store.prepare()

            pool = DashboardWorkerPool(self.config, client, self.store)
            return await pool.run(selected)


async def run_extraction(config: ExtractorConfig) -> RunReport:
    """Run a full extraction with ``config``."""
    return await DashboardExtractor(config).run()
