"""
Bounded worker pool for dashboard processing.

A fixed number of workers drain a queue that is fully loaded before they
start. For each dashboard a worker checks for an existing artifact, gathers
the cell queries and writes the result. Per-dashboard failures are logged and
the dashboard is skipped; nothing is retried or requeued.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..config import ExtractorConfig
from ..data.schemas import Dashboard
from ..util.errors import DashQueryError
from ..util.log import get_logger, log_extra
from .aggregator import CellAggregator
from .artifacts import ArtifactStore
from .client import UpstreamClient

logger = get_logger(__name__)


@dataclass
class RunReport:
    """Outcome of one pool run."""
    total: int = 0
    written: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)
    end_time: float = 0.0

    @property
    def duration_ms(self) -> float:
        end = self.end_time or time.time()
        return (end - self.start_time) * 1000

    def finalize(self) -> None:
        if not self.end_time:
            self.end_time = time.time()

    def summary(self) -> str:
        return (
            f"{self.total} dashboards: {len(self.written)} written, "
            f"{len(self.skipped)} skipped, {len(self.failed)} failed "
            f"in {self.duration_ms:.0f}ms"
        )


class DashboardWorkerPool:
    """Runs the per-dashboard pipeline across ``config.workers`` workers."""

    def __init__(self, config: ExtractorConfig, client: UpstreamClient, store: ArtifactStore):
        self.config = config
        self.store = store
        self.aggregator = CellAggregator(client)

    async def run(self, dashboards: Sequence[Dashboard]) -> RunReport:
        """Process every dashboard; returns once all workers have exited."""
        report = RunReport(total=len(dashboards))

        queue: asyncio.Queue = asyncio.Queue(maxsize=max(len(dashboards), 1))
        for dashboard in dashboards:
            queue.put_nowait(dashboard)

        worker_count = min(self.config.workers, max(len(dashboards), 1))
        logger.info("Processing %d dashboards with %d workers", len(dashboards), worker_count)

        workers = [
            asyncio.create_task(self._worker(f"worker-{i}", queue, report))
            for i in range(worker_count)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            # Workers must not outlive run(); the caller closes the session next.
            for task in workers:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        report.finalize()
        logger.info("Finished: %s", report.summary())
        return report

    async def _worker(self, worker_name: str, queue: asyncio.Queue, report: RunReport) -> None:
        """Pop dashboards until the queue is drained."""
        logger.debug("Worker %s started", worker_name, extra=log_extra(worker=worker_name))

        while True:
            try:
                dashboard = queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            try:
                await self.process(dashboard, report, worker_name)
            finally:
                queue.task_done()

        logger.debug("Worker %s stopped", worker_name, extra=log_extra(worker=worker_name))

    async def process(self, dashboard: Dashboard, report: RunReport, worker_name: str = "") -> None:
        """Run the per-dashboard pipeline: check, aggregate, write."""
        extra = log_extra(dashboard_id=dashboard.id, worker=worker_name or None)

        try:
            if self.store.exists(dashboard.id):
                logger.info("Dashboard %s already written, skipping", dashboard.id, extra=extra)
                report.skipped.append(dashboard.id)
                return

            start_time = time.time()
            queries = await self.aggregator.aggregate(dashboard)
            dashboard.complete(queries)
            self.store.write(dashboard)
        except DashQueryError as e:
            logger.error(
                "failed to process dashboard %r: %s",
                dashboard.id, e.message,
                extra={**extra, "error": e.to_dict()},
            )
            report.failed[dashboard.id] = e.message
            return

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Wrote dashboard %s (%d queries)",
            dashboard.id, len(dashboard.query_texts),
            extra={**extra, "duration_ms": round(duration_ms, 1)},
        )
        report.written.append(dashboard.id)
