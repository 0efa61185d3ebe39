"""Fetch pipeline: upstream client, cell aggregation, worker pool and persistence."""

from .aggregator import CellAggregator
from .artifacts import ArtifactStore
from .client import UpstreamClient
from .pool import DashboardWorkerPool, RunReport
from .run import DashboardExtractor, run_extraction

__all__ = [
    "ArtifactStore",
    "CellAggregator",
    "DashboardExtractor",
    "DashboardWorkerPool",
    "RunReport",
    "UpstreamClient",
    "run_extraction",
]
