"""
Dashboard query extractor.

Pulls the dashboard list from a monitoring platform's API, fetches every
cell's query definitions concurrently and writes one JSON artifact per
dashboard.
"""

__version__ = "0.1.0"
__description__ = "Concurrent extractor for dashboard cell queries"

from .config import ExtractorConfig, load_config
from .pipeline.run import DashboardExtractor, run_extraction

__all__ = ["DashboardExtractor", "ExtractorConfig", "load_config", "run_extraction"]
