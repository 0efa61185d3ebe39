#!/usr/bin/env python3
"""
Dashboard query extractor CLI.

Downloads every dashboard's cell queries from the upstream API into one JSON
file per dashboard. Dashboards whose file already exists are skipped, so an
interrupted run can simply be started again.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..config import DEFAULT_DEST_DIR, DEFAULT_WORKERS, MAX_WORKERS, load_config
from ..pipeline.run import run_extraction
from ..util.errors import ConfigurationError, DashQueryError
from ..util.log import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dashquery",
        description="Extract cell queries from every dashboard on an upstream host",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -u https://metrics.example.com -c "session=abc"
  %(prog)s -u https://metrics.example.com -c "session=abc" -l 10 -w 20 -d ./out

Every option can also be set through a DASHQUERY_* environment variable,
e.g. DASHQUERY_COOKIE.
        """
    )

    parser.add_argument('-u', '--upstream', help='Upstream host to query.')
    parser.add_argument('-c', '--cookie', help='Cookie for request.')
    parser.add_argument('-l', '--limit', type=int,
                        help='Limit to number of dashboards (default: unlimited).')
    parser.add_argument('-w', '--workers', type=int,
                        help=f'Number of concurrent dashboard workers (default: {DEFAULT_WORKERS}, '
                             f'max: {MAX_WORKERS}).')
    parser.add_argument('-d', '--dest-dir', type=Path,
                        help=f'Destination directory for dashboard files (default: ./{DEFAULT_DEST_DIR}).')
    parser.add_argument('--user-agent', help='User agent sent with cell requests.')
    parser.add_argument('--timeout', type=float, dest='request_timeout',
                        help='Per-request timeout in seconds (default: transport default).')
    parser.add_argument('--max-inflight', type=int, dest='max_inflight_requests',
                        help='Cap on simultaneous upstream requests across all workers.')
    parser.add_argument('--log-level', help='Logging level (default: INFO).')
    parser.add_argument('--log-format', choices=['text', 'json'], help='Log output format.')

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(**vars(args))
    except ConfigurationError as e:
        print(e.message)
        return 1

    setup_logging(config.log_level, config.log_format)

    try:
        report = asyncio.run(run_extraction(config))
    except DashQueryError as e:
        logger.error(e.message, extra={"error": e.to_dict()})
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted; rerun to resume from the written dashboards")
        return 130

    if report.failed:
        logger.warning(
            "%d dashboards failed: %s",
            len(report.failed), ", ".join(sorted(report.failed)),
        )
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
