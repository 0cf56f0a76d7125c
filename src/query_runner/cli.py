"""Command-line interface argument parsing for Query Runner.

This module provides the CLI argument parser that handles:
- Query directory (positional)
- Poll interval override
- Results file override
- Concurrency cap override
- Log level override
- Environment file specification
"""

from __future__ import annotations

import argparse
from pathlib import Path


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with the following attributes:
        - query_dir: Directory holding the query files
        - interval: Poll interval in seconds
        - output: Results file path
        - max_concurrency: Cap on simultaneous submit/cancel requests
        - log_level: Logging level
        - env_file: Path to .env file
        - no_render: Whether to skip drawing the progress table
    """
    parser = argparse.ArgumentParser(
        description="Query Runner - run a directory of queries on Athena and track them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "query_dir",
        type=Path,
        help="Directory of query files (searched recursively, one query per file)",
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Poll interval in seconds (overrides QUERY_RUNNER_POLL_INTERVAL)",
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Results file (overrides QUERY_RUNNER_OUTPUT_PATH, default: ./results.json)",
    )

    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum simultaneous submit/cancel requests, 0 for no limit "
        "(overrides QUERY_RUNNER_MAX_CONCURRENCY)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides QUERY_RUNNER_LOG_LEVEL)",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    parser.add_argument(
        "--no-render",
        action="store_true",
        help="Do not draw the progress table",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
