"""Application entry point for Query Runner.

This module coordinates:
- Argument parsing and configuration loading
- Logging setup
- Loading query units and building the Athena service
- Running the batch and mapping its outcome to a process exit code
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
from typing import Any

from query_runner.athena import AthenaQueryService, build_execution_params, load_execution_params
from query_runner.cli import parse_args
from query_runner.config import Config, load_config
from query_runner.exceptions import InputError, QueryServiceError
from query_runner.inputs import load_query_units
from query_runner.logging import get_logger, setup_logging
from query_runner.render import ProgressRenderer
from query_runner.runner import EXIT_FAILURE, BatchRunner
from query_runner.service import QueryService

logger = get_logger(__name__)


def apply_overrides(config: Config, parsed: argparse.Namespace) -> Config:
    """Return ``config`` with command-line values taking precedence."""
    overrides: dict[str, object] = {}
    if parsed.interval is not None:
        if parsed.interval > 0:
            overrides["poll_interval"] = parsed.interval
        else:
            logger.warning("Ignoring non-positive --interval %s", parsed.interval)
    if parsed.output is not None:
        overrides["output_path"] = parsed.output
    if parsed.max_concurrency is not None:
        if parsed.max_concurrency >= 0:
            overrides["max_concurrency"] = parsed.max_concurrency
        else:
            logger.warning("Ignoring negative --max-concurrency %s", parsed.max_concurrency)
    if parsed.log_level is not None:
        overrides["log_level"] = parsed.log_level
    if parsed.no_render:
        overrides["render_progress"] = False
    if not overrides:
        return config
    return dataclasses.replace(config, **overrides)  # type: ignore[arg-type]


def create_service(config: Config) -> AthenaQueryService:
    """Build the Athena service from configuration.

    Raises:
        QueryServiceError: If the execution parameters file cannot be loaded.
    """
    base: dict[str, Any] = {}
    if config.execution_params_file:
        base = load_execution_params(config.execution_params_file)
    params = build_execution_params(
        base,
        workgroup=config.athena_workgroup,
        database=config.athena_database,
        catalog=config.athena_catalog,
        output_location=config.athena_output_location,
    )
    return AthenaQueryService.create(
        region=config.aws_region,
        profile=config.aws_profile,
        execution_params=params,
    )


def run_application(config: Config, parsed: argparse.Namespace, service: QueryService) -> int:
    """Load the query units and run the batch to completion.

    Returns:
        Exit code: 0 when every job was tracked to a final state or the run
        was interrupted, 1 on input errors, a failed status request or an
        unwritable results file.
    """
    try:
        units = load_query_units(parsed.query_dir, config.query_suffixes)
    except InputError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    renderer = ProgressRenderer() if config.render_progress else None
    runner = BatchRunner(
        service,
        output_path=config.output_path,
        poll_interval=config.poll_interval,
        max_concurrency=config.max_concurrency,
        on_tick=renderer.render if renderer is not None else None,
    )
    try:
        result = asyncio.run(runner.run(units))
    except OSError as e:
        logger.error("Cannot write results to %s: %s", config.output_path, e)
        return EXIT_FAILURE
    if renderer is not None:
        renderer.message(f"Job results saved to {result.output_path}")
    return result.exit_code


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Optional list of command-line arguments.

    Returns:
        Exit code for the application.
    """
    parsed = parse_args(args)
    config = apply_overrides(load_config(parsed.env_file), parsed)
    setup_logging(
        level=config.log_level,
        json_format=config.log_json,
        diagnostic_tags=config.diagnostic_tags,
    )

    try:
        service = create_service(config)
    except QueryServiceError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    return run_application(config, parsed, service)


__all__ = [
    "apply_overrides",
    "create_service",
    "main",
    "run_application",
]
