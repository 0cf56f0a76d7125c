"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation.
    """

    # Polling configuration
    poll_interval: float = 2.0  # seconds between status requests

    # Cap on simultaneous submit/cancel requests (0 = unbounded)
    max_concurrency: int = 0

    # Output
    output_path: Path = Path("./results.json")
    render_progress: bool = True

    # Input
    query_suffixes: tuple[str, ...] = ()  # Empty = every file is a query

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    diagnostic_tags: str = ""

    # AWS / Athena configuration
    aws_region: str = DEFAULT_REGION
    aws_profile: str = ""  # Named profile; empty = default credential chain
    athena_workgroup: str = ""
    athena_database: str = ""
    athena_catalog: str = ""
    athena_output_location: str = ""  # e.g. "s3://bucket/athena-results/"
    execution_params_file: Path | None = None  # JSON of extra StartQueryExecution args


def _parse_positive_float(value: str, name: str, default: float) -> float:
    """Parse a string as a positive float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive float, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = float(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %f is not positive, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _parse_non_negative_int(value: str, name: str, default: int) -> int:
    """Parse a string as a non-negative integer with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed integer, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = int(value)
        if parsed < 0:
            logging.warning(
                "Invalid %s: %d is negative, using default %d",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.

    Logs a warning if the value is invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid QUERY_RUNNER_LOG_LEVEL: '%s' is not valid, using default '%s'. "
            "Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def _parse_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Values are validated and defaults are used for invalid inputs:
    - QUERY_RUNNER_POLL_INTERVAL must be a positive number
    - QUERY_RUNNER_MAX_CONCURRENCY must be a non-negative integer
    - QUERY_RUNNER_LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    poll_interval = _parse_positive_float(
        os.getenv("QUERY_RUNNER_POLL_INTERVAL", "2.0"),
        "QUERY_RUNNER_POLL_INTERVAL",
        2.0,
    )

    max_concurrency = _parse_non_negative_int(
        os.getenv("QUERY_RUNNER_MAX_CONCURRENCY", "0"),
        "QUERY_RUNNER_MAX_CONCURRENCY",
        0,
    )

    log_level = _validate_log_level(
        os.getenv("QUERY_RUNNER_LOG_LEVEL", "INFO"),
    )

    # Rendering is on unless explicitly disabled
    render_progress = _parse_bool(os.getenv("QUERY_RUNNER_RENDER", "true"))

    params_file_str = os.getenv("ATHENA_EXECUTION_PARAMS_FILE", "")
    execution_params_file = Path(params_file_str) if params_file_str else None

    aws_region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or DEFAULT_REGION

    return Config(
        poll_interval=poll_interval,
        max_concurrency=max_concurrency,
        output_path=Path(os.getenv("QUERY_RUNNER_OUTPUT_PATH", "./results.json")),
        render_progress=render_progress,
        query_suffixes=_parse_csv(os.getenv("QUERY_RUNNER_QUERY_SUFFIXES", "")),
        log_level=log_level,
        log_json=_parse_bool(os.getenv("QUERY_RUNNER_LOG_JSON", "")),
        diagnostic_tags=os.getenv("QUERY_RUNNER_DIAGNOSTIC_TAGS", ""),
        aws_region=aws_region,
        aws_profile=os.getenv("AWS_PROFILE", ""),
        athena_workgroup=os.getenv("ATHENA_WORKGROUP", ""),
        athena_database=os.getenv("ATHENA_DATABASE", ""),
        athena_catalog=os.getenv("ATHENA_CATALOG", ""),
        athena_output_location=os.getenv("ATHENA_OUTPUT_LOCATION", ""),
        execution_params_file=execution_params_file,
    )
