"""Structured logging configuration for Query Runner.

Logs are written to stderr so they never interleave with the progress
table, which is drawn on stdout.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any

# Record attributes rendered as context by both formatters, in display order.
CONTEXT_FIELDS = ("query_name", "query_id", "status")


class DiagnosticFilter(logging.Filter):
    """Filter that gates debug log messages based on diagnostic tags.

    When installed on a handler, this filter examines each DEBUG-level log
    record for a ``diagnostic_tag`` attribute (set via the ``extra`` dict).
    Records whose tag is **not** in the set of enabled tags are suppressed.
    Records at levels above DEBUG, or without a ``diagnostic_tag``, always
    pass through.

    Tags are enabled at runtime via ``QUERY_RUNNER_DIAGNOSTIC_TAGS`` (e.g.
    ``QUERY_RUNNER_DIAGNOSTIC_TAGS=polling,cancellation``). Setting the value
    to ``"*"`` enables all tagged diagnostics.

    Usage in application code::

        logger.debug(
            "Polling %d outstanding queries", len(ids),
            extra={"diagnostic_tag": "polling"},
        )

    Attributes:
        enabled_tags: Frozenset of tag strings that are allowed through.
        allow_all: If ``True``, all tagged diagnostics are emitted.
    """

    def __init__(self, enabled_tags: frozenset[str] | None = None) -> None:
        super().__init__()
        self.enabled_tags: frozenset[str] = enabled_tags or frozenset()
        self.allow_all: bool = "*" in self.enabled_tags

    def filter(self, record: logging.LogRecord) -> bool:
        # Non-DEBUG records always pass through.
        if record.levelno != logging.DEBUG:
            return True

        tag: str | None = getattr(record, "diagnostic_tag", None)
        if tag is None:
            return True

        if self.allow_all:
            return True

        return tag in self.enabled_tags

    @classmethod
    def from_config_string(cls, tags_csv: str) -> DiagnosticFilter:
        """Create a filter from a comma-separated configuration string.

        Args:
            tags_csv: Comma-separated list of tags (e.g. ``"polling,submission"``).
                Whitespace around tags is stripped. ``"*"`` enables all tags.
                An empty string means no tagged diagnostics are emitted.

        Returns:
            A configured ``DiagnosticFilter`` instance.
        """
        if not tags_csv.strip():
            return cls(frozenset())
        tags = frozenset(t.strip() for t in tags_csv.split(",") if t.strip())
        return cls(tags)


def _component(record: logging.LogRecord) -> str:
    # "query_runner.cycle" -> "cycle"
    return record.name.split(".")[-1] if "." in record.name else record.name


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured log messages.

    Includes timestamp, level, component, message, and any job context.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).strftime("%Y-%m-%d %H:%M:%S.%f")[
            :-3
        ]

        parts = [
            f"{timestamp}",
            f"[{record.levelname:8}]",
            f"[{_component(record):12}]",
        ]

        context_parts = [
            f"{key}={getattr(record, key)}" for key in CONTEXT_FIELDS if hasattr(record, key)
        ]
        if context_parts:
            parts.append(f"[{' '.join(context_parts)}]")

        parts.append(record.getMessage())

        if record.exc_info:
            parts.append(self.formatException(record.exc_info))

        return " ".join(parts)


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON log messages for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ContextAdapter(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that adds context to all log messages.

    Usage:
        logger = get_logger(__name__)
        job_logger = logger.with_context(query_name="daily.sql", query_id="abc-123")
        job_logger.info("Query submitted")
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.get("extra", {})
        if self.extra is not None:
            extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


class RunnerLogger(logging.Logger):
    """Custom logger with context support."""

    def with_context(self, **context: Any) -> ContextAdapter:
        """Create a logger adapter with additional context.

        Args:
            **context: Context fields to add to all log messages.

        Returns:
            ContextAdapter with the specified context.
        """
        return ContextAdapter(self, context)


logging.setLoggerClass(RunnerLogger)


def get_logger(name: str) -> RunnerLogger:
    """Get a logger with the custom RunnerLogger class.

    Args:
        name: Logger name (typically __name__).

    Returns:
        RunnerLogger instance.
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    replace_handlers: bool = True,
    diagnostic_tags: str = "",
) -> None:
    """Configure logging for the application.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR).
        json_format: If True, output JSON-formatted logs.
        replace_handlers: If True, remove existing handlers before adding new ones.
            Set to False to preserve existing handlers (e.g., from third-party libraries).
        diagnostic_tags: Comma-separated list of diagnostic tags to enable.
            See :class:`DiagnosticFilter`.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    if replace_handlers:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(StructuredFormatter())

    handler.addFilter(DiagnosticFilter.from_config_string(diagnostic_tags))

    root_logger.addHandler(handler)

    logging.getLogger("query_runner").setLevel(numeric_level)
    # botocore logs every request at DEBUG; keep it quiet unless asked for.
    logging.getLogger("botocore").setLevel(max(numeric_level, logging.WARNING))


def log_run_summary(logger: logging.Logger, counts: Mapping[str, int], total: int) -> None:
    """Log a one-line summary of final job states.

    Args:
        logger: Logger to use.
        counts: Number of jobs per status value.
        total: Total number of jobs in the run.
    """
    succeeded = counts.get("SUCCEEDED", 0)
    breakdown = ", ".join(f"{status}={count}" for status, count in sorted(counts.items()))
    log_method = logger.info if succeeded == total else logger.warning
    log_method(
        "Completed: %s/%s succeeded (%s)",
        succeeded,
        total,
        breakdown or "no jobs",
    )


__all__ = [
    "CONTEXT_FIELDS",
    "ContextAdapter",
    "DiagnosticFilter",
    "JSONFormatter",
    "RunnerLogger",
    "StructuredFormatter",
    "get_logger",
    "log_run_summary",
    "setup_logging",
]
