"""Merge batched status responses into the registry.

Every update is an overwrite, so applying the same response twice leaves the
registry exactly as applying it once. Jobs that already reached a final
state are never touched again.

Callers must hold ``registry.lock`` while consolidating.
"""

from __future__ import annotations

from query_runner.logging import get_logger
from query_runner.models import Job, PollResult, StatusReport
from query_runner.registry import Registry
from query_runner.types import JobStatus

logger = get_logger(__name__)


def _updatable(registry: Registry, query_id: str) -> Job | None:
    job = registry.get(query_id)
    if job is None:
        logger.warning("Service reported unknown query id %s", query_id)
        return None
    if job.is_terminal:
        return None
    return job


def apply_report(job: Job, report: StatusReport) -> None:
    """Overwrite a job's state with one status report."""
    job.status = report.status
    if report.status.reports_statistics:
        job.start_time = report.start_time
        job.end_time = report.end_time
        job.runtime_millis = report.runtime_millis
        job.bytes_scanned = report.bytes_scanned
    elif report.status == JobStatus.FAILED and report.reason:
        job.error = report.reason


def consolidate(registry: Registry, result: PollResult) -> Registry:
    """Apply a poll result to the registry.

    Args:
        registry: Registry to update in place.
        result: Response of one batched status request.

    Returns:
        The same registry, for chaining.
    """
    for report in result.reports:
        job = _updatable(registry, report.query_id)
        if job is None:
            continue
        previous = job.status
        apply_report(job, report)
        if job.status != previous:
            logger.with_context(
                query_name=job.name, query_id=report.query_id, status=job.status.value
            ).info("%s -> %s", previous, job.status)

    for entry in result.unprocessed:
        job = _updatable(registry, entry.query_id)
        if job is None:
            continue
        job.status = JobStatus.FAILED
        job.error = entry.error_message
        logger.with_context(
            query_name=job.name, query_id=entry.query_id, status=job.status.value
        ).warning("Service could not process status request: %s", entry.error_message)

    return registry


__all__ = ["apply_report", "consolidate"]
