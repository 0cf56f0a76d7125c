"""Test helper functions for Query Runner tests.

These helpers build jobs, reports and registries with sensible defaults while
allowing customization.

Usage
=====

Import and use helpers directly in tests::

    from tests.helpers import make_job, make_registry, make_report

    def test_example():
        registry = make_registry(make_job("a.sql", query_id="q-1"))
        report = make_report("q-1", JobStatus.SUCCEEDED, runtime_millis=1200)
        # ... use in test ...
"""

from __future__ import annotations

from datetime import UTC, datetime

from query_runner.models import Job, QueryUnit, StatusReport
from query_runner.registry import Registry
from query_runner.types import JobStatus

START = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
END = datetime(2024, 5, 1, 12, 0, 2, tzinfo=UTC)


def make_job(
    name: str = "queries/a.sql",
    query_id: str | None = "query-1",
    status: JobStatus | None = None,
    **fields: object,
) -> Job:
    """Create a job; defaults to QUEUED with an id, or FAILED without one."""
    if status is None:
        status = JobStatus.QUEUED if query_id is not None else JobStatus.FAILED
    return Job(name=name, status=status, query_id=query_id, **fields)  # type: ignore[arg-type]


def make_report(
    query_id: str,
    status: JobStatus,
    runtime_millis: int | None = None,
    bytes_scanned: int | None = None,
    reason: str | None = None,
    with_times: bool = True,
) -> StatusReport:
    """Create a status report, with fixed start/end times when requested."""
    return StatusReport(
        query_id=query_id,
        status=status,
        start_time=START if with_times else None,
        end_time=END if with_times else None,
        runtime_millis=runtime_millis,
        bytes_scanned=bytes_scanned,
        reason=reason,
    )


def make_registry(*jobs: Job) -> Registry:
    return Registry(jobs)


def make_units(*names: str) -> list[QueryUnit]:
    """Create query units whose text is ``SELECT '<name>'``."""
    return [QueryUnit(name=name, text=f"SELECT '{name}'") for name in names]


def scenario_a_units() -> list[QueryUnit]:
    """Three units where the first is refused by the fake service."""
    return [
        QueryUnit(name="unit1.sql", text="SELEC broken"),
        QueryUnit(name="unit2.sql", text="SELECT 2"),
        QueryUnit(name="unit3.sql", text="SELECT 3"),
    ]
