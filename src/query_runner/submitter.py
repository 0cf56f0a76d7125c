"""Submission fan-out: start every query unit and record the outcome as a Job."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any

from query_runner.exceptions import QueryServiceError
from query_runner.logging import get_logger
from query_runner.models import Job, QueryUnit
from query_runner.service import QueryService

logger = get_logger(__name__)


def concurrency_guard(max_concurrency: int) -> AbstractAsyncContextManager[Any]:
    """Return a context manager that caps concurrent service requests.

    Args:
        max_concurrency: Maximum number of requests in flight. Zero or less
            means no cap.
    """
    if max_concurrency > 0:
        return asyncio.Semaphore(max_concurrency)
    return contextlib.nullcontext()


async def submit_query(service: QueryService, unit: QueryUnit) -> Job:
    """Submit one query unit.

    A refused submission is captured on the returned job rather than raised.
    """
    try:
        query_id = await service.submit(unit.text)
    except QueryServiceError as e:
        logger.with_context(query_name=unit.name).warning("Submission failed: %s", e)
        return Job.rejected(unit.name, str(e))

    logger.with_context(query_name=unit.name, query_id=query_id).debug(
        "Query submitted", extra={"diagnostic_tag": "submission"}
    )
    return Job.queued(unit.name, query_id)


async def submit_queries(
    service: QueryService,
    units: Sequence[QueryUnit],
    max_concurrency: int = 0,
) -> list[Job]:
    """Submit every unit concurrently and wait for all submissions to settle.

    Args:
        service: Query service to start the executions on.
        units: Query units to submit.
        max_concurrency: Cap on simultaneous start requests (0 = unbounded).

    Returns:
        One job per unit, in input order. Units the service refused come back
        as FAILED jobs without a query id.
    """
    guard = concurrency_guard(max_concurrency)

    async def submit_guarded(unit: QueryUnit) -> Job:
        async with guard:
            return await submit_query(service, unit)

    jobs = list(await asyncio.gather(*(submit_guarded(unit) for unit in units)))
    rejected = sum(1 for job in jobs if job.query_id is None)
    logger.info("Submitted %s queries (%s rejected)", len(jobs) - rejected, rejected)
    return jobs


__all__ = ["concurrency_guard", "submit_queries", "submit_query"]
