"""Best-effort cancellation of outstanding queries on interrupt.

Cancellation is fire-and-settle: a stop request is sent for every QUEUED or
RUNNING job, failures are logged and dropped, and job statuses are left as
they were. Confirming that a query actually stopped would take another
status request, which the interrupted run does not make.
"""

from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager
from typing import Any

from query_runner.logging import get_logger
from query_runner.registry import Registry
from query_runner.service import QueryService
from query_runner.submitter import concurrency_guard

logger = get_logger(__name__)


class CancellationHandler:
    """Requests cancellation of every outstanding job in a registry."""

    def __init__(
        self,
        registry: Registry,
        service: QueryService,
        max_concurrency: int = 0,
    ) -> None:
        self.registry = registry
        self.service = service
        self.max_concurrency = max_concurrency

    async def _cancel_one(self, query_id: str, guard: AbstractAsyncContextManager[Any]) -> bool:
        async with guard:
            try:
                await self.service.cancel(query_id)
            except Exception as e:
                # INTENTIONAL BROAD CATCH: cancellation is best-effort and one
                # failed request must not stop the others or the final write.
                logger.with_context(query_id=query_id).warning("Cancellation failed: %s", e)
                return False
        logger.with_context(query_id=query_id).debug(
            "Cancellation requested", extra={"diagnostic_tag": "cancellation"}
        )
        return True

    async def cancel_outstanding(self) -> list[str]:
        """Send a cancellation request for every QUEUED or RUNNING job.

        Returns:
            The query ids a cancellation was attempted for.
        """
        async with self.registry.lock:
            query_ids = self.registry.outstanding_ids()

        if not query_ids:
            logger.info("No outstanding queries to cancel")
            return []

        logger.info("Cancelling %s outstanding queries", len(query_ids))
        guard = concurrency_guard(self.max_concurrency)
        results = await asyncio.gather(*(self._cancel_one(qid, guard) for qid in query_ids))
        failed = results.count(False)
        if failed:
            logger.warning("%s of %s cancellation requests failed", failed, len(query_ids))
        return query_ids


__all__ = ["CancellationHandler"]
