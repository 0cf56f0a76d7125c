"""Batched status polling for outstanding queries."""

from __future__ import annotations

from query_runner.exceptions import PollCallError, QueryServiceError
from query_runner.logging import get_logger
from query_runner.models import PollResult
from query_runner.registry import Registry
from query_runner.service import QueryService

logger = get_logger(__name__)


class Poller:
    """Requests the state of every QUEUED or RUNNING job in one call.

    Failures of the batched call are not retried; they surface as
    :class:`PollCallError` and end the run.
    """

    def __init__(self, service: QueryService) -> None:
        self.service = service

    async def poll(self, registry: Registry) -> PollResult | None:
        """Poll the service for all outstanding jobs.

        Args:
            registry: Registry of the current run.

        Returns:
            The service's response, or None when no job is outstanding (no
            request is made in that case).

        Raises:
            PollCallError: If the batched request fails.
        """
        async with registry.lock:
            query_ids = registry.outstanding_ids()

        if not query_ids:
            return None

        logger.debug(
            "Polling %s outstanding queries", len(query_ids), extra={"diagnostic_tag": "polling"}
        )
        try:
            return await self.service.poll_batch(query_ids)
        except QueryServiceError as e:
            logger.error("Status request for %s queries failed: %s", len(query_ids), e)
            raise PollCallError(f"Status request failed: {e}") from e


__all__ = ["Poller"]
