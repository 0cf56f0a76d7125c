"""Interface to the external query execution service.

The runner only needs three operations from the service. Implementations:
- Athena client (``query_runner.athena``)
- In-memory fake (tests)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from query_runner.models import PollResult


class QueryService(ABC):
    """Abstract interface for an asynchronous query execution service."""

    @abstractmethod
    async def submit(self, query_text: str) -> str:
        """Start executing a query.

        Args:
            query_text: The query to execute.

        Returns:
            Identifier assigned to the execution by the service.

        Raises:
            QueryServiceError: If the service refuses to start the query.
        """

    @abstractmethod
    async def poll_batch(self, query_ids: Sequence[str]) -> PollResult:
        """Fetch the current state of several executions in one request.

        Args:
            query_ids: Identifiers returned by :meth:`submit`.

        Returns:
            Per-identifier reports plus the identifiers the service could not
            process.

        Raises:
            QueryServiceError: If the request as a whole fails.
        """

    @abstractmethod
    async def cancel(self, query_id: str) -> None:
        """Ask the service to stop an execution.

        Raises:
            QueryServiceError: If the request fails.
        """


__all__ = ["QueryService"]
