"""Run one batch of queries from submission to the results document.

This module wires the components of a run together:
- submitter: start every query unit
- cycle driver: poll and consolidate until nothing is outstanding
- cancellation handler: on interrupt, stop every outstanding query
- finalizer: write the results document

It acts as the seam between the process (signals, exit codes) and the
components, none of which exit the process themselves.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from query_runner.cancellation import CancellationHandler
from query_runner.cycle import DEFAULT_POLL_INTERVAL, CycleDriver, CycleOutcome, TickCallback
from query_runner.exceptions import PollCallError
from query_runner.finalizer import DEFAULT_OUTPUT_PATH, Finalizer
from query_runner.logging import get_logger
from query_runner.models import QueryUnit
from query_runner.poller import Poller
from query_runner.registry import Registry
from query_runner.service import QueryService
from query_runner.shutdown import ShutdownHandler
from query_runner.submitter import submit_queries

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


@dataclass(frozen=True)
class RunResult:
    """Outcome of a batch run.

    Attributes:
        outcome: How polling ended; None if it ended with an error.
        output_path: Where the results document was written.
        error: The error that ended the run, if any.
        cancelled_ids: Query ids a cancellation was requested for.
    """

    outcome: CycleOutcome | None
    output_path: Path
    error: Exception | None = None
    cancelled_ids: tuple[str, ...] = ()

    @property
    def exit_code(self) -> int:
        return EXIT_FAILURE if self.error is not None else EXIT_OK


class BatchRunner:
    """Runs a batch of query units against a query service."""

    def __init__(
        self,
        service: QueryService,
        output_path: Path = DEFAULT_OUTPUT_PATH,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_concurrency: int = 0,
        on_tick: TickCallback | None = None,
        install_signal_handlers: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            service: Query service to run the batch on.
            output_path: Where to write the results document.
            poll_interval: Seconds between status requests.
            max_concurrency: Cap on simultaneous submit/cancel requests
                (0 = unbounded).
            on_tick: Receives a snapshot of all jobs after each cycle.
            install_signal_handlers: Install SIGINT/SIGTERM handlers for the
                duration of :meth:`run`.
        """
        self.service = service
        self.poll_interval = poll_interval
        self.max_concurrency = max_concurrency
        self.on_tick = on_tick
        self.install_signal_handlers = install_signal_handlers
        self.finalizer = Finalizer(output_path)
        self.registry: Registry | None = None
        self.driver: CycleDriver | None = None

    def interrupt(self) -> None:
        """Stop polling; outstanding queries are cancelled before :meth:`run` returns."""
        if self.driver is not None:
            self.driver.stop()

    async def run(self, units: Sequence[QueryUnit]) -> RunResult:
        """Submit ``units``, track them to completion and write the results.

        Returns:
            The run result; its ``exit_code`` is 1 when a status request
            failed or polling ended with an unexpected error. After an
            unexpected error the outstanding queries are cancelled first.

        Raises:
            OSError: If the results document cannot be written.
        """
        shutdown = ShutdownHandler(on_shutdown=self.interrupt)
        if self.install_signal_handlers:
            shutdown.install(asyncio.get_running_loop())

        try:
            jobs = await submit_queries(self.service, units, self.max_concurrency)
            registry = Registry(jobs)
            self.registry = registry

            driver = CycleDriver(
                registry,
                Poller(self.service),
                poll_interval=self.poll_interval,
                on_tick=self.on_tick,
            )
            self.driver = driver
            if shutdown.shutdown_requested:
                # Interrupted while submitting: skip polling entirely.
                driver.stop()

            try:
                outcome = await driver.run()
            except PollCallError as e:
                logger.error("Monitor error, ending run: %s", e)
                path = await self.finalizer.finalize(registry)
                return RunResult(outcome=None, output_path=path, error=e)
            except Exception as e:
                # INTENTIONAL BROAD CATCH: an unexpected cycle failure (e.g. a
                # closed stdout in the renderer) must still stop the queries
                # and write the results document.
                logger.exception("Unexpected error while polling, ending run: %s", e)
                handler = CancellationHandler(registry, self.service, self.max_concurrency)
                abandoned = await handler.cancel_outstanding()
                path = await self.finalizer.finalize(registry)
                return RunResult(
                    outcome=None, output_path=path, error=e, cancelled_ids=tuple(abandoned)
                )

            cancelled: list[str] = []
            if outcome == CycleOutcome.INTERRUPTED:
                handler = CancellationHandler(registry, self.service, self.max_concurrency)
                cancelled = await handler.cancel_outstanding()

            path = await self.finalizer.finalize(registry)
            return RunResult(outcome=outcome, output_path=path, cancelled_ids=tuple(cancelled))
        finally:
            shutdown.uninstall()


__all__ = [
    "EXIT_FAILURE",
    "EXIT_OK",
    "BatchRunner",
    "RunResult",
]
