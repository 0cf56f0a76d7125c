"""Polling cycle driver.

The driver repeats one poll-and-consolidate cycle on a fixed cadence until
no job is outstanding. The next cycle is scheduled only after the previous
one has fully settled, so cycles never overlap:

    wait interval -> poll -> consolidate (under registry lock) -> render -> repeat

An interrupt calls :meth:`CycleDriver.stop`, which prevents any further
cycle and abandons a cycle that is still waiting on the service. A cycle
cannot be interrupted half-way through consolidation because consolidation
never yields to the event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from enum import StrEnum

from query_runner.consolidator import consolidate
from query_runner.logging import get_logger
from query_runner.models import Job
from query_runner.poller import Poller
from query_runner.registry import Registry

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 2.0

TickCallback = Callable[[Sequence[Job]], None]


class CycleOutcome(StrEnum):
    """How a polling run ended."""

    COMPLETED = "completed"  # Every job reached a final state
    INTERRUPTED = "interrupted"  # stop() was called first


class CycleDriver:
    """Drives polling cycles for one run until every job is terminal."""

    def __init__(
        self,
        registry: Registry,
        poller: Poller,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_tick: TickCallback | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            registry: Registry of the run, shared with the interrupt path.
            poller: Poller bound to the query service.
            poll_interval: Seconds to wait before each cycle.
            on_tick: Called with a snapshot of all jobs after every
                consolidation (and once before the first cycle).
        """
        self.registry = registry
        self.poller = poller
        self.poll_interval = poll_interval
        self.on_tick = on_tick
        self.cycles_run = 0
        self._stop_event = asyncio.Event()
        self._cycle_task: asyncio.Task[bool] | None = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Stop scheduling cycles and abandon one that is awaiting the service.

        Safe to call from a signal handler registered on the event loop, and
        safe to call more than once.
        """
        if self._stop_event.is_set():
            return
        logger.info("Polling stopped")
        self._stop_event.set()
        if self._cycle_task is not None and not self._cycle_task.done():
            self._cycle_task.cancel()

    def _emit(self, jobs: Sequence[Job]) -> None:
        if self.on_tick is not None:
            self.on_tick(jobs)

    async def run_cycle(self) -> bool:
        """Run one poll-and-consolidate cycle.

        Returns:
            True when no job was outstanding (nothing left to poll).

        Raises:
            PollCallError: If the batched status request failed. The registry
                is left untouched for this cycle.
        """
        result = await self.poller.poll(self.registry)
        if result is None:
            return True

        async with self.registry.lock:
            consolidate(self.registry, result)
            snapshot = self.registry.snapshot()

        self.cycles_run += 1
        self._emit(snapshot)
        return False

    async def _sleep_until_next_tick(self) -> bool:
        """Wait one poll interval. Returns True if stop() was called meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
        except TimeoutError:
            return False
        return True

    async def run(self) -> CycleOutcome:
        """Poll until every job is terminal or the driver is stopped.

        Returns:
            COMPLETED when no outstanding job remains, INTERRUPTED when
            :meth:`stop` was called first.

        Raises:
            PollCallError: Propagated from the first failed cycle.
        """
        async with self.registry.lock:
            initial = self.registry.snapshot()
        self._emit(initial)

        while True:
            if await self._sleep_until_next_tick():
                return CycleOutcome.INTERRUPTED

            self._cycle_task = asyncio.create_task(self.run_cycle())
            try:
                finished = await self._cycle_task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if self.stop_requested and (current is None or not current.cancelling()):
                    return CycleOutcome.INTERRUPTED
                raise
            finally:
                self._cycle_task = None

            if finished:
                logger.info("No outstanding queries after %s cycles", self.cycles_run)
                return CycleOutcome.COMPLETED


__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "CycleDriver",
    "CycleOutcome",
    "TickCallback",
]
