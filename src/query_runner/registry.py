"""Registry of jobs for a single run.

The registry is the only shared mutable state of a run. It is created once
from the submitter's output and its key set never changes afterwards; the
polling cycle and the interrupt path only update the jobs it holds.

Both of those paths must hold :attr:`Registry.lock` while they read the
outstanding ids or apply a consolidation, so that the interrupt path never
observes a half-applied poll result.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator
from dataclasses import replace

from query_runner.logging import get_logger
from query_runner.models import Job

logger = get_logger(__name__)


def _unique_key(base: str, taken: dict[str, Job]) -> str:
    if base not in taken:
        return base
    suffix = 2
    while f"{base}#{suffix}" in taken:
        suffix += 1
    return f"{base}#{suffix}"


class Registry:
    """Mapping from job key to :class:`Job`, guarded by one asyncio lock.

    Jobs accepted by the service are keyed by their query id. Jobs rejected
    at submission have no id and are keyed by their unit name instead; a
    repeated name gets a ``#N`` suffix so every submitted unit keeps its own
    entry.
    """

    def __init__(self, jobs: Iterable[Job] = ()) -> None:
        self._jobs: dict[str, Job] = {}
        for job in jobs:
            key = _unique_key(job.query_id if job.query_id is not None else job.name, self._jobs)
            if job.query_id is not None and key != job.query_id:
                logger.warning("Duplicate query id %s reported by service", job.query_id)
            self._jobs[key] = job
        self._lock = asyncio.Lock()

    @property
    def lock(self) -> asyncio.Lock:
        """Lock serializing reads of outstanding ids and consolidations."""
        return self._lock

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, key: object) -> bool:
        return key in self._jobs

    def __getitem__(self, key: str) -> Job:
        return self._jobs[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._jobs)

    def get(self, key: str) -> Job | None:
        """Return the job stored under ``key``, if any."""
        return self._jobs.get(key)

    def keys(self) -> list[str]:
        return list(self._jobs)

    def jobs(self) -> list[Job]:
        """Return the live job objects in registration order."""
        return list(self._jobs.values())

    def outstanding_ids(self) -> list[str]:
        """Return query ids of all QUEUED or RUNNING jobs.

        Jobs without a query id are always FAILED and therefore never
        appear here.
        """
        return [
            job.query_id
            for job in self._jobs.values()
            if not job.is_terminal and job.query_id is not None
        ]

    def all_terminal(self) -> bool:
        """Whether every job has reached a final state."""
        return all(job.is_terminal for job in self._jobs.values())

    def snapshot(self) -> list[Job]:
        """Return copies of every job, safe to hand to renderers or writers."""
        return [replace(job) for job in self._jobs.values()]

    def status_counts(self) -> dict[str, int]:
        """Count jobs per status value."""
        counts: dict[str, int] = {}
        for job in self._jobs.values():
            counts[job.status.value] = counts.get(job.status.value, 0) + 1
        return counts


__all__ = ["Registry"]
