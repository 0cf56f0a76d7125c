"""Type definitions and enums for Query Runner.

Usage:
    from query_runner.types import JobStatus

    # StrEnum members compare equal to the service's state strings
    if job.status == JobStatus.RUNNING:
        ...

    JobStatus.is_valid("SUCCEEDED")  # True
    JobStatus.FAILED.is_terminal  # True
"""

from __future__ import annotations

from enum import StrEnum


class JobStatus(StrEnum):
    """Lifecycle state of a submitted query.

    Values match the query service's own state names so reported states can
    be converted with ``JobStatus(state)``.

    Values:
        QUEUED: Accepted by the service, not yet running
        RUNNING: Executing
        SUCCEEDED: Finished successfully
        FAILED: Rejected at submission, failed during execution, or
            reported as unprocessed by a status request
        CANCELLED: Stopped before completion
    """

    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """Whether no further status change is expected."""
        return self not in _ACTIVE_STATUSES

    @property
    def reports_statistics(self) -> bool:
        """Whether a report in this state carries timing and scan figures."""
        return self in _STATISTICS_STATUSES

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string value is a valid job status.

        Args:
            value: The string value to validate.

        Returns:
            True if the value matches a valid job status.
        """
        return value in cls._value2member_map_

    @classmethod
    def values(cls) -> frozenset[str]:
        """Return all valid job status values as a frozenset."""
        return frozenset(member.value for member in cls)


_ACTIVE_STATUSES = frozenset({JobStatus.QUEUED, JobStatus.RUNNING})
_STATISTICS_STATUSES = frozenset({JobStatus.RUNNING, JobStatus.SUCCEEDED})


__all__ = ["JobStatus"]
