"""Data records shared by the submission, polling and persistence paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from query_runner.types import JobStatus

# Keys of the persisted job document. Optional keys are omitted when unset.
_KEY_NAME = "name"
_KEY_ID = "identifier"
_KEY_STATUS = "status"
_KEY_ERROR = "error"
_KEY_START = "startTime"
_KEY_END = "endTime"
_KEY_RUNTIME = "runtimeMillis"
_KEY_SCANNED = "bytesScanned"


@dataclass(frozen=True)
class QueryUnit:
    """One named block of query text to execute."""

    name: str
    text: str


@dataclass
class Job:
    """Tracked execution of one query unit.

    A job without a ``query_id`` was never accepted by the service. Such a
    job is FAILED from creation and is never polled, so constructing one
    in any other state is rejected.

    Attributes:
        name: Name of the originating query unit.
        status: Current lifecycle state.
        query_id: Identifier assigned by the service at submission.
        error: Failure message from submission or from the service.
        start_time: When the service accepted the query.
        end_time: When the query completed.
        runtime_millis: Engine execution time in milliseconds.
        bytes_scanned: Data scanned by the query.
    """

    name: str
    status: JobStatus
    query_id: str | None = None
    error: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    runtime_millis: int | None = None
    bytes_scanned: int | None = None

    def __post_init__(self) -> None:
        self.status = JobStatus(self.status)
        if self.query_id is None and self.status != JobStatus.FAILED:
            raise ValueError(
                f"Job {self.name!r} has no query id and must be FAILED, got {self.status}"
            )

    @property
    def is_terminal(self) -> bool:
        """Whether the job has reached a final state."""
        return self.status.is_terminal

    @classmethod
    def queued(cls, name: str, query_id: str) -> Job:
        """Create a job for a successfully submitted query."""
        return cls(name=name, status=JobStatus.QUEUED, query_id=query_id)

    @classmethod
    def rejected(cls, name: str, error: str) -> Job:
        """Create a job for a query the service refused to start."""
        return cls(name=name, status=JobStatus.FAILED, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted document shape, omitting unset fields."""
        data: dict[str, Any] = {_KEY_NAME: self.name}
        if self.query_id is not None:
            data[_KEY_ID] = self.query_id
        data[_KEY_STATUS] = self.status.value
        if self.error is not None:
            data[_KEY_ERROR] = self.error
        if self.start_time is not None:
            data[_KEY_START] = self.start_time.isoformat()
        if self.end_time is not None:
            data[_KEY_END] = self.end_time.isoformat()
        if self.runtime_millis is not None:
            data[_KEY_RUNTIME] = self.runtime_millis
        if self.bytes_scanned is not None:
            data[_KEY_SCANNED] = self.bytes_scanned
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        """Rebuild a job from a persisted document entry.

        Args:
            data: One entry as produced by :meth:`to_dict`.

        Returns:
            Job with the same field values.

        Raises:
            KeyError: If ``name`` or ``status`` is missing.
            ValueError: If the status is unknown or a timestamp is malformed.
        """
        start = data.get(_KEY_START)
        end = data.get(_KEY_END)
        return cls(
            name=data[_KEY_NAME],
            status=JobStatus(data[_KEY_STATUS]),
            query_id=data.get(_KEY_ID),
            error=data.get(_KEY_ERROR),
            start_time=datetime.fromisoformat(start) if start is not None else None,
            end_time=datetime.fromisoformat(end) if end is not None else None,
            runtime_millis=data.get(_KEY_RUNTIME),
            bytes_scanned=data.get(_KEY_SCANNED),
        )


@dataclass(frozen=True)
class StatusReport:
    """Service-reported state of one query in a batched status response."""

    query_id: str
    status: JobStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    runtime_millis: int | None = None
    bytes_scanned: int | None = None
    reason: str | None = None  # Service's state-change reason, mostly set on FAILED


@dataclass(frozen=True)
class UnprocessedQuery:
    """An identifier the service could not report on in a batched call."""

    query_id: str
    error_message: str


@dataclass(frozen=True)
class PollResult:
    """Outcome of one successful batched status request."""

    reports: list[StatusReport] = field(default_factory=list)
    unprocessed: list[UnprocessedQuery] = field(default_factory=list)


__all__ = [
    "Job",
    "PollResult",
    "QueryUnit",
    "StatusReport",
    "UnprocessedQuery",
]
