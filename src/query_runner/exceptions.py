"""Exception types for Query Runner.

Per-query failures (a rejected submission, an unprocessed identifier, a
failed cancellation) are recorded on the affected Job and never raised past
the component that saw them. Only the exceptions below cross component
boundaries:

- QueryServiceError: any failed call to the external query service
- PollCallError: the batched status request failed; ends the run
- InputError: the query directory could not be turned into query units
"""

from __future__ import annotations


class QueryRunnerError(Exception):
    """Base class for Query Runner errors."""

    pass


class QueryServiceError(QueryRunnerError):
    """Raised when an operation against the external query service fails.

    Attributes:
        code: Service-specific error code, if one was reported.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class PollCallError(QueryRunnerError):
    """Raised when the batched status request fails as a whole."""

    pass


class InputError(QueryRunnerError):
    """Raised when query units cannot be loaded from the input directory."""

    pass


__all__ = [
    "InputError",
    "PollCallError",
    "QueryRunnerError",
    "QueryServiceError",
]
