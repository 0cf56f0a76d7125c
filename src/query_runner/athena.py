"""Amazon Athena implementation of the query service.

boto3 clients are blocking, so every call is pushed onto a worker thread with
``asyncio.to_thread``; the event loop stays free to handle the interrupt
signal while a request is in flight.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from query_runner.exceptions import QueryServiceError
from query_runner.logging import get_logger
from query_runner.models import PollResult, StatusReport, UnprocessedQuery
from query_runner.service import QueryService
from query_runner.types import JobStatus

logger = get_logger(__name__)

# BatchGetQueryExecution accepts at most this many ids per request.
MAX_BATCH_SIZE = 50


def load_execution_params(path: Path) -> dict[str, Any]:
    """Load extra ``StartQueryExecution`` arguments from a JSON file.

    Args:
        path: JSON document holding a single object, e.g.
            ``{"WorkGroup": "primary", "ResultConfiguration": {...}}``.

    Returns:
        The parsed keyword arguments. ``QueryString`` is dropped if present.

    Raises:
        QueryServiceError: If the file cannot be read or is not a JSON object.
    """
    try:
        params = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise QueryServiceError(f"Cannot load execution parameters from {path}: {e}") from e
    if not isinstance(params, dict):
        raise QueryServiceError(f"Execution parameters in {path} must be a JSON object")
    params.pop("QueryString", None)
    return params


def build_execution_params(
    base: dict[str, Any] | None = None,
    *,
    workgroup: str = "",
    database: str = "",
    catalog: str = "",
    output_location: str = "",
) -> dict[str, Any]:
    """Merge explicit settings over a base set of execution parameters.

    Empty settings leave the base value untouched.
    """
    params: dict[str, Any] = dict(base or {})
    if workgroup:
        params["WorkGroup"] = workgroup
    if database or catalog:
        context = dict(params.get("QueryExecutionContext", {}))
        if database:
            context["Database"] = database
        if catalog:
            context["Catalog"] = catalog
        params["QueryExecutionContext"] = context
    if output_location:
        result_config = dict(params.get("ResultConfiguration", {}))
        result_config["OutputLocation"] = output_location
        params["ResultConfiguration"] = result_config
    return params


def _service_error(e: ClientError | BotoCoreError) -> QueryServiceError:
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        return QueryServiceError(error.get("Message") or str(e), code=error.get("Code"))
    return QueryServiceError(str(e))


def parse_query_execution(item: dict[str, Any]) -> StatusReport | None:
    """Convert one ``QueryExecution`` entry into a status report.

    Returns:
        The report, or None when the entry carries a state this runner
        does not know.
    """
    query_id = item["QueryExecutionId"]
    status_data = item.get("Status", {})
    state = status_data.get("State", "")
    if not JobStatus.is_valid(state):
        logger.warning("Ignoring unknown state %r for query %s", state, query_id)
        return None

    statistics = item.get("Statistics", {})
    start_time: datetime | None = status_data.get("SubmissionDateTime")
    end_time: datetime | None = status_data.get("CompletionDateTime")
    return StatusReport(
        query_id=query_id,
        status=JobStatus(state),
        start_time=start_time,
        end_time=end_time,
        runtime_millis=statistics.get("EngineExecutionTimeInMillis"),
        bytes_scanned=statistics.get("DataScannedInBytes"),
        reason=status_data.get("StateChangeReason"),
    )


def parse_batch_response(response: dict[str, Any]) -> PollResult:
    """Convert a ``BatchGetQueryExecution`` response into a poll result."""
    reports = [
        report
        for item in response.get("QueryExecutions", [])
        if (report := parse_query_execution(item)) is not None
    ]
    unprocessed = [
        UnprocessedQuery(
            query_id=item["QueryExecutionId"],
            error_message=item.get("ErrorMessage") or item.get("ErrorCode") or "Unprocessed",
        )
        for item in response.get("UnprocessedQueryExecutionIds", [])
    ]
    return PollResult(reports=reports, unprocessed=unprocessed)


class AthenaQueryService(QueryService):
    """QueryService backed by Athena query executions."""

    def __init__(
        self,
        client: Any,
        execution_params: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            client: A boto3 ``athena`` client.
            execution_params: Extra keyword arguments passed to every
                ``start_query_execution`` call (work group, database, result
                location, ...).
        """
        self._client = client
        self._execution_params = dict(execution_params or {})

    @classmethod
    def create(
        cls,
        region: str,
        profile: str = "",
        execution_params: dict[str, Any] | None = None,
    ) -> AthenaQueryService:
        """Create a service using boto3's default credential chain.

        Args:
            region: AWS region of the Athena endpoint.
            profile: Optional named profile from the shared credentials file.
            execution_params: See :meth:`__init__`.

        Raises:
            QueryServiceError: If the session or client cannot be created,
                e.g. for an unknown profile.
        """
        try:
            session = boto3.Session(profile_name=profile or None, region_name=region)
            client = session.client("athena")
        except BotoCoreError as e:
            raise _service_error(e) from e
        return cls(client, execution_params)

    def _start(self, query_text: str) -> str:
        response = self._client.start_query_execution(
            QueryString=query_text, **self._execution_params
        )
        return response["QueryExecutionId"]

    def _batch_get(self, query_ids: Sequence[str]) -> PollResult:
        reports: list[StatusReport] = []
        unprocessed: list[UnprocessedQuery] = []
        for offset in range(0, len(query_ids), MAX_BATCH_SIZE):
            chunk = list(query_ids[offset : offset + MAX_BATCH_SIZE])
            response = self._client.batch_get_query_execution(QueryExecutionIds=chunk)
            result = parse_batch_response(response)
            reports.extend(result.reports)
            unprocessed.extend(result.unprocessed)
        return PollResult(reports=reports, unprocessed=unprocessed)

    def _stop(self, query_id: str) -> None:
        self._client.stop_query_execution(QueryExecutionId=query_id)

    async def submit(self, query_text: str) -> str:
        try:
            return await asyncio.to_thread(self._start, query_text)
        except (ClientError, BotoCoreError) as e:
            raise _service_error(e) from e

    async def poll_batch(self, query_ids: Sequence[str]) -> PollResult:
        try:
            return await asyncio.to_thread(self._batch_get, query_ids)
        except (ClientError, BotoCoreError) as e:
            raise _service_error(e) from e

    async def cancel(self, query_id: str) -> None:
        try:
            await asyncio.to_thread(self._stop, query_id)
        except (ClientError, BotoCoreError) as e:
            raise _service_error(e) from e


__all__ = [
    "MAX_BATCH_SIZE",
    "AthenaQueryService",
    "build_execution_params",
    "load_execution_params",
    "parse_batch_response",
    "parse_query_execution",
]
