"""Tests for best-effort cancellation of outstanding queries."""

from __future__ import annotations

import logging

import pytest

from query_runner.cancellation import CancellationHandler
from query_runner.types import JobStatus
from tests.helpers import make_job, make_registry
from tests.mocks import FakeQueryService


class TestCancellationHandler:
    """Tests for CancellationHandler.cancel_outstanding()."""

    @pytest.mark.asyncio
    async def test_cancels_only_outstanding_jobs(self) -> None:
        service = FakeQueryService()
        registry = make_registry(
            make_job("unit1.sql", None),
            make_job("unit2.sql", "q-2", JobStatus.RUNNING),
            make_job("unit3.sql", "q-3", JobStatus.QUEUED),
            make_job("unit4.sql", "q-4", JobStatus.SUCCEEDED),
        )

        attempted = await CancellationHandler(registry, service).cancel_outstanding()

        assert attempted == ["q-2", "q-3"]
        assert sorted(service.cancel_calls) == ["q-2", "q-3"]

    @pytest.mark.asyncio
    async def test_statuses_are_not_changed(self) -> None:
        service = FakeQueryService()
        registry = make_registry(
            make_job("unit2.sql", "q-2", JobStatus.RUNNING),
            make_job("unit3.sql", "q-3", JobStatus.QUEUED),
        )

        await CancellationHandler(registry, service).cancel_outstanding()

        assert registry["q-2"].status == JobStatus.RUNNING
        assert registry["q-3"].status == JobStatus.QUEUED

    @pytest.mark.asyncio
    async def test_errors_are_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        service = FakeQueryService(cancel_errors={"q-2"})
        registry = make_registry(
            make_job("unit2.sql", "q-2", JobStatus.RUNNING),
            make_job("unit3.sql", "q-3", JobStatus.QUEUED),
        )

        with caplog.at_level(logging.WARNING):
            attempted = await CancellationHandler(registry, service).cancel_outstanding()

        assert attempted == ["q-2", "q-3"]
        assert sorted(service.cancel_calls) == ["q-2", "q-3"]
        assert "1 of 2 cancellation requests failed" in caplog.text

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_ignored(self) -> None:
        class BrokenService(FakeQueryService):
            async def cancel(self, query_id: str) -> None:
                raise RuntimeError("socket closed")

        registry = make_registry(make_job("a.sql", "q-1", JobStatus.RUNNING))

        assert await CancellationHandler(registry, BrokenService()).cancel_outstanding() == ["q-1"]

    @pytest.mark.asyncio
    async def test_nothing_outstanding(self) -> None:
        service = FakeQueryService()
        registry = make_registry(make_job("a.sql", None))

        assert await CancellationHandler(registry, service).cancel_outstanding() == []
        assert service.cancel_calls == []

    @pytest.mark.asyncio
    async def test_concurrency_cap(self) -> None:
        service = FakeQueryService(call_delay=0.01)
        registry = make_registry(*(make_job(f"{i}.sql", f"q-{i}") for i in range(5)))

        await CancellationHandler(registry, service, max_concurrency=2).cancel_outstanding()

        assert len(service.cancel_calls) == 5
        assert service.max_in_flight == 2
