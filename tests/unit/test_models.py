"""Tests for job records and their persisted form."""

from __future__ import annotations

import pytest

from query_runner.models import Job, PollResult
from query_runner.types import JobStatus
from tests.helpers import END, START, make_job


class TestJobStatus:
    """Tests for the JobStatus enum."""

    @pytest.mark.parametrize("status", [JobStatus.QUEUED, JobStatus.RUNNING])
    def test_active_states_are_not_terminal(self, status: JobStatus) -> None:
        assert status.is_terminal is False

    @pytest.mark.parametrize(
        "status", [JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELLED]
    )
    def test_final_states_are_terminal(self, status: JobStatus) -> None:
        assert status.is_terminal is True

    def test_statistics_only_for_running_and_succeeded(self) -> None:
        reporting = {s for s in JobStatus if s.reports_statistics}
        assert reporting == {JobStatus.RUNNING, JobStatus.SUCCEEDED}

    def test_values_match_service_states(self) -> None:
        assert JobStatus.values() == frozenset(
            {"QUEUED", "RUNNING", "SUCCEEDED", "FAILED", "CANCELLED"}
        )
        assert JobStatus.is_valid("RUNNING")
        assert not JobStatus.is_valid("running")


class TestJob:
    """Tests for the Job record."""

    def test_queued_factory(self) -> None:
        job = Job.queued("a.sql", "q-1")
        assert job.status == JobStatus.QUEUED
        assert job.query_id == "q-1"
        assert job.error is None
        assert not job.is_terminal

    def test_rejected_factory(self) -> None:
        job = Job.rejected("a.sql", "Syntax error")
        assert job.status == JobStatus.FAILED
        assert job.query_id is None
        assert job.error == "Syntax error"
        assert job.is_terminal

    def test_job_without_id_must_be_failed(self) -> None:
        with pytest.raises(ValueError, match="must be FAILED"):
            Job(name="a.sql", status=JobStatus.QUEUED)

    def test_status_string_is_coerced(self) -> None:
        job = Job(name="a.sql", status="RUNNING", query_id="q-1")  # type: ignore[arg-type]
        assert job.status is JobStatus.RUNNING


class TestJobSerialization:
    """Tests for Job.to_dict / Job.from_dict."""

    def test_absent_fields_are_omitted(self) -> None:
        data = Job.rejected("a.sql", "boom").to_dict()
        assert data == {"name": "a.sql", "status": "FAILED", "error": "boom"}
        assert "identifier" not in data
        assert "runtimeMillis" not in data

    def test_full_job_uses_document_keys(self) -> None:
        job = make_job(
            "b.sql",
            query_id="q-2",
            status=JobStatus.SUCCEEDED,
            start_time=START,
            end_time=END,
            runtime_millis=1200,
            bytes_scanned=2048,
        )
        assert job.to_dict() == {
            "name": "b.sql",
            "identifier": "q-2",
            "status": "SUCCEEDED",
            "startTime": START.isoformat(),
            "endTime": END.isoformat(),
            "runtimeMillis": 1200,
            "bytesScanned": 2048,
        }

    def test_from_dict_restores_fields(self) -> None:
        job = make_job(
            "b.sql",
            query_id="q-2",
            status=JobStatus.RUNNING,
            start_time=START,
            runtime_millis=10,
            bytes_scanned=0,
        )
        restored = Job.from_dict(job.to_dict())
        assert restored == job
        assert restored.end_time is None
        assert restored.bytes_scanned == 0

    def test_from_dict_rejects_unknown_status(self) -> None:
        with pytest.raises(ValueError):
            Job.from_dict({"name": "a.sql", "identifier": "q-1", "status": "PENDING"})


def test_poll_result_defaults_are_empty() -> None:
    result = PollResult()
    assert result.reports == []
    assert result.unprocessed == []
