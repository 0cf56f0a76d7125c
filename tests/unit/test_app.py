"""Tests for the application entry point."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

import pytest

from query_runner.app import apply_overrides, create_service, main, run_application
from query_runner.cli import parse_args
from query_runner.config import Config
from query_runner.exceptions import QueryServiceError
from query_runner.runner import EXIT_FAILURE, EXIT_OK
from query_runner.types import JobStatus
from tests.mocks import FakeQueryService


@pytest.fixture
def query_dir(tmp_path: Path) -> Path:
    root = tmp_path / "queries"
    root.mkdir()
    (root / "a.sql").write_text("SELECT 1", encoding="utf-8")
    (root / "b.sql").write_text("SELECT 2", encoding="utf-8")
    return root


class TestParseArgs:
    """Tests for parse_args()."""

    def test_defaults(self) -> None:
        parsed = parse_args(["queries"])
        assert parsed.query_dir == Path("queries")
        assert parsed.interval is None
        assert parsed.output is None
        assert parsed.max_concurrency is None
        assert parsed.log_level is None
        assert parsed.env_file is None
        assert parsed.no_render is False

    def test_all_options(self) -> None:
        parsed = parse_args(
            [
                "queries",
                "--interval",
                "0.5",
                "--output",
                "out.json",
                "--max-concurrency",
                "3",
                "--log-level",
                "DEBUG",
                "--env-file",
                "custom.env",
                "--no-render",
            ]
        )
        assert parsed.interval == 0.5
        assert parsed.output == Path("out.json")
        assert parsed.max_concurrency == 3
        assert parsed.log_level == "DEBUG"
        assert parsed.env_file == Path("custom.env")
        assert parsed.no_render is True

    def test_query_dir_is_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])


class TestApplyOverrides:
    """Tests for apply_overrides()."""

    def test_no_overrides_keeps_config(self) -> None:
        config = Config()
        assert apply_overrides(config, parse_args(["queries"])) is config

    def test_command_line_wins(self) -> None:
        parsed = parse_args(
            [
                "queries",
                "--interval",
                "5",
                "--output",
                "o.json",
                "--max-concurrency",
                "2",
                "--no-render",
            ]
        )

        config = apply_overrides(Config(poll_interval=1.0), parsed)

        assert config.poll_interval == 5.0
        assert config.output_path == Path("o.json")
        assert config.max_concurrency == 2
        assert config.render_progress is False

    def test_invalid_values_are_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        parsed = parse_args(["queries", "--interval", "0", "--max-concurrency", "-1"])

        with caplog.at_level(logging.WARNING):
            config = apply_overrides(Config(), parsed)

        assert config.poll_interval == 2.0
        assert config.max_concurrency == 0
        assert "--interval" in caplog.text
        assert "--max-concurrency" in caplog.text


class TestCreateService:
    """Tests for create_service()."""

    def test_merges_params_file_and_settings(self, tmp_path: Path) -> None:
        params_file = tmp_path / "params.json"
        params_file.write_text(json.dumps({"WorkGroup": "primary"}))
        config = Config(
            aws_region="eu-west-1",
            athena_database="events",
            execution_params_file=params_file,
        )

        with patch("query_runner.app.AthenaQueryService.create") as create:
            create_service(config)

        create.assert_called_once_with(
            region="eu-west-1",
            profile="",
            execution_params={
                "WorkGroup": "primary",
                "QueryExecutionContext": {"Database": "events"},
            },
        )

    def test_bad_params_file(self, tmp_path: Path) -> None:
        config = Config(execution_params_file=tmp_path / "missing.json")
        with pytest.raises(QueryServiceError):
            create_service(config)


class TestRunApplication:
    """Tests for run_application()."""

    def test_runs_batch_and_writes_results(
        self, query_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        output = tmp_path / "results.json"
        config = Config(poll_interval=0.01, output_path=output)
        service = FakeQueryService(
            states={"query-1": JobStatus.SUCCEEDED, "query-2": JobStatus.FAILED},
        )

        exit_code = run_application(config, parse_args([str(query_dir)]), service)

        assert exit_code == EXIT_OK
        data = json.loads(output.read_text(encoding="utf-8"))
        assert [(item["name"], item["status"]) for item in data] == [
            (str(query_dir / "a.sql"), "SUCCEEDED"),
            (str(query_dir / "b.sql"), "FAILED"),
        ]
        stdout = capsys.readouterr().out
        assert "Press Control+C to quit." in stdout
        assert f"Job results saved to {output}" in stdout

    def test_no_render(
        self, query_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = Config(poll_interval=0.01, output_path=tmp_path / "r.json", render_progress=False)
        service = FakeQueryService(
            states={"query-1": JobStatus.SUCCEEDED, "query-2": JobStatus.SUCCEEDED}
        )

        assert run_application(config, parse_args([str(query_dir)]), service) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_poll_failure_exits_with_failure(self, query_dir: Path, tmp_path: Path) -> None:
        output = tmp_path / "results.json"
        config = replace(Config(), poll_interval=0.01, output_path=output, render_progress=False)
        service = FakeQueryService(poll_script=[QueryServiceError("throttled")])

        assert run_application(config, parse_args([str(query_dir)]), service) == EXIT_FAILURE
        assert output.exists()

    def test_unwritable_output_exits_with_failure(
        self, query_dir: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        output = tmp_path / "taken"
        output.mkdir()
        config = Config(poll_interval=0.01, output_path=output, render_progress=False)
        service = FakeQueryService(
            states={"query-1": JobStatus.SUCCEEDED, "query-2": JobStatus.SUCCEEDED}
        )

        with caplog.at_level(logging.ERROR):
            exit_code = run_application(config, parse_args([str(query_dir)]), service)

        assert exit_code == EXIT_FAILURE
        assert "Cannot write results" in caplog.text
        assert list(output.iterdir()) == []

    def test_missing_query_dir(self, tmp_path: Path) -> None:
        service = FakeQueryService()
        parsed = parse_args([str(tmp_path / "missing")])

        assert run_application(Config(), parsed, service) == EXIT_FAILURE
        assert service.submit_calls == []


@pytest.mark.usefixtures("clean_env", "restore_root_logger")
class TestMain:
    """Tests for main()."""

    def test_service_error_exits_with_failure(self, tmp_path: Path) -> None:
        with patch(
            "query_runner.app.create_service", side_effect=QueryServiceError("profile not found")
        ):
            assert main([str(tmp_path)]) == EXIT_FAILURE

    def test_runs_with_created_service(self, query_dir: Path, tmp_path: Path) -> None:
        service = FakeQueryService(
            states={"query-1": JobStatus.SUCCEEDED, "query-2": JobStatus.SUCCEEDED}
        )
        output = tmp_path / "results.json"

        with patch("query_runner.app.create_service", return_value=service):
            exit_code = main(
                [str(query_dir), "--interval", "0.01", "--output", str(output), "--no-render"]
            )

        assert exit_code == EXIT_OK
        assert len(json.loads(output.read_text(encoding="utf-8"))) == 2
