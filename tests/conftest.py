"""Shared pytest fixtures for Query Runner tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

import pytest

from tests.mocks import FakeQueryService

ENV_PREFIXES = ("QUERY_RUNNER_", "ATHENA_")
AWS_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION", "AWS_PROFILE")


def _is_runner_setting(key: str) -> bool:
    return key.startswith(ENV_PREFIXES) or key in AWS_VARS


@pytest.fixture
def fake_service() -> FakeQueryService:
    return FakeQueryService()


@pytest.fixture
def clean_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Iterator[None]:
    """Remove runner settings from the environment.

    Settings that a test loads from a .env file are removed again afterwards.
    """
    for key in list(os.environ):
        if _is_runner_setting(key):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
    yield
    for key in list(os.environ):
        if _is_runner_setting(key):
            del os.environ[key]


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Restore root logger handlers and level after a setup_logging() test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    levels = {name: logging.getLogger(name).level for name in ("", "query_runner", "botocore")}
    yield
    root.handlers[:] = handlers
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)
