"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from livequery.config import reset_config
from livequery.logging import reset_logging
from tests.utils import FakeRunner, RecordingHost

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep user config, env overrides and logging state out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("LIVEQUERY_LOG", raising=False)
    monkeypatch.delenv("LIVEQUERY_DELAY", raising=False)
    reset_config()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()
