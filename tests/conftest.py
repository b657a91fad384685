"""Pytest hooks and fixtures."""

import os

import pytest

from vue_ui.components import InMemoryBufferBackend
from vue_ui.config.loader import clear_config_cache

THREE_OPTIONS = [
    {"id": "1", "text": "Option 1", "value": "option1"},
    {"id": "2", "text": "Option 2", "value": "option2"},
    {"id": "3", "text": "Option 3", "value": "option3"},
]


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line("markers", "slow: opens real sockets")


class RecordingTransport:
    """Transport that keeps every line and never delivers it."""

    def __init__(self):
        self.lines: list[str] = []

    async def send(self, line: str) -> None:
        self.lines.append(line)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point ~ at a temp dir and drop VUE_UI_* overrides so config is deterministic."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("VUE_UI_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield home
    clear_config_cache()


@pytest.fixture
def options():
    return [dict(o) for o in THREE_OPTIONS]


@pytest.fixture
def backend():
    return InMemoryBufferBackend()


@pytest.fixture
def recording_transport():
    return RecordingTransport()
