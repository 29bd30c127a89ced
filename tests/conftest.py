"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from docwatch.config import reset_config
from docwatch.config.schema import WatchConfig
from docwatch.watching import FileWatcher
from tests.utils import DOC, ChangeRecorder, FakeNotifier, ManualClock, MemoryFileSystem


@pytest.fixture(autouse=True)
def _reset_config_cache():
    """Keep the global config cache from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fs() -> MemoryFileSystem:
    memory = MemoryFileSystem()
    memory.write(DOC, "# Hello\n", mtime=100.0)
    return memory


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def watch_config() -> WatchConfig:
    return WatchConfig(debounce_ms=100, poll_interval_ms=5000)


@pytest.fixture
def watcher(watch_config, fs, notifier, clock) -> FileWatcher:
    return FileWatcher(watch_config, metadata=fs, notifier=notifier, clock=clock)


@pytest.fixture
def changes() -> ChangeRecorder:
    return ChangeRecorder()
