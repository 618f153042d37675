"""
Pytest fixtures for logkeep.

Register with ``pytest_plugins = ("logkeep.testing.fixtures",)``.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from ..core import diagnostics
from ..core.settings import Settings
from ..storage.memory import MemoryBackend, MemoryCollection
from .mocks import FlakyCollection


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with a short debounce window and no retry backoff."""
    return Settings(
        store={
            "flush_debounce_seconds": 0.02,
            "retry_base_delay": 0.0,
        },
        storage={"backend": "memory"},
    )


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def memory_collection(memory_backend: MemoryBackend) -> MemoryCollection:
    return MemoryCollection("__test__", memory_backend)


@pytest.fixture
def flaky_collection(memory_collection: MemoryCollection) -> FlakyCollection:
    return FlakyCollection(memory_collection)


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "logs.sqlite3"


@pytest.fixture
def diagnostics_capture() -> Generator[list[dict[str, Any]], None, None]:
    """Collect diagnostics payloads emitted during the test."""
    captured: list[dict[str, Any]] = []
    diagnostics._reset_for_tests()
    diagnostics._internal_logging_enabled = True
    diagnostics.set_writer_for_tests(captured.append)
    yield captured
    diagnostics._reset_for_tests()


__all__ = [
    "diagnostics_capture",
    "fast_settings",
    "flaky_collection",
    "memory_backend",
    "memory_collection",
    "sqlite_path",
]
