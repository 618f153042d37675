"""
End-to-end store behavior on the SQLite engine.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from logkeep import LogRegistry, LogStore, Settings
from logkeep.storage import SQLiteCollection

pytestmark = pytest.mark.integration


def _settings(path: Path) -> Settings:
    return Settings(
        store={"flush_debounce_seconds": 0.02, "retry_base_delay": 0.0},
        storage={"backend": "sqlite", "path": str(path)},
    )


@pytest.mark.asyncio
async def test_records_survive_reopen(sqlite_path: Path) -> None:
    store = LogStore("app", 100, settings=_settings(sqlite_path))
    for i in range(3):
        store.append({"i": i})
    await store.close()

    reopened = LogStore("app", 100, settings=_settings(sqlite_path))
    try:
        assert await reopened.get_all() == [{"i": 0}, {"i": 1}, {"i": 2}]
        reopened.append({"i": 3})
        assert await reopened.count() == 4
    finally:
        await reopened.close()


@pytest.mark.asyncio
async def test_limit_applies_to_previously_stored_records(sqlite_path: Path) -> None:
    first = LogStore("app", 10, settings=_settings(sqlite_path))
    for i in range(10):
        first.append({"i": i})
    await first.close()

    second = LogStore("app", 4, settings=_settings(sqlite_path))
    try:
        second.append({"i": 10})
        assert await second.get_all() == [{"i": 7}, {"i": 8}, {"i": 9}, {"i": 10}]
    finally:
        await second.close()


@pytest.mark.asyncio
async def test_debounced_burst_keeps_most_recent(sqlite_path: Path) -> None:
    store = LogStore("burst", 5, settings=_settings(sqlite_path))
    try:
        for i in range(20):
            store.append({"i": i})
        await asyncio.sleep(0.1)
        assert store.pending_count == 0
        raw = SQLiteCollection("burst", sqlite_path)
        try:
            assert [s.record["i"] for s in await raw.read()] == [15, 16, 17, 18, 19]
        finally:
            await raw.close()
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_registry_on_sqlite(sqlite_path: Path) -> None:
    registry = LogRegistry(settings=_settings(sqlite_path), max_logs=50)
    try:
        registry.create_logger("worker", timestamps=False)("started", {"jobs": 2})
        stats = await registry.get_stats()
        assert stats.total_logs == 1
        assert stats.active_loggers == 1
        assert await registry.store.get_all() == [
            {"name": "worker", "message": 'started {"jobs":2}'}
        ]
    finally:
        await registry.close()
