from __future__ import annotations

from ..core.settings import Settings
from .base import PersistentCollection, StoredRecord
from .memory import MemoryBackend, MemoryCollection
from .sqlite import SQLiteCollection


def open_collection(
    key: str,
    settings: Settings | None = None,
    *,
    memory_backend: MemoryBackend | None = None,
) -> PersistentCollection:
    """Build the collection configured by ``settings.storage`` for ``key``.

    The handle itself is opened lazily by the first operation.
    """
    cfg = (settings or Settings()).storage
    if cfg.backend == "memory":
        return MemoryCollection(key, memory_backend)
    return SQLiteCollection(key, cfg.path)


__all__ = [
    "MemoryBackend",
    "MemoryCollection",
    "PersistentCollection",
    "SQLiteCollection",
    "StoredRecord",
    "open_collection",
]
