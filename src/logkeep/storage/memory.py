"""
In-process persistent collection.

``MemoryBackend`` plays the role of the durable medium: it outlives any
number of ``MemoryCollection`` handles, so closing and reopening a handle, or
opening a second store on the same key and backend, sees the same records.
Nothing is written to disk; the data lives as long as the backend object.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Sequence

from .base import StoredRecord


class MemoryBackend:
    """Shared medium holding records per key with monotonic sequence ids."""

    def __init__(self) -> None:
        self._records: dict[str, list[StoredRecord]] = {}
        self._next_seq: dict[str, int] = {}
        self._lock = asyncio.Lock()

    def keys(self) -> list[str]:
        return [k for k, v in self._records.items() if v]

    def _assign(self, key: str, records: Sequence[dict[str, Any]]) -> list[StoredRecord]:
        seq = self._next_seq.get(key, 1)
        stored = []
        for record in records:
            stored.append(StoredRecord(seq=seq, record=copy.deepcopy(record)))
            seq += 1
        self._next_seq[key] = seq
        return stored


class MemoryCollection:
    """``PersistentCollection`` over a ``MemoryBackend``."""

    name = "memory"

    def __init__(self, key: str, backend: MemoryBackend | None = None) -> None:
        self._key = key
        self._backend = backend if backend is not None else MemoryBackend()
        self._open = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def backend(self) -> MemoryBackend:
        return self._backend

    @property
    def is_open(self) -> bool:
        return self._open

    def _ensure_open(self) -> list[StoredRecord]:
        self._open = True
        return self._backend._records.setdefault(self._key, [])

    async def append(self, record: dict[str, Any]) -> StoredRecord:
        stored = await self.append_many([record])
        return stored[0]

    async def append_many(
        self, records: Sequence[dict[str, Any]]
    ) -> list[StoredRecord]:
        async with self._backend._lock:
            bucket = self._ensure_open()
            stored = self._backend._assign(self._key, records)
            bucket.extend(stored)
            return list(stored)

    async def read(self) -> list[StoredRecord]:
        async with self._backend._lock:
            bucket = self._ensure_open()
            return [
                StoredRecord(seq=s.seq, record=copy.deepcopy(s.record))
                for s in bucket
            ]

    async def write(self, records: Sequence[dict[str, Any]]) -> None:
        async with self._backend._lock:
            self._ensure_open()
            self._backend._records[self._key] = self._backend._assign(
                self._key, records
            )

    async def delete_oldest(self, n: int) -> int:
        if n <= 0:
            return 0
        async with self._backend._lock:
            bucket = self._ensure_open()
            removed = min(n, len(bucket))
            del bucket[:removed]
            return removed

    async def count(self) -> int:
        async with self._backend._lock:
            return len(self._ensure_open())

    async def clear(self) -> None:
        async with self._backend._lock:
            self._ensure_open()
            self._backend._records[self._key] = []

    async def close(self) -> None:
        self._open = False


__all__ = ["MemoryBackend", "MemoryCollection"]
