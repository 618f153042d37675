"""
SQLite-backed persistent collection.

All keys of a database file share one table. Ids come from
``INTEGER PRIMARY KEY AUTOINCREMENT`` so they are never reused and keep
increasing across close/reopen and full rewrites. Records are stored as
orjson-encoded blobs.

The sqlite3 module blocks, so every statement runs in a worker thread via
``asyncio.to_thread``; a per-handle ``asyncio.Lock`` keeps them serialized on
the single connection.
"""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

from ..core import diagnostics
from ..core.errors import PersistenceError
from ..core.serialization import decode_record, encode_record
from .base import StoredRecord

T = TypeVar("T")

_TABLE = "logkeep_records"

_SCHEMA = (
    f"CREATE TABLE IF NOT EXISTS {_TABLE} ("
    " id INTEGER PRIMARY KEY AUTOINCREMENT,"
    " store_key TEXT NOT NULL,"
    " payload BLOB NOT NULL"
    ")",
    f"CREATE INDEX IF NOT EXISTS idx_{_TABLE}_key_id ON {_TABLE} (store_key, id)",
)


class SQLiteCollection:
    """``PersistentCollection`` stored in a SQLite database file."""

    name = "sqlite"

    def __init__(self, key: str, path: str | Path = "logkeep.sqlite3") -> None:
        self._key = key
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def key(self) -> str:
        return self._key

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _connect(self) -> sqlite3.Connection:
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        else:
            diagnostics.warn(
                "storage",
                "sqlite collection uses an in-memory database; records are lost "
                "when the handle is closed",
                key=self._key,
            )
        conn = sqlite3.connect(self._path, check_same_thread=False)
        try:
            with conn:
                for stmt in _SCHEMA:
                    conn.execute(stmt)
        except Exception:
            conn.close()
            raise
        return conn

    async def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        async with self._lock:
            try:
                if self._conn is None:
                    self._conn = await asyncio.to_thread(self._connect)
                return await asyncio.to_thread(fn, self._conn)
            except PersistenceError:
                raise
            except (sqlite3.Error, OSError) as exc:
                raise PersistenceError(
                    f"sqlite {operation} failed for key {self._key!r}",
                    operation=operation,
                    cause=exc,
                    key=self._key,
                ) from exc

    def _insert(
        self, conn: sqlite3.Connection, records: Sequence[dict[str, Any]]
    ) -> list[StoredRecord]:
        stored: list[StoredRecord] = []
        for record in records:
            cur = conn.execute(
                f"INSERT INTO {_TABLE} (store_key, payload) VALUES (?, ?)",
                (self._key, encode_record(record)),
            )
            stored.append(StoredRecord(seq=int(cur.lastrowid or 0), record=dict(record)))
        return stored

    async def append(self, record: dict[str, Any]) -> StoredRecord:
        stored = await self.append_many([record])
        return stored[0]

    async def append_many(
        self, records: Sequence[dict[str, Any]]
    ) -> list[StoredRecord]:
        if not records:
            return []

        def _do(conn: sqlite3.Connection) -> list[StoredRecord]:
            with conn:
                return self._insert(conn, records)

        return await self._run("append", _do)

    async def read(self) -> list[StoredRecord]:
        def _do(conn: sqlite3.Connection) -> list[StoredRecord]:
            rows = conn.execute(
                f"SELECT id, payload FROM {_TABLE} WHERE store_key = ? ORDER BY id",
                (self._key,),
            ).fetchall()
            return [StoredRecord(seq=int(row[0]), record=decode_record(row[1])) for row in rows]

        return await self._run("read", _do)

    async def write(self, records: Sequence[dict[str, Any]]) -> None:
        def _do(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(f"DELETE FROM {_TABLE} WHERE store_key = ?", (self._key,))
                self._insert(conn, records)

        await self._run("write", _do)

    async def delete_oldest(self, n: int) -> int:
        if n <= 0:
            return 0

        def _do(conn: sqlite3.Connection) -> int:
            with conn:
                cur = conn.execute(
                    f"DELETE FROM {_TABLE} WHERE id IN ("
                    f"SELECT id FROM {_TABLE} WHERE store_key = ? ORDER BY id LIMIT ?"
                    ")",
                    (self._key, n),
                )
                return int(cur.rowcount)

        return await self._run("delete_oldest", _do)

    async def count(self) -> int:
        def _do(conn: sqlite3.Connection) -> int:
            row = conn.execute(
                f"SELECT COUNT(*) FROM {_TABLE} WHERE store_key = ?", (self._key,)
            ).fetchone()
            return int(row[0])

        return await self._run("count", _do)

    async def clear(self) -> None:
        def _do(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(f"DELETE FROM {_TABLE} WHERE store_key = ?", (self._key,))

        await self._run("clear", _do)

    async def close(self) -> None:
        async with self._lock:
            conn, self._conn = self._conn, None
            if conn is not None:
                try:
                    await asyncio.to_thread(conn.close)
                except sqlite3.Error:
                    # Handle is gone either way; next call reconnects
                    pass


__all__ = ["SQLiteCollection"]
