"""
Public store facade composing buffer, eviction policy and collection.

``append`` is fire-and-forget; every read-style call (``get_all``, ``count``,
``set_max_logs``) forces a flush first, so buffering is never observable to a
reader. ``close`` releases the collection handle but leaves the store usable.
"""

from __future__ import annotations

import types
from typing import Any, Mapping

from ..metrics.metrics import MetricsCollector
from ..storage import open_collection
from ..storage.base import PersistentCollection
from . import diagnostics
from .buffer import WriteBuffer
from .errors import LogkeepError
from .eviction import CapacityPolicy, validate_max_entries
from .serialization import snapshot_record
from .settings import Settings


class LogStore:
    """Capacity-bounded log record store with batched persistence.

    Usage:
        async with LogStore("__app__", 1000) as store:
            store.append({"name": "api", "message": "started"})
            records = await store.get_all()
    """

    def __init__(
        self,
        key: str | None = None,
        max_entries: int | None = None,
        *,
        collection: PersistentCollection | None = None,
        settings: Settings | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        cfg = settings or Settings()
        store_cfg = cfg.store
        self._key = key if key is not None else store_cfg.key
        if collection is not None and collection.key != self._key:
            raise ValueError(
                f"collection key {collection.key!r} does not match store key {self._key!r}"
            )
        self._collection = collection or open_collection(self._key, cfg)
        self._metrics = metrics or MetricsCollector(enabled=cfg.core.enable_metrics)
        self._policy = CapacityPolicy(
            max_entries if max_entries is not None else store_cfg.max_entries,
            metrics=self._metrics,
        )
        self._buffer = WriteBuffer(
            submit=self._write_batch,
            debounce_seconds=store_cfg.flush_debounce_seconds,
            max_pending=store_cfg.max_pending,
            max_retries=store_cfg.flush_max_retries,
            retry_base_delay=store_cfg.retry_base_delay,
            metrics=self._metrics,
        )

    async def __aenter__(self) -> LogStore:
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: types.TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def key(self) -> str:
        return self._key

    @property
    def collection(self) -> PersistentCollection:
        return self._collection

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def pending_count(self) -> int:
        return self._buffer.pending_count

    def append(self, record: Mapping[str, Any]) -> None:
        """Queue ``record`` for the next flush. Never raises."""
        try:
            snapshot = snapshot_record(record)
        except LogkeepError as exc:
            diagnostics.warn(
                "store",
                "record rejected",
                key=self._key,
                error=str(exc),
                _rate_limit_key="store-rejected",
            )
            self._metrics.record_dropped(1, reason="unserializable")
            return
        self._buffer.enqueue(snapshot)
        self._metrics.record_appended()

    async def get_all(self) -> list[dict[str, Any]]:
        async with self._buffer.exclusive(flush=True):
            stored = await self._collection.read()
        return [s.record for s in stored]

    async def count(self) -> int:
        async with self._buffer.exclusive(flush=True):
            return await self._collection.count()

    async def clear(self) -> None:
        async with self._buffer.exclusive(flush=False):
            self._buffer.discard()
            await self._collection.clear()

    async def flush(self) -> None:
        await self._buffer.flush_now()

    async def close(self) -> None:
        """Flush pending records, then release the collection handle.

        Never raises; failures are reported through diagnostics. Records that
        could not be flushed stay buffered for the next flush.
        """
        try:
            await self._buffer.flush_now()
        except Exception as exc:
            diagnostics.warn(
                "store",
                "flush during close failed",
                key=self._key,
                error_type=type(exc).__name__,
                error=str(exc),
                pending=self._buffer.pending_count,
            )
        try:
            await self._collection.close()
        except Exception as exc:
            diagnostics.warn(
                "store",
                "collection close failed",
                key=self._key,
                error_type=type(exc).__name__,
                error=str(exc),
            )

    def get_max_logs(self) -> int:
        return self._policy.max_entries

    async def set_max_logs(self, max_logs: int) -> None:
        # Validate before any flush side effect
        validate_max_entries(max_logs)
        async with self._buffer.exclusive(flush=True):
            self._policy.max_entries = max_logs
            await self._policy.enforce(self._collection)

    async def _write_batch(self, batch: list[dict[str, Any]]) -> None:
        await self._policy.make_room(self._collection, len(batch))
        await self._collection.append_many(batch)
        # The batch is durable now; a failed re-check must not trigger a retry
        try:
            await self._policy.enforce(self._collection)
        except Exception as exc:
            diagnostics.warn(
                "eviction",
                "post-flush trim failed",
                key=self._key,
                error_type=type(exc).__name__,
                error=str(exc),
            )


__all__ = ["LogStore"]
