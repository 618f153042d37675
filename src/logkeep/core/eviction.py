"""
Capacity eviction for a persistent collection.

Keeps a collection at or under ``max_entries`` records by removing the ones
with the lowest sequence ids. Flushes call ``make_room`` before adding a batch
and ``enforce`` afterwards; ``enforce`` falls back to a full rewrite when a
concurrent writer left the collection over capacity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import diagnostics
from .errors import InvalidConfigurationError

if TYPE_CHECKING:
    from ..metrics.metrics import MetricsCollector
    from ..storage.base import PersistentCollection


def validate_max_entries(value: object) -> int:
    # bool is an int subclass but never a meaningful capacity
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigurationError(
            "max_logs must be an integer", value=repr(value)
        )
    if value < 1:
        raise InvalidConfigurationError("max_logs must be at least 1", value=value)
    return value


class CapacityPolicy:
    """Oldest-first eviction down to ``max_entries``."""

    def __init__(
        self, max_entries: int, *, metrics: MetricsCollector | None = None
    ) -> None:
        self._max_entries = validate_max_entries(max_entries)
        self._metrics = metrics

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @max_entries.setter
    def max_entries(self, value: int) -> None:
        self._max_entries = validate_max_entries(value)

    async def make_room(self, collection: PersistentCollection, incoming: int) -> int:
        """Delete the oldest records so ``incoming`` more fit under the bound."""
        current = await collection.count()
        overflow = current + incoming - self._max_entries
        if overflow <= 0:
            return 0
        removed = await collection.delete_oldest(min(current, overflow))
        await self._record_evicted(removed)
        return removed

    async def enforce(self, collection: PersistentCollection) -> int:
        """Trim to the bound with a full rewrite if the count is still over."""
        current = await collection.count()
        if current <= self._max_entries:
            return 0
        stored = await collection.read()
        # Stable sort: equal ids keep read order
        stored.sort(key=lambda s: s.seq)
        keep = stored[-self._max_entries :]
        await collection.write([s.record for s in keep])
        removed = len(stored) - len(keep)
        diagnostics.debug(
            "eviction",
            "full trim rewrite",
            key=collection.key,
            removed=removed,
            max_entries=self._max_entries,
        )
        await self._record_evicted(removed)
        return removed

    async def _record_evicted(self, count: int) -> None:
        if self._metrics is not None:
            await self._metrics.record_evicted(count)


__all__ = ["CapacityPolicy", "validate_max_entries"]
