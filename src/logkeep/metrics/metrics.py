"""
Async-first store metrics for logkeep.

Implements a small set of Prometheus-compatible counters, histograms and a
gauge describing buffering, flushing and eviction.

Design goals:
- No global state; each store gets its own isolated registry
- Safe no-op exporter behavior when metrics are disabled by settings
- In-memory counters are always tracked so tests can assert on them
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram


@dataclass
class StoreMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    records_appended: int = 0
    records_dropped: int = 0
    flushes: int = 0
    records_flushed: int = 0
    flush_failures: int = 0
    records_requeued: int = 0
    records_evicted: int = 0
    pending: int = 0


class MetricsCollector:
    """Store-scoped metrics collector.

    When disabled, exporter objects are never created and every method only
    updates the in-memory ``StoreMetrics`` state.
    """

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = StoreMetrics()

        self._c_appended: Any | None = None
        self._c_dropped: Any | None = None
        self._c_flushes: Any | None = None
        self._c_flushed: Any | None = None
        self._c_flush_failures: Any | None = None
        self._c_requeued: Any | None = None
        self._c_evicted: Any | None = None
        self._h_flush_latency: Any | None = None
        self._h_batch_size: Any | None = None
        self._g_pending: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry avoids duplicate registration across stores
            self._registry = CollectorRegistry()
            self._c_appended = Counter(
                "logkeep_records_appended_total",
                "Total number of records accepted by append",
                registry=self._registry,
            )
            self._c_dropped = Counter(
                "logkeep_records_dropped_total",
                "Records discarded before becoming durable",
                ["reason"],
                registry=self._registry,
            )
            self._c_flushes = Counter(
                "logkeep_flushes_total",
                "Successful flushes of the write buffer",
                registry=self._registry,
            )
            self._c_flushed = Counter(
                "logkeep_records_flushed_total",
                "Records made durable by flushes",
                registry=self._registry,
            )
            self._c_flush_failures = Counter(
                "logkeep_flush_failures_total",
                "Flushes that failed after all retries",
                registry=self._registry,
            )
            self._c_requeued = Counter(
                "logkeep_records_requeued_total",
                "Records returned to the buffer after a failed flush",
                registry=self._registry,
            )
            self._c_evicted = Counter(
                "logkeep_records_evicted_total",
                "Records removed to honor the capacity bound",
                registry=self._registry,
            )
            self._h_flush_latency = Histogram(
                "logkeep_flush_seconds",
                "Latency of a flush including eviction",
                buckets=(0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
                registry=self._registry,
            )
            self._h_batch_size = Histogram(
                "logkeep_batch_size",
                "Number of records per flushed batch",
                buckets=(1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 5000),
                registry=self._registry,
            )
            self._g_pending = Gauge(
                "logkeep_pending_records",
                "Records buffered and not yet durable",
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    # Sync recorders: used from append, which must never suspend

    def record_appended(self, count: int = 1) -> None:
        self._state.records_appended += count
        if self._c_appended is not None:
            self._c_appended.inc(count)

    def record_dropped(self, count: int = 1, *, reason: str = "overflow") -> None:
        self._state.records_dropped += count
        if self._c_dropped is not None:
            self._c_dropped.labels(reason=reason).inc(count)

    def set_pending(self, pending: int) -> None:
        self._state.pending = pending
        if self._g_pending is not None:
            self._g_pending.set(pending)

    # Async recorders: used from flush paths

    async def record_flush(self, *, batch_size: int, latency_seconds: float) -> None:
        async with self._lock:
            self._state.flushes += 1
            self._state.records_flushed += batch_size
        if self._c_flushes is not None:
            self._c_flushes.inc()
        if self._c_flushed is not None:
            self._c_flushed.inc(batch_size)
        if self._h_batch_size is not None:
            self._h_batch_size.observe(batch_size)
        if self._h_flush_latency is not None:
            self._h_flush_latency.observe(latency_seconds)

    async def record_flush_failure(self, *, requeued: int) -> None:
        async with self._lock:
            self._state.flush_failures += 1
            self._state.records_requeued += requeued
        if self._c_flush_failures is not None:
            self._c_flush_failures.inc()
        if self._c_requeued is not None:
            self._c_requeued.inc(requeued)

    async def record_evicted(self, count: int) -> None:
        if count <= 0:
            return
        async with self._lock:
            self._state.records_evicted += count
        if self._c_evicted is not None:
            self._c_evicted.inc(count)

    async def snapshot(self) -> StoreMetrics:
        async with self._lock:
            return replace(self._state)


__all__ = ["MetricsCollector", "StoreMetrics"]
