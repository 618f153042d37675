"""
Debounced write buffer.

Appends land in an in-memory deque and (re)arm a single ``call_later`` timer.
When the timer fires, or when a reader forces it, every pending record is
handed to ``submit`` as one batch. Flushes are serialized by an
``asyncio.Lock`` so a forced flush that arrives during a timer flush waits for
it and then observes its result.

Failure handling:
- ``submit`` is retried with exponential backoff (``retry_base_delay * 2**n``)
- after the last attempt the batch goes back to the front of the queue
- forced flushes raise ``PersistenceError``; timer flushes only report it
- a cancelled flush waits for an in-flight submit, then requeues the batch
  unless it became durable

The queue is bounded by ``max_pending``; past the bound the oldest pending
records are dropped and reported.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable

from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .errors import PersistenceError

SubmitFn = Callable[[list[dict[str, Any]]], Awaitable[None]]


class WriteBuffer:
    """Pending-record queue with a debounce scheduler."""

    def __init__(
        self,
        *,
        submit: SubmitFn,
        debounce_seconds: float = 0.1,
        max_pending: int = 100_000,
        max_retries: int = 3,
        retry_base_delay: float = 0.01,
        metrics: MetricsCollector | None = None,
        name: str = "buffer",
    ) -> None:
        if debounce_seconds <= 0:
            raise ValueError("debounce_seconds must be > 0")
        if max_pending <= 0:
            raise ValueError("max_pending must be > 0")
        self._submit = submit
        self._debounce_seconds = debounce_seconds
        self._max_pending = max_pending
        self._max_retries = max(1, int(max_retries))
        self._retry_base_delay = max(0.0, retry_base_delay)
        self._metrics = metrics
        self._name = name
        self._pending: deque[dict[str, Any]] = deque()
        self._timer: asyncio.TimerHandle | None = None
        self._lock = asyncio.Lock()
        # Strong refs so timer-started flushes are not collected mid-flight
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def enqueue(self, record: dict[str, Any]) -> None:
        self._pending.append(record)
        self._enforce_bound()
        self._schedule()

    def discard(self) -> int:
        """Cancel the timer and drop pending records; return how many."""
        self._cancel_timer()
        dropped = len(self._pending)
        self._pending.clear()
        self._report_pending()
        return dropped

    async def flush_now(self) -> None:
        async with self.exclusive(flush=True):
            pass

    @asynccontextmanager
    async def exclusive(self, *, flush: bool = True) -> AsyncIterator[None]:
        """Hold the flush lock, optionally flushing first.

        Used by operations that must not interleave with an in-flight flush
        (clear, limit changes). A flush failure raises before the body runs.
        """
        async with self._lock:
            self._cancel_timer()
            if flush:
                await self._flush_locked(raise_errors=True)
            yield

    async def wait_idle(self) -> None:
        """Wait for any timer-started flush currently in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _schedule(self) -> None:
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: records wait for the next forced flush
            return
        self._timer = loop.call_later(self._debounce_seconds, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._background_flush())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _background_flush(self) -> None:
        try:
            async with self._lock:
                await self._flush_locked(raise_errors=False)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pragma: no cover - _flush_locked contains errors
            diagnostics.warn(
                self._name,
                "background flush error",
                error_type=type(exc).__name__,
                error=str(exc),
            )

    async def _flush_locked(self, *, raise_errors: bool) -> None:
        if not self._pending:
            return
        batch = list(self._pending)
        self._pending.clear()
        self._report_pending()
        start = time.perf_counter()
        last_exc: Exception | None = None
        # True once the batch is durable or its outcome is owned by a callback
        settled = False
        try:
            for attempt in range(self._max_retries):
                # Shielded: a cancelled caller must not abandon a write that may
                # still commit, or a requeue would duplicate it
                task = asyncio.ensure_future(self._submit(batch))
                try:
                    await asyncio.shield(task)
                    last_exc = None
                    break
                except asyncio.CancelledError:
                    settled = await self._settle(task, batch)
                    raise
                except Exception as exc:
                    last_exc = exc
                    diagnostics.warn(
                        self._name,
                        "flush attempt failed",
                        error_type=type(exc).__name__,
                        error=str(exc),
                        attempt=attempt + 1,
                        batch_size=len(batch),
                        _rate_limit_key=f"{self._name}-flush-attempt",
                    )
                    if attempt < self._max_retries - 1 and self._retry_base_delay > 0:
                        await asyncio.sleep(self._retry_base_delay * (2**attempt))
        except asyncio.CancelledError:
            if not settled:
                self._requeue(batch)
                diagnostics.warn(
                    self._name,
                    "flush cancelled; batch requeued",
                    requeued=len(batch),
                    pending=len(self._pending),
                )
            raise

        if last_exc is None:
            if self._metrics is not None:
                await self._metrics.record_flush(
                    batch_size=len(batch),
                    latency_seconds=time.perf_counter() - start,
                )
            return

        self._requeue(batch)
        diagnostics.warn(
            self._name,
            "flush failed; batch requeued",
            error_type=type(last_exc).__name__,
            error=str(last_exc),
            requeued=len(batch),
            pending=len(self._pending),
        )
        if self._metrics is not None:
            await self._metrics.record_flush_failure(requeued=len(batch))
        if raise_errors:
            if isinstance(last_exc, PersistenceError):
                raise last_exc
            raise PersistenceError(
                "flush failed after retries",
                operation="flush",
                cause=last_exc,
                batch_size=len(batch),
            ) from last_exc

    async def _settle(
        self, task: asyncio.Future[None], batch: list[dict[str, Any]]
    ) -> bool:
        """Wait out a submit whose caller was cancelled.

        Returns True when the caller must not requeue: the batch became
        durable, or a second cancel handed the outcome to a done callback.
        """
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.add_done_callback(functools.partial(self._requeue_if_failed, batch))
            return True
        return not task.cancelled() and task.exception() is None

    def _requeue_if_failed(
        self, batch: list[dict[str, Any]], task: asyncio.Future[None]
    ) -> None:
        if task.cancelled() or task.exception() is not None:
            self._requeue(batch)
            diagnostics.warn(
                self._name,
                "cancelled flush failed; batch requeued",
                requeued=len(batch),
                pending=len(self._pending),
            )

    def _requeue(self, batch: list[dict[str, Any]]) -> None:
        self._pending.extendleft(reversed(batch))
        self._enforce_bound()

    def _enforce_bound(self) -> None:
        overflow = len(self._pending) - self._max_pending
        if overflow > 0:
            for _ in range(overflow):
                self._pending.popleft()
            diagnostics.warn(
                self._name,
                "pending buffer full; dropped oldest records",
                dropped=overflow,
                max_pending=self._max_pending,
                _rate_limit_key=f"{self._name}-overflow",
            )
            if self._metrics is not None:
                self._metrics.record_dropped(overflow, reason="overflow")
        self._report_pending()

    def _report_pending(self) -> None:
        if self._metrics is not None:
            self._metrics.set_pending(len(self._pending))


__all__ = ["WriteBuffer"]
