"""
Structured internal diagnostics for non-fatal errors.

Flush failures, dropped records and eviction problems are never raised to
``append`` callers; they are reported here instead as one JSON object per line
on stderr. Tests swap the writer with ``set_writer_for_tests``.

Emission is gated by ``core.internal_logging_enabled``. The setting is read
once on first use and cached; ``_reset_for_tests`` clears the cache.
"""

from __future__ import annotations

import sys
import threading
import time
from typing import Any, Callable

import orjson

Writer = Callable[[dict[str, Any]], None]

# Cached gate; None means "not read from settings yet"
_internal_logging_enabled: bool | None = None

_RATE_LIMIT_WINDOW_SECONDS = 10.0
_RATE_LIMIT_MAX_PER_WINDOW = 5
_rate_lock = threading.Lock()
_rate_state: dict[str, tuple[float, int]] = {}


def _stderr_writer(payload: dict[str, Any]) -> None:
    line = orjson.dumps(payload, default=str)
    sys.stderr.write(line.decode("utf-8") + "\n")


_writer: Writer = _stderr_writer


def set_writer_for_tests(writer: Writer) -> None:
    """Replace the diagnostics writer (tests only)."""
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _writer, _internal_logging_enabled
    _writer = _stderr_writer
    _internal_logging_enabled = None
    with _rate_lock:
        _rate_state.clear()


def is_enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(
                Settings().core.internal_logging_enabled
            )
        except Exception:
            _internal_logging_enabled = True
    return _internal_logging_enabled


def _allow(key: str | None) -> bool:
    if key is None:
        return True
    now = time.monotonic()
    with _rate_lock:
        started, count = _rate_state.get(key, (now, 0))
        if now - started >= _RATE_LIMIT_WINDOW_SECONDS:
            started, count = now, 0
        if count >= _RATE_LIMIT_MAX_PER_WINDOW:
            _rate_state[key] = (started, count)
            return False
        _rate_state[key] = (started, count + 1)
        return True


def _emit(
    level: str,
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    try:
        if not is_enabled() or not _allow(_rate_limit_key):
            return
        payload: dict[str, Any] = {
            "timestamp": time.time(),
            "level": level,
            "logger": "logkeep.diagnostics",
            "component": component,
            "message": message,
        }
        payload.update(fields)
        _writer(payload)
    except Exception:
        # Diagnostics must never break the caller
        pass


def warn(component: str, message: str, **fields: Any) -> None:
    """Emit a WARN diagnostic for a recovered internal error."""
    _emit("WARN", component, message, **fields)


def debug(component: str, message: str, **fields: Any) -> None:
    _emit("DEBUG", component, message, **fields)


__all__ = ["warn", "debug", "is_enabled", "set_writer_for_tests"]
