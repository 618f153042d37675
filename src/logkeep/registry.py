"""
Named loggers writing into a shared ``LogStore``.

``LogRegistry`` is an explicit context object: create one at the application's
composition root and pass it where loggers are needed. There is no
process-wide instance.
"""

from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import orjson

from .core.settings import Settings
from .core.store import LogStore


@dataclass
class LogStats:
    total_logs: int
    active_loggers: int
    max_logs: int


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def format_arg(arg: Any) -> str:
    if isinstance(arg, str):
        return arg
    if isinstance(arg, BaseException):
        stack = "".join(traceback.format_tb(arg.__traceback__))
        return f"{arg}\n{stack}"
    try:
        return orjson.dumps(arg).decode("utf-8")
    except TypeError:
        return str(arg)


class NamedLogger:
    """Formats positional arguments into one record per call."""

    def __init__(
        self,
        name: str,
        registry: LogRegistry,
        *,
        timestamps: bool = True,
        console_logging: bool = False,
    ) -> None:
        self._name = name
        self._registry = registry
        self._timestamps = timestamps
        self._console_logging = console_logging

    @property
    def name(self) -> str:
        return self._name

    @property
    def timestamps(self) -> bool:
        return self._timestamps

    @property
    def console_logging(self) -> bool:
        return self._console_logging

    def write_log(self, *args: Any) -> None:
        if not self._registry.enabled:
            return
        message = " ".join(format_arg(a) for a in args)
        entry: dict[str, Any] = {"name": self._name, "message": message}
        if self._timestamps:
            entry["timestamp"] = _utc_timestamp()
        self._registry.store.append(entry)
        if self._console_logging:
            sys.stdout.write(f"[{self._name}] {message}\n")

    __call__ = write_log

    def set_timestamps(self, enabled: bool) -> None:
        self._timestamps = bool(enabled)

    def set_console_logging(self, enabled: bool) -> None:
        self._console_logging = bool(enabled)


class LogRegistry:
    """Owns one store and the named loggers that write into it."""

    def __init__(
        self,
        store: LogStore | None = None,
        *,
        settings: Settings | None = None,
        max_logs: int | None = None,
    ) -> None:
        if store is None:
            store = LogStore(max_entries=max_logs, settings=settings)
        self._store = store
        self._loggers: dict[str, NamedLogger] = {}
        self._enabled = True
        self._timestamps = True
        self._console_logging = False

    @property
    def store(self) -> LogStore:
        return self._store

    @property
    def enabled(self) -> bool:
        return self._enabled

    def create_logger(self, name: str, *, timestamps: bool | None = None) -> NamedLogger:
        logger = NamedLogger(
            name,
            self,
            timestamps=self._timestamps if timestamps is None else timestamps,
            console_logging=self._console_logging,
        )
        self._loggers[name] = logger
        return logger

    def get_logger(self, name: str) -> NamedLogger | None:
        return self._loggers.get(name)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)

    def get_enabled(self) -> bool:
        return self._enabled

    def set_timestamps(self, enabled: bool) -> None:
        self._timestamps = bool(enabled)
        for logger in self._loggers.values():
            logger.set_timestamps(enabled)

    def get_timestamps(self) -> bool:
        return self._timestamps

    def set_console_logging(self, enabled: bool) -> None:
        self._console_logging = bool(enabled)
        for logger in self._loggers.values():
            logger.set_console_logging(enabled)

    async def clear(self) -> None:
        await self._store.clear()

    async def get_stats(self) -> LogStats:
        records = await self._store.get_all()
        names = {r["name"] for r in records if isinstance(r.get("name"), str) and r["name"]}
        return LogStats(
            total_logs=len(records),
            active_loggers=len(names),
            max_logs=self._store.get_max_logs(),
        )

    def get_max_logs(self) -> int:
        return self._store.get_max_logs()

    async def set_max_logs(self, max_logs: int) -> None:
        await self._store.set_max_logs(max_logs)

    async def close(self) -> None:
        await self._store.close()


__all__ = ["LogRegistry", "LogStats", "NamedLogger", "format_arg"]
