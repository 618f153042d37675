"""
Public entrypoints for logkeep.

Provides ``LogStore`` (a capacity-bounded record store with debounced,
batched persistence) and ``LogRegistry`` (named loggers writing into a store).

@docs:examples
```python
from logkeep import LogRegistry, LogStore

store = LogStore("__app__", max_entries=1000)
registry = LogRegistry(store)
api = registry.create_logger("api")
api.write_log("request served", {"status": 200})

records = await store.get_all()  # flushes pending writes first
await registry.close()
```

@docs:notes
- ``append`` never raises and never waits for durability
- Reads (``get_all``, ``count``) always observe every earlier append
- ``close`` releases the storage handle; the store stays usable
- Settings come from ``LOGKEEP_*`` environment variables by default
"""

from __future__ import annotations

from ._version import __version__
from .core.errors import (
    InvalidConfigurationError,
    LogkeepError,
    PersistenceError,
    SerializationError,
)
from .core.settings import Settings
from .core.store import LogStore
from .metrics.metrics import MetricsCollector
from .registry import LogRegistry, LogStats, NamedLogger
from .storage import (
    MemoryBackend,
    MemoryCollection,
    PersistentCollection,
    SQLiteCollection,
    StoredRecord,
    open_collection,
)

VERSION = __version__

__all__ = [
    "InvalidConfigurationError",
    "LogRegistry",
    "LogStats",
    "LogStore",
    "LogkeepError",
    "MemoryBackend",
    "MemoryCollection",
    "MetricsCollector",
    "NamedLogger",
    "PersistenceError",
    "PersistentCollection",
    "SQLiteCollection",
    "SerializationError",
    "Settings",
    "StoredRecord",
    "VERSION",
    "__version__",
    "open_collection",
]
