from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class StoredRecord:
    """A record as held by a collection, tagged with its sequence id.

    ``seq`` only orders records for eviction. It is reassigned whenever the
    collection is rewritten, so it must never be used as a stable key.
    """

    seq: int
    record: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class PersistentCollection(Protocol):
    """Durable, ordered record collection bound to one logical key.

    Implementations assign sequence ids that strictly increase for the
    lifetime of the backing medium. ``close()`` only releases the live handle:
    it is idempotent and any later call reopens a handle for the same key.
    Medium failures are raised as ``PersistenceError``.
    """

    @property
    def key(self) -> str:  # pragma: no cover - structural protocol
        ...

    async def append(self, record: dict[str, Any]) -> StoredRecord:
        ...

    async def append_many(
        self, records: Sequence[dict[str, Any]]
    ) -> list[StoredRecord]:
        """Store a batch in one transaction; all or nothing."""
        ...

    async def read(self) -> list[StoredRecord]:
        """Return every stored record ascending by sequence id."""
        ...

    async def write(self, records: Sequence[dict[str, Any]]) -> None:
        """Atomically replace the stored set, assigning fresh ids in order."""
        ...

    async def delete_oldest(self, n: int) -> int:
        ...

    async def count(self) -> int:
        ...

    async def clear(self) -> None:
        ...

    async def close(self) -> None:
        ...


__all__ = ["PersistentCollection", "StoredRecord"]
