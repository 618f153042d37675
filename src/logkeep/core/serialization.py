"""
JSON encoding of log records using orjson.

Records are stored as compact JSON bytes. ``snapshot_record`` round-trips a
caller's mapping once at append time so the buffered copy is independent of
later mutation and already normalized to JSON types.
"""

from __future__ import annotations

from typing import Any, Mapping

import orjson

from .errors import SerializationError


def _default(obj: Any) -> Any:
    """Default serializer hook for unsupported types."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def encode_record(record: Mapping[str, Any]) -> bytes:
    try:
        return orjson.dumps(record, default=_default)
    except TypeError as e:
        raise SerializationError("Record is not JSON serializable", cause=e) from e


def decode_record(data: bytes | str) -> dict[str, Any]:
    try:
        value = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise SerializationError("Stored record is not valid JSON", cause=e) from e
    if not isinstance(value, dict):
        raise SerializationError(
            f"Stored record must be an object, got {type(value).__name__}"
        )
    return value


def snapshot_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return a detached, JSON-normalized copy of ``record``."""
    if not isinstance(record, Mapping):
        raise SerializationError(
            f"Record must be a mapping, got {type(record).__name__}"
        )
    return decode_record(encode_record(dict(record)))


__all__ = ["encode_record", "decode_record", "snapshot_record"]
