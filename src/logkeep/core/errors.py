"""
Error hierarchy for logkeep.

All errors raised across the public API derive from ``LogkeepError`` and carry
an ``ErrorCategory`` plus the original exception (``cause``) when one exists.
Write failures inside the batching buffer are recovered locally; these types
surface only from direct read, clear and limit-change calls.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    PERSISTENCE = "persistence"
    SERIALIZATION = "serialization"


class LogkeepError(Exception):
    """Base class for all logkeep errors."""

    category: ErrorCategory = ErrorCategory.PERSISTENCE

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        self.cause = cause
        self.context: dict[str, Any] = dict(context)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error.type": type(self).__name__,
            "error.message": self.message,
            "error.category": self.category.value,
        }
        if self.cause is not None:
            data["error.cause"] = f"{type(self.cause).__name__}: {self.cause}"
        data.update(self.context)
        return data


class InvalidConfigurationError(LogkeepError, ValueError):
    """Rejected configuration value, e.g. a capacity below 1."""

    category = ErrorCategory.CONFIGURATION


class PersistenceError(LogkeepError):
    """The durable medium rejected a read, write or clear."""

    category = ErrorCategory.PERSISTENCE

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        if operation is not None:
            context["operation"] = operation
        super().__init__(message, cause=cause, **context)
        self.operation = operation


class SerializationError(LogkeepError):
    """A record could not be encoded as JSON."""

    category = ErrorCategory.SERIALIZATION


__all__ = [
    "ErrorCategory",
    "InvalidConfigurationError",
    "LogkeepError",
    "PersistenceError",
    "SerializationError",
]
