from .errors import (
    ErrorCategory,
    InvalidConfigurationError,
    LogkeepError,
    PersistenceError,
    SerializationError,
)
from .settings import Settings

__all__ = [
    "ErrorCategory",
    "InvalidConfigurationError",
    "LogkeepError",
    "PersistenceError",
    "SerializationError",
    "Settings",
]
