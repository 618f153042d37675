"""
Configuration models for logkeep using Pydantic v2 Settings.

Every value can be supplied through the environment, e.g.
``LOGKEEP_STORE__MAX_ENTRIES=200`` or ``LOGKEEP_STORAGE__BACKEND=memory``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

DEFAULT_STORE_KEY = "__logkeep__"
DEFAULT_MAX_ENTRIES = 5000


class CoreSettings(BaseModel):
    """Process-level switches for diagnostics and metrics."""

    internal_logging_enabled: bool = Field(
        default=True,
        description=("Emit WARN diagnostics for recovered internal errors"),
    )
    enable_metrics: bool = Field(
        default=False,
        description=("Enable Prometheus-compatible metrics"),
    )


class StoreSettings(BaseModel):
    """Capacity and batching behaviour of a single store."""

    key: str = Field(
        default=DEFAULT_STORE_KEY,
        description=("Logical key identifying the durable collection"),
    )
    max_entries: int = Field(
        default=DEFAULT_MAX_ENTRIES,
        ge=1,
        description=("Maximum number of durable records kept per key"),
    )
    flush_debounce_seconds: float = Field(
        default=0.1,
        gt=0.0,
        description=("Quiet period after the last append before a flush fires"),
    )
    max_pending: int = Field(
        default=100_000,
        ge=1,
        description=(
            "Upper bound on buffered, not-yet-durable records; the oldest are "
            "dropped beyond it"
        ),
    )
    flush_max_retries: int = Field(
        default=3,
        ge=1,
        description=("Attempts per flush before the batch is requeued"),
    )
    retry_base_delay: float = Field(
        default=0.01,
        ge=0.0,
        description=("Base delay in seconds for exponential flush retry backoff"),
    )

    @field_validator("key")
    @classmethod
    def _ensure_key_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("key must not be empty")
        return value


class StorageSettings(BaseModel):
    """Selection of the durable engine behind each store."""

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description=("Persistent collection engine"),
    )
    path: str = Field(
        default="logkeep.sqlite3",
        description=("SQLite database file used by the sqlite backend"),
    )


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    model_config = SettingsConfigDict(
        env_prefix="LOGKEEP_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_json(self) -> str:
        import json

        return json.dumps(self.model_dump(by_alias=True, exclude_none=True))

    def to_dict(self) -> dict[str, object]:
        from typing import cast

        return cast(
            dict[str, object],
            self.model_dump(by_alias=True, exclude_none=True),
        )
