"""
Basic usage example for logkeep.

Named loggers write into a capacity-bounded store; records are batched in
memory and persisted to a SQLite file on the next debounce tick.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from logkeep import LogRegistry, Settings


async def main() -> None:
    """Demonstrate basic logkeep usage."""

    settings = Settings(
        store={"max_entries": 100, "flush_debounce_seconds": 0.05},
        storage={"backend": "sqlite", "path": "example_logs.sqlite3"},
    )
    registry = LogRegistry(settings=settings)

    api = registry.create_logger("api")
    worker = registry.create_logger("worker", timestamps=False)
    registry.set_console_logging(True)

    api("Application started", {"environment": "development"})
    worker.write_log("processing batch", 42)
    try:
        raise RuntimeError("upstream timeout")
    except RuntimeError as exc:
        api("request failed:", exc)

    stats = await registry.get_stats()
    print(f"\n{stats.total_logs} records from {stats.active_loggers} loggers")

    for record in await registry.store.get_all():
        print(record)

    await registry.close()


if __name__ == "__main__":
    asyncio.run(main())
