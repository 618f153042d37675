"""
Root pytest configuration.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

# Register logkeep testing fixtures for all tests
pytest_plugins = ("logkeep.testing.fixtures",)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests touching the real SQLite engine",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )
    config.addinivalue_line(
        "markers",
        "asyncio: Async tests",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics() -> Generator[None, None, None]:
    """Reset the diagnostics module state around each test.

    The diagnostics module caches the ``internal_logging_enabled`` setting and
    rate-limit counters at module level; tests must not inherit either.
    """
    import logkeep.core.diagnostics as diag

    diag._reset_for_tests()
    # Keep stderr quiet unless a test installs its own writer
    diag.set_writer_for_tests(lambda payload: None)
    yield
    diag._reset_for_tests()
