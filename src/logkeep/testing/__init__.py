"""
Testing utilities for logkeep.

This module provides a failure-injecting collection and protocol validators
for custom collections. Pytest fixtures live in ``logkeep.testing.fixtures``
and require the test extra: `pip install logkeep[test]`.

Example:
    from logkeep.testing import FlakyCollection, validate_collection

    def test_my_collection():
        result = validate_collection(MyCollection("key"))
        assert result.valid
"""

from .mocks import FlakyCollection
from .validators import (
    ProtocolViolationError,
    ValidationResult,
    validate_collection,
)

__all__ = [
    "FlakyCollection",
    "ProtocolViolationError",
    "ValidationResult",
    "validate_collection",
]
