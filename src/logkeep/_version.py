"""
Package version.

Kept in a separate module so ``pyproject.toml`` can read it without importing
the package.
"""

__version__ = "0.1.0"
