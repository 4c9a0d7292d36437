"""Test fixtures for blogmeta tests.

This package provides:
- Legacy (1.0.1) table definitions for upgrade tests
- Throwaway migration packages for discovery tests
"""

from .schemas import LEGACY_TABLE_SQL, write_migration_package

__all__ = [
    "LEGACY_TABLE_SQL",
    "write_migration_package",
]
