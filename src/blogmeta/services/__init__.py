"""Services - schema management for the blogmeta table."""

from blogmeta.services.schema_manager import (
    DB_VERSION,
    DB_VERSION_KEY,
    MigrationOutcome,
    MigrationResult,
    SchemaManager,
    blogmeta_schema,
    config_upgrade_policy,
)

__all__ = [
    "DB_VERSION",
    "DB_VERSION_KEY",
    "MigrationOutcome",
    "MigrationResult",
    "SchemaManager",
    "blogmeta_schema",
    "config_upgrade_policy",
]
