"""blogmeta - network-wide site meta table for multisite installs."""

__version__ = "2.0.0"

from blogmeta.plugin import BlogMetaPlugin, bootstrap
from blogmeta.services.schema_manager import MigrationOutcome, MigrationResult, SchemaManager

__all__ = [
    "__version__",
    "BlogMetaPlugin",
    "MigrationOutcome",
    "MigrationResult",
    "SchemaManager",
    "bootstrap",
]
