"""Schema Manager - owns the blogmeta table and its schema version.

This service:
- Registers the table alias and global-table entry on the shared handle
- Creates the table on first run and applies migration steps on upgrade
- Records the applied schema version in the network options store
- Deletes a site's meta rows when the site is removed

Row contents are opaque to it; reading and writing meta values is the
caller's business.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from blogmeta.core.config import ConfigManager
from blogmeta.core.lifecycle import HealthCheckResult
from blogmeta.db.handle import DatabaseHandle, esc_like
from blogmeta.db.options import NetworkOptions
from blogmeta.db.schema import Column, Index, TableSchema, ensure_schema
from blogmeta.services.migrations import MigrationStep, load_migrations, pending_migrations

log = structlog.get_logger()

# Numeric schema version, compared as an integer
DB_VERSION = 201609100001
DB_VERSION_KEY = "wpdb_blog_meta_version"

TABLE_ALIAS = "blogmeta"

UpgradePolicy = Callable[[], bool]

_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


def config_upgrade_policy(config: ConfigManager) -> UpgradePolicy:
    """Policy gate backed by ``migrations.upgrade_global_tables``.

    The flag is read on every call so a reloaded config takes effect.
    """

    def should_upgrade_global_tables() -> bool:
        return config.get_bool("migrations.upgrade_global_tables", True)

    return should_upgrade_global_tables


def parse_version(value: Any) -> int:
    """Read a stored version as an integer.

    Leading digits count, anything else reads as 0, so a missing or mangled
    option behaves like a fresh install.
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else 0


def blogmeta_schema(table_name: str) -> TableSchema:
    """Current structure of the blogmeta table."""
    return TableSchema(
        name=table_name,
        columns=(
            Column("meta_id", "INTEGER", "PRIMARY KEY AUTOINCREMENT", primary_key=True),
            Column("site_id", "INTEGER", "NOT NULL"),
            Column("meta_key", "VARCHAR(255)", "DEFAULT NULL", collatable=True),
            Column("meta_value", "TEXT", "DEFAULT NULL", collatable=True),
        ),
        indexes=(
            Index("site_id", "site_id"),
            Index("meta_key", "meta_key"),
        ),
    )


class MigrationOutcome(str, Enum):
    """What run_migration() did."""

    CURRENT = "current"  # stored version already at or above target
    DISALLOWED = "disallowed"  # policy gate said no
    CREATED = "created"  # table created from scratch
    UPGRADED = "upgraded"  # migration steps applied up to target
    NO_PATH = "no_path"  # no known steps reach the target


@dataclass
class MigrationResult:
    """Result of one run_migration() call."""

    outcome: MigrationOutcome
    from_version: int
    to_version: int
    applied: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.to_version != self.from_version or bool(self.applied)


class SchemaManager:
    """Creates, migrates and prunes the network-wide blogmeta table.

    Usage:
        manager = SchemaManager(handle, NetworkOptions(handle))
        manager.register_table_reference()
        result = await manager.run_migration()
        await manager.delete_site_meta(42)
    """

    def __init__(
        self,
        handle: DatabaseHandle,
        options: NetworkOptions,
        policy: Optional[UpgradePolicy] = None,
        migrations: Optional[list[MigrationStep]] = None,
        target_version: int = DB_VERSION,
        version_key: str = DB_VERSION_KEY,
    ) -> None:
        """Initialize the manager.

        Args:
            handle: Shared database handle.
            options: Network-scoped store holding the schema version.
            policy: Gate deciding whether global tables may be upgraded.
                Defaults to always allowing.
            migrations: Ordered migration steps. Defaults to the steps
                discovered in ``blogmeta.services.migrations``.
            target_version: Schema version this code expects.
            version_key: Option name holding the stored version.
        """
        self._handle = handle
        self._options = options
        self._policy = policy or (lambda: True)
        self._migrations = sorted(
            migrations if migrations is not None else load_migrations(),
            key=lambda step: step.version,
        )
        self._target_version = target_version
        self._version_key = version_key
        self._default_table = handle.prefixed(TABLE_ALIAS)
        self._log = log.bind(component="schema_manager")

    @property
    def handle(self) -> DatabaseHandle:
        return self._handle

    @property
    def table_name(self) -> str:
        """Physical table name, as registered on the handle if it is."""
        if self._handle.has_table_alias(TABLE_ALIAS):
            return self._handle.table(TABLE_ALIAS)
        return self._default_table

    @property
    def target_version(self) -> int:
        return self._target_version

    @property
    def migrations(self) -> list[MigrationStep]:
        return list(self._migrations)

    def register_table_reference(self) -> None:
        """Expose the table on the shared handle. Safe to call any number of times."""
        if not self._handle.has_table_alias(TABLE_ALIAS):
            self._handle.set_table_alias(TABLE_ALIAS, self._default_table)
        if not self._handle.is_global_table(TABLE_ALIAS):
            self._handle.append_global_table(TABLE_ALIAS)

    def _table(self) -> str:
        self.register_table_reference()
        return self._handle.table(TABLE_ALIAS)

    async def stored_version(self) -> int:
        return parse_version(await self._options.get(self._version_key))

    async def table_exists(self) -> bool:
        found = await self._handle.get_var(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name LIKE ? ESCAPE '\\'",
            (esc_like(self._table()),),
        )
        return bool(found)

    async def run_migration(self) -> MigrationResult:
        """Create or upgrade the table if the stored version is behind.

        Storage errors propagate unchanged. The stored version only moves
        after the step that justifies it has returned.
        """
        stored = await self.stored_version()

        if stored >= self._target_version:
            return MigrationResult(MigrationOutcome.CURRENT, stored, stored)

        if not self._policy():
            self._log.info("blogmeta_migration_disallowed", stored_version=stored)
            return MigrationResult(MigrationOutcome.DISALLOWED, stored, stored)

        table = self._table()
        if not await self.table_exists():
            await ensure_schema(self._handle, blogmeta_schema(table))
            await self._options.update(self._version_key, self._target_version)
            self._log.info("blogmeta_table_created", table=table, version=self._target_version)
            return MigrationResult(MigrationOutcome.CREATED, stored, self._target_version)

        return await self._apply_migrations(table, stored)

    async def _apply_migrations(self, table: str, stored: int) -> MigrationResult:
        steps = pending_migrations(self._migrations, stored, self._target_version)
        current = stored
        applied: list[int] = []

        for step in steps:
            ran = await step.apply(self._handle, table)
            await self._options.update(self._version_key, step.version)
            current = step.version
            applied.append(step.version)
            self._log.info(
                "blogmeta_migration_step_applied",
                table=table,
                version=step.version,
                description=step.description,
                executed=ran,
            )

        if current < self._target_version:
            self._log.warning(
                "blogmeta_migration_no_path",
                table=table,
                stored_version=stored,
                reached_version=current,
                target_version=self._target_version,
            )
            return MigrationResult(MigrationOutcome.NO_PATH, stored, current, applied)

        return MigrationResult(MigrationOutcome.UPGRADED, stored, current, applied)

    async def delete_site_meta(self, site_id: int) -> int:
        """Delete every meta row owned by ``site_id``.

        Returns:
            Number of rows deleted (0 when the site had none).
        """
        table = self._table()
        deleted = await self._handle.delete(table, {"site_id": int(site_id)})
        self._log.info("blogmeta_site_meta_deleted", table=table, site_id=int(site_id), rows=deleted)
        return deleted

    async def health_check(self) -> HealthCheckResult:
        if not self._handle.is_connected:
            return HealthCheckResult.unhealthy("Database not connected")

        table = self._table()
        stored = await self.stored_version()
        if not await self.table_exists():
            return HealthCheckResult.degraded("Table missing", table=table, stored_version=stored)
        if stored < self._target_version:
            return HealthCheckResult.degraded(
                "Schema behind target",
                table=table,
                stored_version=stored,
                target_version=self._target_version,
            )
        return HealthCheckResult.healthy("Schema current", table=table, version=stored)
