"""Schema migrations for the blogmeta table.

Each migration is a Python module in this package named ``v<VERSION>_<slug>``
with:
- VERSION: int - The schema version the table is at once the step has run
- DESCRIPTION: str - Human-readable description
- UP_SQL: str - One SQL statement; ``{table}`` is replaced by the quoted table name
- REQUIRES_COLUMNS: tuple (optional) - Columns that must exist for the step to
  make sense. If any is missing the step is treated as already applied.

Steps are applied in ascending VERSION order, each one only when the stored
schema version is below it. The stored version is advanced after every step.
"""

import importlib
import pkgutil
import re
from dataclasses import dataclass

import structlog

from blogmeta.core.errors import MigrationError
from blogmeta.db.handle import DatabaseHandle, quote_identifier

log = structlog.get_logger()

_MODULE_RE = re.compile(r"^v(\d+)_\w+$")


@dataclass(frozen=True)
class MigrationStep:
    """One ordered schema change."""

    version: int
    description: str
    up_sql: str
    requires_columns: tuple[str, ...] = ()
    module: str = ""

    def render(self, table: str) -> str:
        return self.up_sql.format(table=quote_identifier(table))

    async def apply(self, handle: DatabaseHandle, table: str) -> bool:
        """Run the step against ``table``.

        Returns:
            True if the SQL ran, False if the step was already in place.
        """
        if self.requires_columns:
            present = {column["name"].lower() for column in await handle.table_columns(table)}
            missing = [name for name in self.requires_columns if name.lower() not in present]
            if missing:
                log.info(
                    "migration_step_already_applied",
                    version=self.version,
                    table=table,
                    missing_columns=missing,
                )
                return False

        await handle.query(self.render(table))
        return True


def load_migrations(package: str = __name__) -> list[MigrationStep]:
    """Discover migration modules in ``package``, sorted by version.

    Raises:
        MigrationError: If a module lacks a required attribute, its VERSION does
            not match its file name, or two modules share a version.
    """
    pkg = importlib.import_module(package)
    steps: dict[int, MigrationStep] = {}

    for module_info in pkgutil.iter_modules(pkg.__path__):
        match = _MODULE_RE.match(module_info.name)
        if not match:
            continue

        module_name = f"{package}.{module_info.name}"
        module = importlib.import_module(module_name)

        try:
            step = MigrationStep(
                version=int(module.VERSION),
                description=str(module.DESCRIPTION),
                up_sql=str(module.UP_SQL),
                requires_columns=tuple(getattr(module, "REQUIRES_COLUMNS", ())),
                module=module_name,
            )
        except AttributeError as e:
            raise MigrationError(f"Migration {module_name} is incomplete", cause=e) from e

        if step.version != int(match.group(1)):
            raise MigrationError(
                f"Migration {module_name} declares VERSION {step.version}"
            )
        if step.version in steps:
            raise MigrationError(
                f"Migrations {steps[step.version].module} and {module_name} "
                f"share version {step.version}"
            )
        steps[step.version] = step

    return [steps[version] for version in sorted(steps)]


def pending_migrations(
    steps: list[MigrationStep],
    stored_version: int,
    target_version: int,
) -> list[MigrationStep]:
    """Steps that move a table from ``stored_version`` toward ``target_version``."""
    return [step for step in steps if stored_version < step.version <= target_version]
