"""Declarative table schemas and the idempotent ensure-schema step.

``ensure_schema`` compares a ``TableSchema`` against what SQLite reports and
applies only the missing pieces:
- missing table  -> CREATE TABLE IF NOT EXISTS
- missing column -> ALTER TABLE ... ADD COLUMN
- missing index  -> CREATE INDEX IF NOT EXISTS

Running it again against an up-to-date table changes nothing, and two callers
racing on a fresh database both succeed.
"""

from dataclasses import dataclass, field

import structlog

from blogmeta.db.handle import DatabaseHandle, quote_identifier, validate_identifier

log = structlog.get_logger()


@dataclass(frozen=True)
class Column:
    """One column definition."""

    name: str
    type: str
    constraints: str = ""
    collatable: bool = False
    primary_key: bool = False

    def render(self, collate: str = "") -> str:
        parts = [quote_identifier(self.name), self.type]
        if self.collatable and collate:
            parts.append(f"COLLATE {validate_identifier(collate)}")
        if self.constraints:
            parts.append(self.constraints)
        return " ".join(parts)


@dataclass(frozen=True)
class Index:
    """A non-unique index over a column list or expression.

    ``name`` is a suffix; the physical index name is ``<table>_<name>`` so
    that two prefixes in one database never collide.
    """

    name: str
    expression: str


@dataclass(frozen=True)
class TableSchema:
    """Full structure of one table."""

    name: str
    columns: tuple[Column, ...]
    indexes: tuple[Index, ...] = field(default_factory=tuple)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def index_name(self, index: Index) -> str:
        return validate_identifier(f"{self.name}_{index.name}")

    def create_table_sql(self, collate: str = "") -> str:
        body = ",\n    ".join(column.render(collate) for column in self.columns)
        return f"CREATE TABLE IF NOT EXISTS {quote_identifier(self.name)} (\n    {body}\n)"

    def create_index_sql(self, index: Index) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {quote_identifier(self.index_name(index))} "
            f"ON {quote_identifier(self.name)} ({index.expression})"
        )


async def ensure_schema(handle: DatabaseHandle, schema: TableSchema) -> list[str]:
    """Bring a table up to ``schema``.

    Primary-key columns cannot be added to an existing SQLite table; a missing
    one is logged and left for a migration step to handle.

    Returns:
        Human-readable descriptions of the changes applied, empty if none.
    """
    changes: list[str] = []
    existing = await handle.table_columns(schema.name)

    if not existing:
        await handle.query(schema.create_table_sql(handle.collate))
        changes.append(f"Created table {schema.name}")
    else:
        present = {column["name"].lower() for column in existing}
        for column in schema.columns:
            if column.name.lower() in present:
                continue
            if column.primary_key:
                log.warning(
                    "schema_primary_key_missing",
                    table=schema.name,
                    column=column.name,
                )
                continue
            await handle.query(
                f"ALTER TABLE {quote_identifier(schema.name)} "
                f"ADD COLUMN {column.render(handle.collate)}"
            )
            changes.append(f"Added column {schema.name}.{column.name}")

    indexes = set(await handle.index_names(schema.name))
    for index in schema.indexes:
        if schema.index_name(index) in indexes:
            continue
        await handle.query(schema.create_index_sql(index))
        changes.append(f"Added index {schema.index_name(index)}")

    if changes:
        log.info("schema_ensured", table=schema.name, changes=changes)

    return changes
