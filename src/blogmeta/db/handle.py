"""Shared database handle.

The handle is the one object every component receives instead of reaching
for ambient global state. It owns:
- the aiosqlite connection (a single connection serialized by a lock)
- the global table prefix and the charset/collation defaults
- the table alias map (``handle.table("blogmeta")`` -> ``"wp_blogmeta"``)
- the list of global tables shared by every site of the network
- small query helpers that always bind values as parameters
"""

import asyncio
import re
from pathlib import Path
from typing import Any, Optional, Sequence

import aiosqlite
import structlog

from blogmeta.core.config import ConfigManager
from blogmeta.core.errors import InvalidIdentifierError, NotConnectedError, UnknownTableError

log = structlog.get_logger()

DEFAULT_DB_PATH = "./data/blogmeta.db"
DEFAULT_BASE_PREFIX = "wp_"

# Identifiers cannot be bound as parameters, so anything interpolated into
# SQL text must match this and is double-quoted on the way in.
_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_]+$")
_PREFIX_RE = re.compile(r"^[A-Za-z0-9_]*$")

# Accepted charset spellings -> SQLite encoding names
SQLITE_ENCODINGS = {
    "utf8": "UTF-8",
    "utf8mb4": "UTF-8",
    "utf-8": "UTF-8",
    "utf-16": "UTF-16",
    "utf-16le": "UTF-16le",
    "utf-16be": "UTF-16be",
}

Params = Sequence[Any]


def validate_identifier(name: str) -> str:
    """Return ``name`` unchanged if it is a plain SQL identifier."""
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise InvalidIdentifierError(str(name))
    return name


def quote_identifier(name: str) -> str:
    """Validate and double-quote an identifier for use in SQL text."""
    return f'"{validate_identifier(name)}"'


def esc_like(text: str) -> str:
    r"""Escape LIKE wildcards so ``text`` matches literally with ``ESCAPE '\'``."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DatabaseHandle:
    """Database context shared by the host and its plugins.

    Usage:
        handle = DatabaseHandle("./data/network.db", base_prefix="wp_")
        await handle.connect()
        handle.set_table_alias("blogmeta", handle.prefixed("blogmeta"))
        rows = await handle.get_results(
            f"SELECT * FROM {quote_identifier(handle.table('blogmeta'))} WHERE site_id = ?",
            (5,),
        )
    """

    def __init__(
        self,
        db_path: str = DEFAULT_DB_PATH,
        base_prefix: str = DEFAULT_BASE_PREFIX,
        charset: str = "",
        collate: str = "",
    ) -> None:
        """Initialize the handle.

        Args:
            db_path: SQLite database file, or ":memory:".
            base_prefix: Prefix for network-wide table names.
            charset: Database encoding applied on connect when non-empty.
            collate: Collation applied to text columns when non-empty.

        Raises:
            InvalidIdentifierError: If the prefix or collation is not a plain identifier.
            ValueError: If the charset is not an encoding SQLite supports.
        """
        if not isinstance(base_prefix, str) or not _PREFIX_RE.match(base_prefix):
            raise InvalidIdentifierError(str(base_prefix))
        if collate:
            validate_identifier(collate)
        if charset and charset.lower() not in SQLITE_ENCODINGS:
            raise ValueError(f"Unsupported charset: {charset!r}")

        self._db_path = db_path
        self._base_prefix = base_prefix
        self._charset = charset
        self._collate = collate
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._tables: dict[str, str] = {}
        self._global_tables: list[str] = []
        self._log = log.bind(component="database_handle")

    @classmethod
    def from_config(cls, config: ConfigManager) -> "DatabaseHandle":
        """Build a handle from the ``database.*`` configuration section."""
        return cls(
            db_path=config.get_str("database.path", DEFAULT_DB_PATH),
            base_prefix=config.get_str("database.base_prefix", DEFAULT_BASE_PREFIX),
            charset=config.get_str("database.charset", ""),
            collate=config.get_str("database.collate", ""),
        )

    # ============ Properties ============

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def base_prefix(self) -> str:
        return self._base_prefix

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def collate(self) -> str:
        return self._collate

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def global_tables(self) -> list[str]:
        """Aliases of tables shared by every site (copy)."""
        return list(self._global_tables)

    # ============ Connection ============

    async def connect(self) -> None:
        """Open the connection. Calling it again while connected is a no-op."""
        async with self._lock:
            if self._connection is not None:
                return

            in_memory = self._db_path == ":memory:"
            if not in_memory:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self._db_path)
            self._connection.row_factory = aiosqlite.Row

            # Only honored before the first table exists
            if self._charset:
                encoding = SQLITE_ENCODINGS[self._charset.lower()]
                await self._connection.execute(f"PRAGMA encoding = '{encoding}'")

            if not in_memory:
                await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA busy_timeout=5000")

        self._log.info("database_connected", db_path=self._db_path)

    async def close(self) -> None:
        async with self._lock:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None
        self._log.info("database_closed", db_path=self._db_path)

    def acquire(self) -> aiosqlite.Connection:
        """Return the open connection.

        Raises:
            NotConnectedError: If connect() has not been awaited.
        """
        if self._connection is None:
            raise NotConnectedError("Database handle not connected")
        return self._connection

    # ============ Table registry ============

    def prefixed(self, name: str) -> str:
        """Physical name of a network-wide table."""
        return validate_identifier(f"{self._base_prefix}{name}")

    def set_table_alias(self, alias: str, physical_name: str) -> None:
        self._tables[alias] = validate_identifier(physical_name)

    def has_table_alias(self, alias: str) -> bool:
        return alias in self._tables

    def table(self, alias: str) -> str:
        """Physical name registered for ``alias``.

        Raises:
            UnknownTableError: If the alias was never registered.
        """
        try:
            return self._tables[alias]
        except KeyError:
            raise UnknownTableError(alias) from None

    def append_global_table(self, alias: str) -> None:
        self._global_tables.append(alias)

    def is_global_table(self, alias: str) -> bool:
        return alias in self._global_tables

    # ============ Queries ============

    async def get_var(self, sql: str, params: Params = ()) -> Any:
        """First column of the first row, or None."""
        conn = self.acquire()
        async with conn.execute(sql, tuple(params)) as cursor:
            row = await cursor.fetchone()
        return None if row is None else row[0]

    async def get_col(self, sql: str, params: Params = ()) -> list[Any]:
        """First column of every row."""
        conn = self.acquire()
        async with conn.execute(sql, tuple(params)) as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def get_results(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        conn = self.acquire()
        async with conn.execute(sql, tuple(params)) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def query(self, sql: str, params: Params = ()) -> int:
        """Execute one statement and commit.

        Returns:
            Rows affected, as reported by SQLite.
        """
        conn = self.acquire()
        async with self._lock:
            cursor = await conn.execute(sql, tuple(params))
            affected = cursor.rowcount
            await cursor.close()
            await conn.commit()
        return affected

    async def insert(self, table: str, data: dict[str, Any]) -> int:
        """Insert one row.

        Returns:
            The new row's rowid.
        """
        if not data:
            raise ValueError("insert() needs at least one column")

        columns = ", ".join(quote_identifier(column) for column in data)
        placeholders = ", ".join("?" for _ in data)
        sql = f"INSERT INTO {quote_identifier(table)} ({columns}) VALUES ({placeholders})"

        conn = self.acquire()
        async with self._lock:
            cursor = await conn.execute(sql, tuple(data.values()))
            row_id = cursor.lastrowid
            await cursor.close()
            await conn.commit()
        return row_id

    async def delete(self, table: str, where: dict[str, Any]) -> int:
        """Delete rows matching every ``column = value`` pair in ``where``.

        Returns:
            Rows deleted.
        """
        if not where:
            raise ValueError("delete() needs a WHERE clause")

        conditions = " AND ".join(f"{quote_identifier(column)} = ?" for column in where)
        sql = f"DELETE FROM {quote_identifier(table)} WHERE {conditions}"
        return await self.query(sql, tuple(where.values()))

    async def table_columns(self, table: str) -> list[dict[str, Any]]:
        """Column descriptions (name, type, notnull, pk, ...) for a table."""
        return await self.get_results(
            "SELECT * FROM pragma_table_info(?)", (validate_identifier(table),)
        )

    async def index_names(self, table: str) -> list[str]:
        return await self.get_col(
            "SELECT name FROM pragma_index_list(?)", (validate_identifier(table),)
        )
