"""Network-scoped options store.

Options live in ``{base_prefix}network_options`` and are keyed by
``(network_id, option_name)``, so every site of a network reads the same
value. Values are stored as text.
"""

from typing import Any, Optional

import structlog

from blogmeta.db.handle import DatabaseHandle, quote_identifier

log = structlog.get_logger()

OPTIONS_TABLE = "network_options"
DEFAULT_NETWORK_ID = 1


class NetworkOptions:
    """Read and write scalar options for one network."""

    def __init__(self, handle: DatabaseHandle, network_id: int = DEFAULT_NETWORK_ID) -> None:
        self._handle = handle
        self._network_id = int(network_id)
        self._table = handle.prefixed(OPTIONS_TABLE)
        self._ready = False
        self._log = log.bind(component="network_options", network_id=self._network_id)

    @property
    def network_id(self) -> int:
        return self._network_id

    @property
    def table(self) -> str:
        return self._table

    async def _ensure_table(self) -> None:
        if self._ready:
            return
        await self._handle.query(
            f"""
            CREATE TABLE IF NOT EXISTS {quote_identifier(self._table)} (
                network_id INTEGER NOT NULL,
                option_name VARCHAR(255) NOT NULL,
                option_value TEXT,
                PRIMARY KEY (network_id, option_name)
            )
            """
        )
        self._ready = True

    async def _table_present(self) -> bool:
        # Reads never create the table
        if not self._ready:
            found = await self._handle.get_var(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (self._table,),
            )
            self._ready = found is not None
        return self._ready

    async def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Stored value for ``name``, or ``default`` when absent."""
        if not await self._table_present():
            return default
        rows = await self._handle.get_results(
            f"SELECT option_value FROM {quote_identifier(self._table)} "
            "WHERE network_id = ? AND option_name = ?",
            (self._network_id, name),
        )
        if not rows:
            return default
        return rows[0]["option_value"]

    async def update(self, name: str, value: Any) -> None:
        """Insert or overwrite ``name``."""
        await self._ensure_table()
        await self._handle.query(
            f"INSERT INTO {quote_identifier(self._table)} (network_id, option_name, option_value) "
            "VALUES (?, ?, ?) "
            "ON CONFLICT (network_id, option_name) DO UPDATE SET option_value = excluded.option_value",
            (self._network_id, name, None if value is None else str(value)),
        )
        self._log.debug("network_option_updated", option=name)

    async def delete(self, name: str) -> bool:
        """Remove ``name``. Returns True if it existed."""
        if not await self._table_present():
            return False
        removed = await self._handle.delete(
            self._table, {"network_id": self._network_id, "option_name": name}
        )
        return removed > 0
