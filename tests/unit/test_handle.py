"""
Unit tests for DatabaseHandle.

Tests verify:
- Construction-time validation of prefix, charset and collation
- Connection lifecycle and pragmas
- Table alias and global-table registry
- Parameterized query helpers
"""
import pytest

from blogmeta.core.config import ConfigManager
from blogmeta.core.errors import InvalidIdentifierError, NotConnectedError, UnknownTableError
from blogmeta.db.handle import DatabaseHandle, esc_like, quote_identifier, validate_identifier


class TestIdentifiers:
    """Tests for identifier validation and LIKE escaping."""

    def test_plain_identifier(self):
        assert validate_identifier("wp_blogmeta") == "wp_blogmeta"

    def test_rejects_injection(self):
        with pytest.raises(InvalidIdentifierError):
            validate_identifier('wp_blogmeta"; DROP TABLE x; --')

    def test_rejects_empty(self):
        with pytest.raises(InvalidIdentifierError):
            validate_identifier("")

    def test_quote(self):
        assert quote_identifier("meta_id") == '"meta_id"'

    def test_esc_like_wildcards(self):
        assert esc_like("wp_blog%meta") == "wp\\_blog\\%meta"

    def test_esc_like_backslash_first(self):
        assert esc_like("a\\_") == "a\\\\\\_"

    def test_invalid_identifier_is_value_error(self):
        with pytest.raises(ValueError):
            validate_identifier("a b")


class TestConstruction:
    """Tests for constructor validation."""

    def test_defaults(self, db_path):
        handle = DatabaseHandle(db_path)
        assert handle.base_prefix == "wp_"
        assert handle.charset == ""
        assert handle.collate == ""
        assert not handle.is_connected

    def test_empty_prefix_allowed(self, db_path):
        handle = DatabaseHandle(db_path, base_prefix="")
        assert handle.prefixed("blogmeta") == "blogmeta"

    def test_bad_prefix(self, db_path):
        with pytest.raises(InvalidIdentifierError):
            DatabaseHandle(db_path, base_prefix="wp-")

    def test_bad_collation(self, db_path):
        with pytest.raises(InvalidIdentifierError):
            DatabaseHandle(db_path, collate="NOCASE; DROP")

    def test_unknown_charset(self, db_path):
        with pytest.raises(ValueError, match="Unsupported charset"):
            DatabaseHandle(db_path, charset="latin1")

    def test_from_config(self, tmp_path, monkeypatch):
        config_file = tmp_path / "blogmeta.toml"
        config_file.write_text(
            f"""
[database]
path = "{(tmp_path / 'cfg.db').as_posix()}"
base_prefix = "net_"
collate = "NOCASE"
"""
        )
        monkeypatch.setenv("BLOGMETA_DATABASE_CHARSET", "utf8mb4")

        handle = DatabaseHandle.from_config(ConfigManager(config_file))

        assert handle.db_path.endswith("cfg.db")
        assert handle.base_prefix == "net_"
        assert handle.collate == "NOCASE"
        assert handle.charset == "utf8mb4"


class TestConnection:
    """Tests for connect/close."""

    def test_acquire_before_connect(self, db_path):
        handle = DatabaseHandle(db_path)
        with pytest.raises(NotConnectedError):
            handle.acquire()

    @pytest.mark.asyncio
    async def test_query_before_connect(self, db_path):
        handle = DatabaseHandle(db_path)
        with pytest.raises(NotConnectedError):
            await handle.get_var("SELECT 1")

    @pytest.mark.asyncio
    async def test_connect_and_close(self, db_path):
        handle = DatabaseHandle(db_path)

        await handle.connect()
        assert handle.is_connected
        assert await handle.get_var("SELECT 1") == 1

        await handle.close()
        assert not handle.is_connected

    @pytest.mark.asyncio
    async def test_connect_twice(self, handle):
        connection = handle.acquire()
        await handle.connect()
        assert handle.acquire() is connection

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path):
        handle = DatabaseHandle(str(tmp_path / "nested" / "dir" / "network.db"))
        await handle.connect()
        try:
            assert (tmp_path / "nested" / "dir").is_dir()
        finally:
            await handle.close()

    @pytest.mark.asyncio
    async def test_wal_mode(self, handle):
        assert (await handle.get_var("PRAGMA journal_mode")).lower() == "wal"

    @pytest.mark.asyncio
    async def test_charset_applied_to_new_database(self, db_path):
        handle = DatabaseHandle(db_path, charset="utf-16le")
        await handle.connect()
        try:
            assert await handle.get_var("PRAGMA encoding") == "UTF-16le"
        finally:
            await handle.close()

    @pytest.mark.asyncio
    async def test_in_memory(self):
        handle = DatabaseHandle(":memory:")
        await handle.connect()
        try:
            assert await handle.get_var("SELECT 2") == 2
        finally:
            await handle.close()


class TestTableRegistry:
    """Tests for aliases and the global-table list."""

    def test_alias_roundtrip(self, db_path):
        handle = DatabaseHandle(db_path)
        handle.set_table_alias("blogmeta", "wp_blogmeta")

        assert handle.has_table_alias("blogmeta")
        assert handle.table("blogmeta") == "wp_blogmeta"

    def test_unknown_alias(self, db_path):
        handle = DatabaseHandle(db_path)
        with pytest.raises(UnknownTableError):
            handle.table("blogmeta")

    def test_unknown_alias_is_key_error(self, db_path):
        handle = DatabaseHandle(db_path)
        with pytest.raises(KeyError):
            handle.table("sitemeta")

    def test_alias_rejects_bad_physical_name(self, db_path):
        handle = DatabaseHandle(db_path)
        with pytest.raises(InvalidIdentifierError):
            handle.set_table_alias("blogmeta", "wp blogmeta")

    def test_global_tables_copy(self, db_path):
        handle = DatabaseHandle(db_path)
        handle.append_global_table("blogmeta")

        tables = handle.global_tables
        tables.append("other")

        assert handle.global_tables == ["blogmeta"]
        assert handle.is_global_table("blogmeta")
        assert not handle.is_global_table("other")


class TestQueries:
    """Tests for the query helpers."""

    @pytest.mark.asyncio
    async def test_insert_and_read(self, handle):
        await handle.query('CREATE TABLE "t" (id INTEGER PRIMARY KEY, name TEXT)')

        first = await handle.insert("t", {"name": "a"})
        second = await handle.insert("t", {"name": "b"})

        assert second == first + 1
        assert await handle.get_col('SELECT name FROM "t" ORDER BY id') == ["a", "b"]
        assert await handle.get_results('SELECT name FROM "t" WHERE id = ?', (first,)) == [
            {"name": "a"}
        ]

    @pytest.mark.asyncio
    async def test_values_are_bound(self, handle):
        await handle.query('CREATE TABLE "t" (id INTEGER PRIMARY KEY, name TEXT)')
        hostile = "x'); DROP TABLE t; --"

        await handle.insert("t", {"name": hostile})

        assert await handle.get_var('SELECT name FROM "t"') == hostile

    @pytest.mark.asyncio
    async def test_delete_counts_rows(self, handle):
        await handle.query('CREATE TABLE "t" (id INTEGER PRIMARY KEY, grp INTEGER)')
        for grp in (1, 1, 2):
            await handle.insert("t", {"grp": grp})

        assert await handle.delete("t", {"grp": 1}) == 2
        assert await handle.delete("t", {"grp": 1}) == 0
        assert await handle.get_var('SELECT COUNT(*) FROM "t"') == 1

    @pytest.mark.asyncio
    async def test_delete_requires_where(self, handle):
        with pytest.raises(ValueError):
            await handle.delete("t", {})

    @pytest.mark.asyncio
    async def test_insert_requires_data(self, handle):
        with pytest.raises(ValueError):
            await handle.insert("t", {})

    @pytest.mark.asyncio
    async def test_get_var_no_rows(self, handle):
        assert await handle.get_var("SELECT 1 WHERE 0") is None

    @pytest.mark.asyncio
    async def test_table_columns_missing_table(self, handle):
        assert await handle.table_columns("nothing_here") == []
