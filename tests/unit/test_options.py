"""
Unit tests for the network options store.
"""
import pytest

from blogmeta.db.options import NetworkOptions


class TestNetworkOptions:
    """Tests for network-scoped scalar options."""

    def test_table_name(self, options):
        assert options.table == "wp_network_options"
        assert options.network_id == 1

    @pytest.mark.asyncio
    async def test_missing_returns_default(self, options):
        assert await options.get("nope") is None
        assert await options.get("nope", "fallback") == "fallback"

    @pytest.mark.asyncio
    async def test_update_then_get(self, options):
        await options.update("wpdb_blog_meta_version", 201609100001)

        assert await options.get("wpdb_blog_meta_version") == "201609100001"

    @pytest.mark.asyncio
    async def test_update_overwrites(self, handle, options):
        await options.update("key", "one")
        await options.update("key", "two")

        assert await options.get("key") == "two"
        assert await handle.get_var('SELECT COUNT(*) FROM "wp_network_options"') == 1

    @pytest.mark.asyncio
    async def test_networks_are_isolated(self, handle, options):
        other = NetworkOptions(handle, network_id=2)

        await options.update("key", "network-1")

        assert await other.get("key") is None
        await other.update("key", "network-2")
        assert await options.get("key") == "network-1"

    @pytest.mark.asyncio
    async def test_none_value(self, options):
        await options.update("key", None)

        assert await options.get("key", "default") is None

    @pytest.mark.asyncio
    async def test_delete(self, options):
        await options.update("key", "value")

        assert await options.delete("key") is True
        assert await options.delete("key") is False
        assert await options.get("key") is None

    @pytest.mark.asyncio
    async def test_persists_across_handles(self, db_path, options):
        from blogmeta.db.handle import DatabaseHandle

        await options.update("key", "kept")

        other = DatabaseHandle(db_path)
        await other.connect()
        try:
            assert await NetworkOptions(other).get("key") == "kept"
        finally:
            await other.close()

    @pytest.mark.asyncio
    async def test_reads_do_not_create_table(self, handle, options):
        assert await options.get("key", "fallback") == "fallback"
        assert await options.delete("key") is False

        found = await handle.get_var(
            "SELECT name FROM sqlite_master WHERE name = ?", ("wp_network_options",)
        )
        assert found is None
