"""
Shared pytest fixtures for blogmeta tests.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from blogmeta.db.handle import DatabaseHandle
from blogmeta.db.options import NetworkOptions
from blogmeta.services.schema_manager import SchemaManager


@pytest.fixture
def db_path(tmp_path):
    """Path to a fresh SQLite file."""
    return str(tmp_path / "network.db")


@pytest_asyncio.fixture
async def handle(db_path):
    """Connected DatabaseHandle with the default wp_ prefix."""
    handle = DatabaseHandle(db_path)
    await handle.connect()
    yield handle
    await handle.close()


@pytest.fixture
def options(handle):
    """Network options store for network 1."""
    return NetworkOptions(handle)


@pytest.fixture
def manager(handle, options):
    """SchemaManager with the real migration steps and an open policy gate."""
    return SchemaManager(handle, options)


@pytest.fixture
def mock_config():
    """Mock ConfigManager for unit tests."""
    config = MagicMock()
    config.get.return_value = None
    return config


@pytest.fixture
def mock_manager():
    """Mock SchemaManager for plugin wiring tests."""
    manager = MagicMock(spec=SchemaManager)
    manager.run_migration = AsyncMock()
    manager.delete_site_meta = AsyncMock(return_value=0)
    manager.health_check = AsyncMock()
    return manager
