"""
Plugin wiring - connects the Schema Manager to the host's lifecycle hooks.

Hooks handled:
- activate:    create or upgrade the table
- init:        register the table on the shared handle
- switch_site: register again (the host may rebuild handle state per site)
- delete_site: delete the removed site's meta rows
- admin_init:  create or upgrade the table (only registered in admin context)
"""
from typing import Any, Optional

import structlog

from blogmeta.core import hooks as hook_names
from blogmeta.core.config import ConfigManager
from blogmeta.core.hooks import HookRegistry
from blogmeta.core.lifecycle import HealthCheckResult
from blogmeta.core.logging import setup_logging
from blogmeta.db.handle import DatabaseHandle
from blogmeta.db.options import DEFAULT_NETWORK_ID, NetworkOptions
from blogmeta.services.schema_manager import (
    MigrationResult,
    SchemaManager,
    config_upgrade_policy,
)

log = structlog.get_logger()


class BlogMetaPlugin:
    """Lifecycle callbacks for the blogmeta table.

    Usage:
        plugin = BlogMetaPlugin(manager)
        plugin.register(hooks, is_admin=request.is_admin)
        await hooks.do_action("activate")
    """

    def __init__(self, manager: SchemaManager) -> None:
        self._manager = manager
        self._log = log.bind(component="blogmeta_plugin")

    @property
    def manager(self) -> SchemaManager:
        return self._manager

    def register(self, hooks: HookRegistry, is_admin: bool = False) -> None:
        """Attach callbacks to the host's hooks."""
        hooks.add_action(hook_names.ACTIVATE, self.on_activate)
        hooks.add_action(hook_names.INIT, self.on_initialize)
        hooks.add_action(hook_names.SWITCH_SITE, self.on_context_switch)
        hooks.add_action(hook_names.DELETE_SITE, self.on_site_deleted)

        if is_admin:
            hooks.add_action(hook_names.ADMIN_INIT, self.on_admin_context_entered)

        self._log.debug("blogmeta_hooks_registered", is_admin=is_admin)

    async def on_activate(self) -> MigrationResult:
        return await self._manager.run_migration()

    def on_initialize(self) -> None:
        self._manager.register_table_reference()

    def on_context_switch(self, site_id: int, *args: Any) -> None:
        self._manager.register_table_reference()

    async def on_site_deleted(self, site_id: int, *args: Any) -> int:
        return await self._manager.delete_site_meta(site_id)

    async def on_admin_context_entered(self) -> MigrationResult:
        return await self._manager.run_migration()

    async def health_check(self) -> HealthCheckResult:
        return await self._manager.health_check()


async def bootstrap(
    config: ConfigManager,
    hooks: HookRegistry,
    is_admin: bool = False,
    handle: Optional[DatabaseHandle] = None,
    configure_logging: bool = False,
) -> BlogMetaPlugin:
    """Build and register the plugin from configuration.

    Args:
        config: Configuration source (``database.*``, ``network.id``,
            ``migrations.*``, ``logging.*``).
        hooks: The host's hook registry.
        is_admin: Whether the current request runs in the admin context.
        handle: Existing shared handle. A new one is built and connected
            from ``database.*`` when omitted.
        configure_logging: Set up structlog from ``logging.*`` first.

    Returns:
        The registered plugin.
    """
    if configure_logging:
        setup_logging(config)

    if handle is None:
        handle = DatabaseHandle.from_config(config)
    await handle.connect()

    options = NetworkOptions(handle, network_id=config.get_int("network.id", DEFAULT_NETWORK_ID))
    manager = SchemaManager(handle, options, policy=config_upgrade_policy(config))

    plugin = BlogMetaPlugin(manager)
    plugin.register(hooks, is_admin=is_admin)

    log.info(
        "blogmeta_plugin_loaded",
        table=manager.table_name,
        network_id=options.network_id,
        is_admin=is_admin,
    )
    return plugin
