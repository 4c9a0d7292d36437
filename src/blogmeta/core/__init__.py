"""Core infrastructure - config, errors, hooks, lifecycle, logging."""

from blogmeta.core.config import ConfigManager
from blogmeta.core.errors import (
    BlogMetaError,
    InvalidIdentifierError,
    MigrationError,
    NotConnectedError,
    UnknownTableError,
)
from blogmeta.core.hooks import HookRegistry
from blogmeta.core.lifecycle import HealthCheckable, HealthCheckResult, HealthStatus
from blogmeta.core.logging import setup_logging

__all__ = [
    # Config
    "ConfigManager",
    # Errors
    "BlogMetaError",
    "InvalidIdentifierError",
    "MigrationError",
    "NotConnectedError",
    "UnknownTableError",
    # Hooks
    "HookRegistry",
    # Lifecycle
    "HealthCheckable",
    "HealthCheckResult",
    "HealthStatus",
    # Logging
    "setup_logging",
]
