"""
Error types raised by blogmeta.

Storage faults from SQLite are never wrapped: they propagate as the
``sqlite3.Error`` subclasses aiosqlite raises. The classes here cover misuse
of the package itself.
"""
from typing import Optional


class BlogMetaError(Exception):
    """Base exception for all blogmeta errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class NotConnectedError(BlogMetaError, RuntimeError):
    """Database handle used before connect() or after close()."""

    pass


class InvalidIdentifierError(BlogMetaError, ValueError):
    """A table prefix or identifier is not a plain SQL identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"Invalid SQL identifier: {identifier!r}")
        self.identifier = identifier


class UnknownTableError(BlogMetaError, KeyError):
    """A table alias was looked up before it was registered."""

    def __init__(self, alias: str):
        super().__init__(f"Table alias not registered: {alias!r}")
        self.alias = alias

    def __str__(self) -> str:
        return self.message


class MigrationError(BlogMetaError):
    """Migration modules are malformed or conflict with each other."""

    pass
