"""Database access - shared handle, schema diffing, network options."""

from blogmeta.db.handle import DatabaseHandle, esc_like, quote_identifier, validate_identifier
from blogmeta.db.options import NetworkOptions
from blogmeta.db.schema import Column, Index, TableSchema, ensure_schema

__all__ = [
    "Column",
    "DatabaseHandle",
    "Index",
    "NetworkOptions",
    "TableSchema",
    "ensure_schema",
    "esc_like",
    "quote_identifier",
    "validate_identifier",
]
