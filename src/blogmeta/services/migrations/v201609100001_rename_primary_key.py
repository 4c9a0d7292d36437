"""Migration 201609100001: 1.0.1 -> 2.0.0 table structure.

The 1.0.1 table named its primary key ``id``. RENAME COLUMN keeps the
column's type, NOT NULL and AUTOINCREMENT behavior, and leaves every row and
its id untouched.
"""

VERSION = 201609100001
DESCRIPTION = "Rename primary key column id to meta_id"

REQUIRES_COLUMNS = ("id",)

UP_SQL = 'ALTER TABLE {table} RENAME COLUMN "id" TO "meta_id"'
