"""Migration 201609100000: owning site column.

Tables from the 1.0.1 release key rows by ``blog_id``. Renaming it keeps the
``blog_id`` index, which SQLite rewrites to point at ``site_id``.
"""

VERSION = 201609100000
DESCRIPTION = "Rename owner column blog_id to site_id"

REQUIRES_COLUMNS = ("blog_id",)

UP_SQL = 'ALTER TABLE {table} RENAME COLUMN "blog_id" TO "site_id"'
