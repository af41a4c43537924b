"""SQLite persistence for admin models.

``Database`` is typed async access over stdlib ``sqlite3`` run in
``anyio`` worker threads. ``SQLStore`` implements ``RecordStore`` on a
table, so a model can be registered against real storage instead of
the in-memory default.
"""

from roost.data.database import Database, DatabaseConfig
from roost.data.errors import DataError, QueryError
from roost.data.store import SQLSource, SQLStore

__all__ = [
    "DataError",
    "Database",
    "DatabaseConfig",
    "QueryError",
    "SQLSource",
    "SQLStore",
]
