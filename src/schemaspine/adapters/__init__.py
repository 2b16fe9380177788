"""Store adapters."""

from schemaspine.adapters.sqlite import SQLitePreparedStatement, SQLiteStore

__all__ = [
    "SQLitePreparedStatement",
    "SQLiteStore",
]
