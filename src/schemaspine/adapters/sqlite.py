"""SQLite store adapter.

Implements the :class:`~schemaspine.core.protocols.Store` contract over the
stdlib ``sqlite3`` module. The connection runs in autocommit mode: every
statement the mapper issues is its own transaction. Driver errors surface as
:class:`~schemaspine.core.errors.QueryError` with the failing SQL attached.

Usage::

    from schemaspine.adapters.sqlite import SQLiteStore

    store = SQLiteStore(":memory:")
    store.execute('CREATE TABLE "t" ("id" INTEGER PRIMARY KEY, "v" TEXT)')
    store.execute('INSERT INTO "t" ("v") VALUES (?)', "a")
    store.last_inserted_id        # 1
    store.prepare('SELECT * FROM "t"').all()   # [{'id': 1, 'v': 'a'}]
"""

from __future__ import annotations

import sqlite3
from typing import Any

from schemaspine.core.dialect import DEFAULT_DIALECT, Dialect
from schemaspine.core.errors import ErrorCategory, QueryError, StoreError
from schemaspine.core.protocols import ColumnInfo


def _execute(conn: sqlite3.Connection, sql: str, params: tuple[Any, ...]) -> sqlite3.Cursor:
    try:
        return conn.execute(sql, params)
    except (sqlite3.Error, OverflowError) as e:
        raise QueryError(f"SQLite rejected statement: {e}", sql=sql, cause=e) from e


class SQLitePreparedStatement:
    """One SQL text bound to a connection; sqlite3 caches the compiled form."""

    def __init__(self, conn: sqlite3.Connection, sql: str) -> None:
        self._conn = conn
        self.sql = sql

    def _run(self, params: tuple[Any, ...]) -> sqlite3.Cursor:
        return _execute(self._conn, self.sql, params)

    def get(self, *params: Any) -> dict[str, Any] | None:
        row = self._run(params).fetchone()
        return dict(row) if row is not None else None

    def all(self, *params: Any) -> list[dict[str, Any]]:
        return [dict(row) for row in self._run(params).fetchall()]

    def values(self, *params: Any) -> list[tuple]:
        return [tuple(row) for row in self._run(params).fetchall()]

    def __repr__(self) -> str:
        return f"SQLitePreparedStatement({self.sql!r})"


class SQLiteStore:
    """
    Embedded SQLite store.

    Suitable for a single logical caller; the mapper performs no locking, so
    concurrent use of one instance must be serialized by the caller.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        timeout: float = 5.0,
        readonly: bool = False,
        dialect: Dialect = DEFAULT_DIALECT,
    ) -> None:
        self.path = path
        self.dialect = dialect
        self._timeout = timeout
        self._readonly = readonly
        self._conn: sqlite3.Connection | None = None
        self._last_inserted_id = 0

    # -- Lifecycle ---------------------------------------------------------

    def connect(self) -> None:
        """Open the connection (idempotent)."""
        if self._conn is not None:
            return
        uri = self.path.startswith("file:")
        try:
            self._conn = sqlite3.connect(
                self.path,
                timeout=self._timeout,
                check_same_thread=False,
                isolation_level=None,
                uri=uri,
            )
            self._conn.row_factory = sqlite3.Row
            if self._readonly:
                self._conn.execute("PRAGMA query_only = ON")
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to connect to SQLite: {e}",
                category=ErrorCategory.DATABASE,
                cause=e,
            ) from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        """Underlying ``sqlite3.Connection`` (connects on first access)."""
        if self._conn is None:
            self.connect()
        return self._conn

    def __enter__(self) -> SQLiteStore:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- Store protocol ----------------------------------------------------

    def prepare(self, sql: str) -> SQLitePreparedStatement:
        return SQLitePreparedStatement(self.connection, sql)

    def execute(self, sql: str, *params: Any) -> int:
        cursor = _execute(self.connection, sql, params)
        if cursor.lastrowid:
            self._last_inserted_id = cursor.lastrowid
        return cursor.rowcount

    @property
    def last_inserted_id(self) -> int:
        return self._last_inserted_id

    def table_info(self, table_name: str) -> list[ColumnInfo]:
        rows = _execute(self.connection, self.dialect.table_info_query(table_name), ()).fetchall()
        return [
            ColumnInfo(
                name=row["name"],
                not_null=bool(row["notnull"]),
                default_value=row["dflt_value"],
                is_primary_key=row["pk"] > 0,
                type_name=row["type"] or "",
            )
            for row in rows
        ]

    def table_names(self) -> list[str]:
        rows = _execute(
            self.connection,
            "SELECT name FROM sqlite_master WHERE type = 'table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name",
            (),
        ).fetchall()
        return [row["name"] for row in rows]

    def __repr__(self) -> str:
        return f"SQLiteStore({self.path!r})"


__all__ = [
    "SQLitePreparedStatement",
    "SQLiteStore",
]
