"""SQL fragments for the embedded SQLite engine.

The query builder and reconciler never hard-code placeholder syntax,
identifier quoting or literal rendering. They ask a ``Dialect`` for those
fragments, which keeps every piece of engine-specific syntax in one place.

Examples:
    >>> from schemaspine.core.dialect import SQLiteDialect
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.quote_identifier("notes")
    '"notes"'
    >>> d.string_literal("it's")
    "'it''s'"

Guardrails:
    ❌ DON'T: Render runtime values with ``string_literal``; bind them
    ✅ DO: Use literals only for schema-declared DEFAULT values

Tags:
    dialect, sql, sqlite, schemaspine
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** the builder interpolates into its
    templates. Only identifiers and declared defaults ever pass through here;
    runtime values are bound with :meth:`placeholder`.
    """

    @property
    def name(self) -> str:
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name."""
        ...

    def string_literal(self, value: str) -> str:
        """Quote a trusted string as an SQL literal."""
        ...

    def blob_literal(self, value: bytes) -> str:
        """Render trusted bytes as an SQL blob literal."""
        ...

    def boolean_true(self) -> str:
        ...

    def boolean_false(self) -> str:
        ...

    def auto_increment(self) -> str:
        """Constraint suffix for an auto-incrementing primary key."""
        ...

    def unbounded_limit(self) -> str:
        """LIMIT value meaning "no limit", needed when only OFFSET is given."""
        ...

    def table_info_query(self, table_name: str) -> str:
        """Statement that introspects the columns of ``table_name``."""
        ...


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, double-quoted identifiers."""

    @property
    def name(self) -> str:
        return "sqlite"

    # -- Placeholders ------------------------------------------------------

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    # -- Identifiers and literals ------------------------------------------

    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def string_literal(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def blob_literal(self, value: bytes) -> str:
        return f"X'{bytes(value).hex()}'"

    def boolean_true(self) -> str:
        return "1"

    def boolean_false(self) -> str:
        return "0"

    # -- DDL ---------------------------------------------------------------

    def auto_increment(self) -> str:
        return "AUTOINCREMENT"

    # -- Paging ------------------------------------------------------------

    def unbounded_limit(self) -> str:
        return "-1"

    # -- Introspection -----------------------------------------------------

    def table_info_query(self, table_name: str) -> str:
        return f"PRAGMA table_info({self.quote_identifier(table_name)})"


DEFAULT_DIALECT: Dialect = SQLiteDialect()


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "DEFAULT_DIALECT",
]
