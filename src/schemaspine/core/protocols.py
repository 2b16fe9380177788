"""
Structural protocols for the mapper's external collaborators.

The mapper never imports a database driver or touches the filesystem
directly. It talks to two collaborators through the contracts below, so any
object with the right shape (the bundled ``SQLiteStore``, a test double) can
stand in.

Architecture:
    ::

        protocols.py
        ├── PreparedStatement  : get() / all() / values() over bound params
        ├── Store              : prepare / execute / last_inserted_id / table_info
        └── KeyValueStorage    : load(key) -> bytes | None, save(key, bytes)

Guardrails:
    ❌ DON'T: Add async methods; every mapper call is synchronous
    ✅ DO: Keep protocols pure contracts, implementations live in adapters

Tags:
    protocol, store, storage, contracts, schemaspine
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class ColumnInfo:
    """One introspected column of a live table.

    Attributes:
        name: Physical column name
        not_null: Column carries a NOT NULL constraint
        default_value: Raw SQL text of the DEFAULT clause, or None
        is_primary_key: Column is (part of) the primary key
        type_name: Declared SQL type as reported by the engine
    """

    name: str
    not_null: bool
    default_value: str | None
    is_primary_key: bool
    type_name: str = ""


@runtime_checkable
class PreparedStatement(Protocol):
    """A compiled statement that can be run against bound parameters."""

    def get(self, *params: Any) -> dict[str, Any] | None:
        """First row as a column-name keyed dict, or None."""
        ...

    def all(self, *params: Any) -> list[dict[str, Any]]:
        """All rows as column-name keyed dicts, in store order."""
        ...

    def values(self, *params: Any) -> list[tuple]:
        """All rows as positional tuples."""
        ...


@runtime_checkable
class Store(Protocol):
    """
    Minimal SYNCHRONOUS embedded store interface.

    Examples:
        >>> stmt = store.prepare("SELECT * FROM foo WHERE id = ?")
        >>> stmt.get(1)
        {'id': 1, 'foo': 'bar'}
        >>> store.execute("INSERT INTO foo (foo) VALUES (?)", "baz")
        1
        >>> store.last_inserted_id
        2
    """

    def prepare(self, sql: str) -> PreparedStatement:
        ...

    def execute(self, sql: str, *params: Any) -> int:
        """Run a statement and return the affected row count."""
        ...

    @property
    def last_inserted_id(self) -> int:
        ...

    def table_info(self, table_name: str) -> list[ColumnInfo]:
        """Column list of ``table_name``; empty when the table does not exist."""
        ...


@runtime_checkable
class KeyValueStorage(Protocol):
    """Byte-blob persistence keyed by string (used for the schema snapshot)."""

    def load(self, key: str) -> bytes | None:
        ...

    def save(self, key: str, data: bytes) -> None:
        ...


__all__ = [
    "ColumnInfo",
    "PreparedStatement",
    "Store",
    "KeyValueStorage",
]
