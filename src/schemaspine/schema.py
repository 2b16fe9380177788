"""Schema model: column descriptors and table schemas.

Pure data plus two helpers. A ``TableSchema`` is the declared shape of one
row type; the reconciler compares it against what the live table holds and
the query builder renders SQL from it.

Columns are addressed two ways:

- ``name``: the attribute on the row object
- ``physical_name``: the column in the table (``mapped_to`` when set, so a
  field can be renamed without touching stored history)

Examples:
    >>> col = ColumnDescriptor("title", ColumnType.STRING, mapped_to="name")
    >>> resolve_column_name(col)
    'name'
    >>> render_column_type(ColumnType.JSON)
    'TEXT'

Tags:
    schema, columns, model, schemaspine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from schemaspine.core.errors import InvalidTableError


class ColumnType(str, Enum):
    """Logical column types understood by the mapper."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    JSON = "json"
    BLOB = "blob"


_PHYSICAL_TYPES: dict[ColumnType, str] = {
    ColumnType.BOOLEAN: "INTEGER",
    ColumnType.INTEGER: "INTEGER",
    ColumnType.NUMBER: "NUMERIC",
    ColumnType.STRING: "TEXT",
    ColumnType.JSON: "TEXT",
    ColumnType.BLOB: "BLOB",
}


@dataclass
class ColumnDescriptor:
    """Schema metadata for one field.

    Attributes:
        name: Field name on the row object
        type: Logical column type
        nullable: NULL is an accepted value
        default_value: Declared default (rendered into DDL, trusted)
        is_primary_key: Column is the table's primary key
        auto_increment: Engine assigns the value on insert (primary key only)
        mapped_to: Physical column name when it differs from ``name``
    """

    name: str
    type: ColumnType
    nullable: bool = False
    default_value: Any = None
    is_primary_key: bool = False
    auto_increment: bool = False
    mapped_to: str | None = None

    def __post_init__(self) -> None:
        self.type = ColumnType(self.type)

    @property
    def physical_name(self) -> str:
        return resolve_column_name(self)


def resolve_column_name(col: ColumnDescriptor) -> str:
    """Physical column name: ``mapped_to`` if set, else ``name``."""
    return col.mapped_to or col.name


def render_column_type(column_type: ColumnType) -> str:
    """SQL storage type for a logical column type."""
    try:
        return _PHYSICAL_TYPES[ColumnType(column_type)]
    except (KeyError, ValueError) as e:
        raise InvalidTableError(f"Invalid column type: {column_type!r}", cause=e) from e


@dataclass
class TableSchema:
    """Declared shape of one table.

    Identity is ``table_name``. Validated on construction:

    - at most one primary key
    - at most one auto-increment column, and it is the primary key
    - field names and physical names are unique
    """

    table_name: str
    columns: list[ColumnDescriptor] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        keys = [c.name for c in self.columns if c.is_primary_key]
        if len(keys) > 1:
            raise InvalidTableError(
                f"Table {self.table_name} declares more than one primary key: {keys}"
            ).with_context(table=self.table_name)

        for col in self.columns:
            if col.auto_increment and not col.is_primary_key:
                raise InvalidTableError(
                    f"Auto-increment column {col.name} must be the primary key"
                ).with_context(table=self.table_name, column=col.name)

        for label, names in (
            ("field", [c.name for c in self.columns]),
            ("column", [c.physical_name for c in self.columns]),
        ):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise InvalidTableError(
                    f"Table {self.table_name} has duplicate {label} names: {duplicates}"
                ).with_context(table=self.table_name)

    @property
    def primary_key(self) -> ColumnDescriptor | None:
        return next((c for c in self.columns if c.is_primary_key), None)

    @property
    def physical_names(self) -> list[str]:
        return [c.physical_name for c in self.columns]

    def column(self, name: str) -> ColumnDescriptor | None:
        """Look up a column by field name."""
        return next((c for c in self.columns if c.name == name), None)

    def by_physical_name(self, name: str) -> ColumnDescriptor | None:
        return next((c for c in self.columns if c.physical_name == name), None)

    def resolve(self, name: str) -> ColumnDescriptor | None:
        """Look up a column by field name, falling back to physical name."""
        return self.column(name) or self.by_physical_name(name)


__all__ = [
    "ColumnType",
    "ColumnDescriptor",
    "TableSchema",
    "resolve_column_name",
    "render_column_type",
]
