"""Clause descriptors consumed by the query builder.

These are inputs only; nothing here is persisted. A clause whose text the
caller writes (``WhereClause(text, bound_values)``) must carry exactly one
bound value per ``?`` placeholder. The builder does not parse caller text,
so the helper constructors are the way to get arity guaranteed.

Examples:
    >>> WhereClause("age > ? AND name = ?", (30, "ann")).bound_values
    (30, 'ann')
    >>> WhereClause.equals("id", 7)
    WhereClause(text='"id" = ?', bound_values=(7,))
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from schemaspine.core.dialect import DEFAULT_DIALECT
from schemaspine.core.errors import InvalidDataError
from schemaspine.schema import TableSchema


@dataclass(frozen=True)
class WhereClause:
    """Filter text with ``?`` placeholders and the values they bind."""

    text: str
    bound_values: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "bound_values", tuple(self.bound_values))

    @classmethod
    def equals(cls, column: str, value: Any, *, schema: TableSchema | None = None) -> WhereClause:
        """``<column> = ?`` bound to ``value``.

        ``column`` is a physical column name. With ``schema`` it may also be a
        field name, which is resolved through ``mapped_to``.

        Raises:
            InvalidDataError: ``schema`` has no such field or column.
        """
        if schema is not None:
            col = schema.resolve(column)
            if col is None:
                raise InvalidDataError(
                    f"Unknown column {column!r} for table {schema.table_name}", column=column
                )
            column = col.physical_name
        return cls(f"{DEFAULT_DIALECT.quote_identifier(column)} = ?", (value,))

    @classmethod
    def everything(cls) -> WhereClause:
        """Always-true filter for callers that want an explicit full scan."""
        return cls("1 = 1")


@dataclass(frozen=True)
class OrderClause:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class SelectQuery:
    """Filter, ordering and paging for select/delete statements.

    ``order`` takes one :class:`OrderClause` or a sequence of them. A missing
    ``where`` matches every row.
    """

    where: WhereClause | None = None
    order: OrderClause | Sequence[OrderClause] | None = None
    limit: int | None = None
    offset: int | None = None


# Every SelectQuery field is optional, so a delete takes the same shape.
DeleteQuery = SelectQuery


@dataclass(frozen=True)
class AggregateQuery:
    """Raw select expression with grouping.

    Example:
        AggregateQuery("category, COUNT(*)", group_by=["category"],
                       having=WhereClause("COUNT(*) > ?", (1,)))
    """

    select: str
    where: WhereClause | None = None
    group_by: Sequence[str] = field(default_factory=tuple)
    having: WhereClause | None = None
    order: OrderClause | Sequence[OrderClause] | None = None
    limit: int | None = None
    offset: int | None = None


__all__ = [
    "WhereClause",
    "OrderClause",
    "SelectQuery",
    "DeleteQuery",
    "AggregateQuery",
]
