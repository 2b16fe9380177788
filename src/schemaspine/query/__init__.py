"""Clause descriptors and the parameterized SQL builder."""

from schemaspine.query.builder import (
    BuiltQuery,
    build_add_column,
    build_aggregate_select,
    build_column_definition,
    build_count_where,
    build_create_table,
    build_delete,
    build_insert,
    build_select,
    build_update,
    render_default_literal,
)
from schemaspine.query.clauses import (
    AggregateQuery,
    DeleteQuery,
    OrderClause,
    SelectQuery,
    WhereClause,
)

__all__ = [
    "AggregateQuery",
    "BuiltQuery",
    "DeleteQuery",
    "OrderClause",
    "SelectQuery",
    "WhereClause",
    "build_add_column",
    "build_aggregate_select",
    "build_column_definition",
    "build_count_where",
    "build_create_table",
    "build_delete",
    "build_insert",
    "build_select",
    "build_update",
    "render_default_literal",
]
