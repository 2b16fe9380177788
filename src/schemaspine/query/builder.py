"""Parameterized SQL from a table schema and a clause descriptor.

Every function here is pure: ``(schema, clause) -> BuiltQuery(sql, params)``.
Runtime values are always bound through ``?`` placeholders. The only text
interpolated into SQL is table/column identifiers (declared at registration)
and declared DEFAULT values, which come from the schema, never from callers.

Statement shapes::

    SELECT * FROM "t" [WHERE ...] [ORDER BY ...] [LIMIT ?] [OFFSET ?]
    SELECT COUNT(*) FROM "t" [WHERE ...]
    SELECT <expr> FROM "t" [WHERE ...] [GROUP BY ...] [HAVING ...] [ORDER BY ...] [LIMIT ?] [OFFSET ?]
    INSERT INTO "t" ("a", "b") VALUES (?, ?)
    UPDATE "t" SET "a" = ?, "b" = ? WHERE "id" = ?
    DELETE FROM "t" [WHERE ...]
    DELETE FROM "t" WHERE rowid IN (SELECT rowid FROM "t" ... LIMIT ? OFFSET ?)
    CREATE TABLE "t" (<definition>, ...)
    ALTER TABLE "t" ADD COLUMN <definition>

Examples:
    >>> schema = TableSchema("foo", [ColumnDescriptor("id", ColumnType.INTEGER,
    ...     is_primary_key=True, auto_increment=True)])
    >>> build_select(schema, SelectQuery(WhereClause.equals("id", 3), limit=1))
    BuiltQuery(sql='SELECT * FROM "foo" WHERE "id" = ? LIMIT ?', params=(3, 1))

Tags:
    sql, query-builder, ddl, parameter-binding, schemaspine
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from schemaspine.codec import ValueCodec
from schemaspine.core.dialect import DEFAULT_DIALECT, Dialect
from schemaspine.core.errors import InvalidDataError, InvalidTableError
from schemaspine.query.clauses import AggregateQuery, OrderClause, SelectQuery, WhereClause
from schemaspine.schema import ColumnDescriptor, ColumnType, TableSchema, render_column_type


class BuiltQuery(NamedTuple):
    sql: str
    params: tuple[Any, ...]


# =========================================================================
# Shared fragments
# =========================================================================


def _table(schema: TableSchema, dialect: Dialect) -> str:
    return dialect.quote_identifier(schema.table_name)


def _resolve(schema: TableSchema, name: str, dialect: Dialect) -> str:
    col = schema.resolve(name)
    if col is None:
        raise InvalidDataError(
            f"Unknown column {name!r} for table {schema.table_name}", column=name
        )
    return dialect.quote_identifier(col.physical_name)


def _where(where: WhereClause | None, keyword: str = "WHERE") -> tuple[str, tuple[Any, ...]]:
    if where is None:
        return "", ()
    return f" {keyword} {where.text}", where.bound_values


def _order(
    schema: TableSchema,
    order: OrderClause | Sequence[OrderClause] | None,
    dialect: Dialect,
) -> str:
    if order is None:
        return ""
    clauses = [order] if isinstance(order, OrderClause) else list(order)
    if not clauses:
        return ""
    rendered = [
        _resolve(schema, c.column, dialect) + (" DESC" if c.descending else "")
        for c in clauses
    ]
    return " ORDER BY " + ", ".join(rendered)


def _check_count(value: Any, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidDataError(f"{label} must be a non-negative integer", value=value)


def _paging(limit: int | None, offset: int | None, dialect: Dialect) -> tuple[str, tuple[Any, ...]]:
    sql, params = "", []
    if limit is not None:
        _check_count(limit, "limit")
        sql += f" LIMIT {dialect.placeholder(0)}"
        params.append(limit)
    if offset is not None:
        _check_count(offset, "offset")
        if limit is None:
            sql += f" LIMIT {dialect.unbounded_limit()}"
        sql += f" OFFSET {dialect.placeholder(0)}"
        params.append(offset)
    return sql, tuple(params)


# =========================================================================
# Reads
# =========================================================================


def build_select(
    schema: TableSchema,
    query: SelectQuery | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> BuiltQuery:
    """``SELECT *`` with optional filter, ordering and paging.

    A missing ``where`` matches all rows; no full-scan guard is applied.
    """
    query = query or SelectQuery()
    where_sql, where_params = _where(query.where)
    paging_sql, paging_params = _paging(query.limit, query.offset, dialect)
    sql = (
        f"SELECT * FROM {_table(schema, dialect)}"
        f"{where_sql}{_order(schema, query.order, dialect)}{paging_sql}"
    )
    return BuiltQuery(sql, where_params + paging_params)


def build_count_where(
    schema: TableSchema,
    where: WhereClause | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> BuiltQuery:
    where_sql, where_params = _where(where)
    return BuiltQuery(f"SELECT COUNT(*) FROM {_table(schema, dialect)}{where_sql}", where_params)


def build_aggregate_select(
    schema: TableSchema,
    query: AggregateQuery,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> BuiltQuery:
    """Raw select expression with GROUP BY / HAVING.

    ``query.select`` is caller-trusted SQL; group-by columns are resolved
    against the schema.
    """
    where_sql, where_params = _where(query.where)
    group_sql = ""
    if query.group_by:
        group_sql = " GROUP BY " + ", ".join(
            _resolve(schema, name, dialect) for name in query.group_by
        )
    having_sql, having_params = _where(query.having, "HAVING")
    paging_sql, paging_params = _paging(query.limit, query.offset, dialect)
    sql = (
        f"SELECT {query.select} FROM {_table(schema, dialect)}"
        f"{where_sql}{group_sql}{having_sql}"
        f"{_order(schema, query.order, dialect)}{paging_sql}"
    )
    return BuiltQuery(sql, where_params + having_params + paging_params)


# =========================================================================
# Writes
# =========================================================================


def _required_values(
    schema: TableSchema,
    column_values: Mapping[str, Any],
    columns: list[ColumnDescriptor],
) -> None:
    missing = [c.physical_name for c in columns if c.physical_name not in column_values]
    if missing:
        raise InvalidDataError(
            f"Missing values for columns {missing} of table {schema.table_name}"
        ).with_context(table=schema.table_name)


def build_insert(
    schema: TableSchema,
    column_values: Mapping[str, Any],
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> BuiltQuery:
    """Insert one row.

    ``column_values`` is keyed by physical column name and must hold every
    declared column except an auto-increment key, which may be left out for
    the engine to assign. Columns are emitted in declaration order.
    """
    _required_values(schema, column_values, [c for c in schema.columns if not c.auto_increment])
    columns = [c for c in schema.columns if c.physical_name in column_values]
    if not columns:
        return BuiltQuery(f"INSERT INTO {_table(schema, dialect)} DEFAULT VALUES", ())

    names = ", ".join(dialect.quote_identifier(c.physical_name) for c in columns)
    sql = (
        f"INSERT INTO {_table(schema, dialect)} ({names}) "
        f"VALUES ({dialect.placeholders(len(columns))})"
    )
    return BuiltQuery(sql, tuple(column_values[c.physical_name] for c in columns))


def build_update(
    schema: TableSchema,
    column_values: Mapping[str, Any],
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> BuiltQuery:
    """Update every declared column of the row whose primary key matches.

    Raises:
        InvalidTableError: The schema has no primary key.
        InvalidDataError: A column value (including the key) is missing.
    """
    pk = schema.primary_key
    if pk is None:
        raise InvalidTableError(
            f"Table {schema.table_name} has no primary key to update by"
        ).with_context(table=schema.table_name)
    _required_values(schema, column_values, schema.columns)

    columns = [c for c in schema.columns if not c.is_primary_key] or [pk]
    assignments = ", ".join(
        f"{dialect.quote_identifier(c.physical_name)} = {dialect.placeholder(i)}"
        for i, c in enumerate(columns)
    )
    sql = (
        f"UPDATE {_table(schema, dialect)} SET {assignments} "
        f"WHERE {dialect.quote_identifier(pk.physical_name)} = {dialect.placeholder(len(columns))}"
    )
    params = tuple(column_values[c.physical_name] for c in columns)
    return BuiltQuery(sql, params + (column_values[pk.physical_name],))


def build_delete(
    schema: TableSchema,
    query: SelectQuery | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> BuiltQuery:
    """Delete matching rows.

    Paging is applied through a ``rowid IN (SELECT ...)`` subquery because
    ``DELETE ... LIMIT`` is a compile-time option most SQLite builds lack.
    """
    query = query or SelectQuery()
    table = _table(schema, dialect)
    where_sql, where_params = _where(query.where)
    if query.limit is None and query.offset is None:
        return BuiltQuery(f"DELETE FROM {table}{where_sql}", where_params)

    paging_sql, paging_params = _paging(query.limit, query.offset, dialect)
    sql = (
        f"DELETE FROM {table} WHERE rowid IN ("
        f"SELECT rowid FROM {table}{where_sql}"
        f"{_order(schema, query.order, dialect)}{paging_sql})"
    )
    return BuiltQuery(sql, where_params + paging_params)


# =========================================================================
# DDL
# =========================================================================


def render_default_literal(
    col: ColumnDescriptor,
    codec: ValueCodec | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> str:
    """SQL literal for a schema-declared default value.

    Only ever called with defaults declared at registration time.
    """
    value = col.default_value
    match col.type:
        case ColumnType.BOOLEAN:
            return dialect.boolean_true() if value else dialect.boolean_false()
        case ColumnType.INTEGER | ColumnType.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidTableError(
                    f"Default for numeric column {col.name} is not a number: {value!r}"
                ).with_context(column=col.name)
            return repr(value)
        case ColumnType.STRING:
            return dialect.string_literal(str(value))
        case ColumnType.JSON:
            return dialect.string_literal((codec or ValueCodec()).dumps(value))
        case ColumnType.BLOB:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise InvalidTableError(
                    f"Default for blob column {col.name} is not bytes: {value!r}"
                ).with_context(column=col.name)
            return dialect.blob_literal(bytes(value))
    raise InvalidTableError(f"Invalid column type: {col.type!r}")


def build_column_definition(
    col: ColumnDescriptor,
    codec: ValueCodec | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> str:
    """``<name> <SQLTYPE> [NOT NULL] [DEFAULT <literal>] [PRIMARY KEY [AUTOINCREMENT]]``."""
    parts = [dialect.quote_identifier(col.physical_name), render_column_type(col.type)]
    if not col.nullable:
        parts.append("NOT NULL")
    if col.default_value is not None and not col.auto_increment:
        parts.append(f"DEFAULT {render_default_literal(col, codec, dialect=dialect)}")
    if col.is_primary_key:
        parts.append("PRIMARY KEY")
    if col.auto_increment:
        parts.append(dialect.auto_increment())
    return " ".join(parts)


def build_create_table(
    schema: TableSchema,
    codec: ValueCodec | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> str:
    if not schema.columns:
        raise InvalidTableError(
            f"Table {schema.table_name} declares no columns"
        ).with_context(table=schema.table_name)
    definitions = ",\n".join(
        "    " + build_column_definition(c, codec, dialect=dialect) for c in schema.columns
    )
    return f"CREATE TABLE {_table(schema, dialect)} (\n{definitions}\n)"


def build_add_column(
    schema: TableSchema,
    col: ColumnDescriptor,
    codec: ValueCodec | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> str:
    return (
        f"ALTER TABLE {_table(schema, dialect)} "
        f"ADD COLUMN {build_column_definition(col, codec, dialect=dialect)}"
    )


__all__ = [
    "BuiltQuery",
    "build_select",
    "build_count_where",
    "build_aggregate_select",
    "build_insert",
    "build_update",
    "build_delete",
    "render_default_literal",
    "build_column_definition",
    "build_create_table",
    "build_add_column",
]
