"""
RowMapper: schema-driven persistence of plain Python objects in SQLite.

Registering a row type derives its table schema, brings the live table up to
date (create the table, add missing columns, never drop anything), and
records the declaration in the schema snapshot. After that, rows are loaded,
queried, saved and deleted by type.

Architecture:
    ::

        register_model(Article)
               │
               ▼
        build_table_schema ──► SchemaReconciler ──► store (CREATE / ALTER)
               │                                     ▲
               ▼                                     │
        SchemaSnapshot.record ──► SnapshotStore      │
                                                     │
        find_one / find_many / save / delete ────────┘
            (query builder + column serializers)

Example:
    >>> mapper = RowMapper(SQLiteStore(":memory:"))
    >>> mapper.register_model(Article)          # doctest: +SKIP
    >>> article = Article(); article.title = "hello"
    >>> mapper.save(article).id                 # doctest: +SKIP
    1

A mapper instance is for one logical caller at a time; it does no locking.

Tags:
    orm, mapper, crud, registration, schemaspine
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from schemaspine.adapters.sqlite import SQLiteStore
from schemaspine.codec import ValueCodec, ValueKind
from schemaspine.core.dialect import DEFAULT_DIALECT, Dialect
from schemaspine.core.errors import (
    InvalidDataError,
    InvalidTableError,
    ModelNotRegisteredError,
    NotFoundError,
)
from schemaspine.core.logging import LogContext, get_logger
from schemaspine.core.protocols import KeyValueStorage, Store
from schemaspine.core.settings import MapperSettings
from schemaspine.migrations.reconciler import ColumnDrift, SchemaReconciler
from schemaspine.migrations.snapshot import SchemaSnapshot, SnapshotStore
from schemaspine.orm.builder import ColumnOverride, ModelBuilder, build_table_schema
from schemaspine.orm.row import is_unset_key, row_state
from schemaspine.orm.serializers import deserialize_value, serialize_value
from schemaspine.query.builder import (
    build_aggregate_select,
    build_count_where,
    build_delete,
    build_insert,
    build_select,
    build_update,
)
from schemaspine.query.clauses import AggregateQuery, SelectQuery, WhereClause
from schemaspine.schema import TableSchema
from schemaspine.storage import FileStorage, MemoryStorage

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RegistrationReport:
    """What registering one row type did.

    Attributes:
        table_name: Physical table
        created: The table did not exist and was created
        statements: DDL statements executed, in order
        added_columns: Fields new since the previous snapshot
        removed_columns: Fields in the previous snapshot that are no longer
            declared (their table columns are kept)
        drift: Columns whose live type or nullability differs from the
            declaration
        unmanaged: Live columns with no declared field
    """

    table_name: str
    created: bool = False
    statements: list[str] = field(default_factory=list)
    added_columns: list[str] = field(default_factory=list)
    removed_columns: list[str] = field(default_factory=list)
    drift: list[ColumnDrift] = field(default_factory=list)
    unmanaged: list[str] = field(default_factory=list)


class RowMapper:
    """
    Maps registered row types onto SQLite tables.

    Parameters
    ----------
    store
        Embedded SQL store (statement execution and introspection).
    storage
        Persistence for the schema snapshot. Defaults to in-memory storage.
    snapshot_key
        Storage key of the snapshot; ``<db_path>.model.json`` by default.
    codec
        Tagged JSON codec for ``json`` columns. Its type registry is shared
        by every registered row type.
    """

    def __init__(
        self,
        store: Store,
        storage: KeyValueStorage | None = None,
        *,
        snapshot_key: str | None = None,
        codec: ValueCodec | None = None,
        dialect: Dialect = DEFAULT_DIALECT,
    ) -> None:
        self.store = store
        self.codec = codec or ValueCodec()
        self.dialect = dialect
        key = snapshot_key or f"{getattr(store, 'path', ':memory:')}.model.json"
        self._snapshots = SnapshotStore(storage if storage is not None else MemoryStorage(), key)
        self._snapshot: SchemaSnapshot | None = None
        self._reconciler = SchemaReconciler(store, self.codec, dialect)
        self._schemas: dict[type, TableSchema] = {}

    @classmethod
    def open(cls, settings: MapperSettings | None = None, *, codec: ValueCodec | None = None) -> RowMapper:
        """Build a mapper from settings: a SQLite store plus a snapshot file
        beside the database (kept in memory for ``:memory:`` databases)."""
        settings = settings or MapperSettings()
        store = SQLiteStore(settings.db_path, timeout=settings.timeout)
        storage = MemoryStorage() if settings.in_memory else FileStorage()
        return cls(store, storage, snapshot_key=settings.snapshot_key, codec=codec)

    def close(self) -> None:
        close = getattr(self.store, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> RowMapper:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Registration
    # =========================================================================

    @property
    def snapshot(self) -> SchemaSnapshot:
        """The schema snapshot, loaded on first use."""
        if self._snapshot is None:
            self._snapshot = self._snapshots.load()
        return self._snapshot

    @property
    def snapshot_key(self) -> str:
        return self._snapshots.key

    @property
    def schemas(self) -> dict[type, TableSchema]:
        return dict(self._schemas)

    def model(self, row_type: type, table_name: str | None = None) -> ModelBuilder:
        """Start a fluent declaration for ``row_type``."""
        return ModelBuilder(self, row_type, table_name)

    def register_model(
        self,
        row_type: type,
        columns: Iterable[ColumnOverride] = (),
        *,
        table_name: str | None = None,
        ignored: Iterable[str] = (),
    ) -> RegistrationReport:
        """Derive, reconcile and record the schema of ``row_type``.

        Raises:
            InvalidTableError: Bad declaration, or the type or table is
                already registered.
            SchemaMigrationError: A reconciliation statement failed.
            SnapshotError: The snapshot cannot be read or written.
        """
        if row_type in self._schemas:
            raise InvalidTableError(
                f"Row type {row_type.__name__} is already registered"
            ).with_context(table=self._schemas[row_type].table_name)

        schema = build_table_schema(
            row_type, columns, table_name=table_name, ignored=ignored, codec=self.codec
        )
        owner = next((t for t, s in self._schemas.items() if s.table_name == schema.table_name), None)
        if owner is not None:
            raise InvalidTableError(
                f"Table {schema.table_name} is already mapped to {owner.__name__}"
            ).with_context(table=schema.table_name)

        with LogContext(table=schema.table_name, operation="register_model"):
            snapshot = self.snapshot
            plan = self._reconciler.sync(schema)

            change = snapshot.record(schema, self.codec)
            if change.changed:
                self._snapshots.save(snapshot)
            if change.removed:
                logger.warning("snapshot.columns_removed", columns=change.removed)

        self._schemas[row_type] = schema
        logger.info(
            "model.registered",
            row_type=row_type.__name__,
            table=schema.table_name,
            columns=len(schema.columns),
            statements=len(plan.applied),
        )
        return RegistrationReport(
            table_name=schema.table_name,
            created=plan.creates_table,
            statements=list(plan.applied),
            added_columns=change.added,
            removed_columns=change.removed,
            drift=list(plan.diff.drift),
            unmanaged=list(plan.diff.unmanaged),
        )

    def schema_for(self, row_type: type) -> TableSchema:
        """
        Raises:
            ModelNotRegisteredError: ``row_type`` was never registered.
        """
        schema = self._schemas.get(row_type)
        if schema is None:
            raise ModelNotRegisteredError(row_type)
        return schema

    # =========================================================================
    # Reads
    # =========================================================================

    def find_one(self, row_type: type[T], key_or_query: Any) -> T:
        """Load one row by primary-key value or by :class:`SelectQuery`.

        A query's limit is forced to 1; with several matches, which one is
        returned depends on its ordering.

        Raises:
            NotFoundError: Nothing matched.
            InvalidDataError: The key's type does not fit the key column.
            InvalidTableError: Lookup by key on a table without a primary key.
        """
        schema = self.schema_for(row_type)
        if isinstance(key_or_query, SelectQuery):
            query = replace(key_or_query, limit=1)
        else:
            query = SelectQuery(where=self._key_clause(schema, key_or_query), limit=1)

        built = build_select(schema, query, dialect=self.dialect)
        data = self.store.prepare(built.sql).get(*built.params)
        if data is None:
            raise NotFoundError(
                f"No row in {schema.table_name} matches {key_or_query!r}"
            ).with_context(table=schema.table_name, operation="find_one")
        return self._hydrate(row_type, schema, data)

    def find_one_optional(self, row_type: type[T], key_or_query: Any) -> T:
        """Like :meth:`find_one`, but a miss returns a fresh unsaved instance."""
        try:
            return self.find_one(row_type, key_or_query)
        except NotFoundError:
            return row_type()

    def find_many(self, row_type: type[T], query: SelectQuery | None = None) -> list[T]:
        schema = self.schema_for(row_type)
        built = build_select(schema, query, dialect=self.dialect)
        return [
            self._hydrate(row_type, schema, data)
            for data in self.store.prepare(built.sql).all(*built.params)
        ]

    def count_where(self, row_type: type, where: WhereClause | None = None) -> int:
        schema = self.schema_for(row_type)
        built = build_count_where(schema, where, dialect=self.dialect)
        rows = self.store.prepare(built.sql).values(*built.params)
        return int(rows[0][0]) if rows else 0

    def aggregate_select(self, row_type: type, query: AggregateQuery) -> list[tuple]:
        """Raw value tuples of ``query.select`` per result row."""
        schema = self.schema_for(row_type)
        built = build_aggregate_select(schema, query, dialect=self.dialect)
        return self.store.prepare(built.sql).values(*built.params)

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, row: T) -> T:
        """Insert a new row or update a persisted one.

        A new row with an unset auto-increment key (``-1`` or ``None``) gets
        the engine-assigned key written back onto it.

        Raises:
            InvalidDataError: A field value does not fit its column.
            QueryError: The engine rejected the statement (e.g. a duplicate key).
        """
        schema = self.schema_for(type(row))
        state = row_state(row)
        pk = schema.primary_key

        values = {}
        for col in schema.columns:
            value = getattr(row, col.name, None)
            if state.is_new and col.auto_increment and is_unset_key(value):
                continue
            values[col.physical_name] = serialize_value(col, value, self.codec)

        if state.is_new:
            built = build_insert(schema, values, dialect=self.dialect)
            self.store.execute(built.sql, *built.params)
            if pk is not None and pk.physical_name not in values:
                setattr(row, pk.name, self.store.last_inserted_id)
            state.is_new = False
            logger.debug("row.inserted", table=schema.table_name, key=_key_of(row, schema))
        else:
            built = build_update(schema, values, dialect=self.dialect)
            updated = self.store.execute(built.sql, *built.params)
            logger.debug(
                "row.updated", table=schema.table_name, key=_key_of(row, schema), rows=updated
            )

        return row

    def delete(self, row_type: type, query: SelectQuery | None = None) -> int:
        """Delete matching rows and return how many went. No query deletes all."""
        schema = self.schema_for(row_type)
        built = build_delete(schema, query, dialect=self.dialect)
        deleted = self.store.execute(built.sql, *built.params)
        logger.debug("rows.deleted", table=schema.table_name, rows=deleted)
        return deleted

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _key_clause(self, schema: TableSchema, key: Any) -> WhereClause:
        pk = schema.primary_key
        if pk is None:
            raise InvalidTableError(
                f"Table {schema.table_name} has no primary key to look up by"
            ).with_context(table=schema.table_name, operation="find_one")
        if key is None or self.codec.classify(key) is not ValueKind.SCALAR:
            raise InvalidDataError(
                f"Key for {schema.table_name} must be a scalar value, got {type(key).__name__}",
                column=pk.name,
                value=key,
            )
        return WhereClause(
            f"{self.dialect.quote_identifier(pk.physical_name)} = {self.dialect.placeholder(0)}",
            (serialize_value(pk, key, self.codec),),
        )

    def _hydrate(self, row_type: type[T], schema: TableSchema, data: dict[str, Any]) -> T:
        row = row_type()
        for col in schema.columns:
            if col.physical_name in data:
                setattr(row, col.name, deserialize_value(col, data[col.physical_name], self.codec))
        row_state(row).is_new = False
        return row


def _key_of(row: Any, schema: TableSchema) -> Any:
    pk = schema.primary_key
    return getattr(row, pk.name, None) if pk is not None else None


__all__ = [
    "RegistrationReport",
    "RowMapper",
]
