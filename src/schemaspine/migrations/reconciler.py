"""Declared-vs-live schema reconciliation.

Keeps the physical table in step with the declared ``TableSchema`` without
ever destroying data:

- table missing            → one ``CREATE TABLE``
- declared column missing  → one ``ALTER TABLE ... ADD COLUMN`` each, in
                             declaration order
- live column undeclared   → left alone ("unmanaged"), logged
- type/nullability changed → logged as drift, never migrated

The pure half (:func:`diff_schema`, :func:`reconcile`) works on an
introspected column list. :class:`SchemaReconciler` adds the store: it
introspects, plans and applies the statements one by one, stopping at the
first failure.

Because planning always starts from a fresh introspection, running the
reconciler again after a partial or complete apply only emits what is still
missing.

Example::

    reconciler = SchemaReconciler(store, codec)
    plan = reconciler.sync(schema)
    print(plan.statements)

Tags:
    schema, migration, reconciliation, ddl, schemaspine
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from schemaspine.codec import ValueCodec
from schemaspine.core.dialect import DEFAULT_DIALECT, Dialect
from schemaspine.core.errors import QueryError, SchemaMigrationError
from schemaspine.core.logging import get_logger
from schemaspine.core.protocols import ColumnInfo, Store
from schemaspine.query.builder import build_add_column, build_create_table
from schemaspine.schema import ColumnDescriptor, TableSchema, render_column_type

logger = get_logger(__name__)


@dataclass(frozen=True)
class ColumnDrift:
    """A matched column whose live shape differs from its declaration."""

    column: str
    declared_type: str
    live_type: str
    declared_nullable: bool
    live_nullable: bool


@dataclass
class SchemaDiff:
    """Differences between a declared schema and a live table."""

    table_name: str
    table_exists: bool
    missing: list[ColumnDescriptor] = field(default_factory=list)
    unmanaged: list[str] = field(default_factory=list)
    drift: list[ColumnDrift] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return self.table_exists and not self.missing


@dataclass
class MigrationPlan:
    """Statements that close a :class:`SchemaDiff`, in execution order."""

    diff: SchemaDiff
    statements: list[str] = field(default_factory=list)
    applied: list[str] = field(default_factory=list)

    @property
    def creates_table(self) -> bool:
        return not self.diff.table_exists

    @property
    def added_columns(self) -> list[str]:
        return [c.name for c in self.diff.missing] if self.diff.table_exists else []


def build_live_schema(declared: TableSchema, introspected: Sequence[ColumnInfo]) -> TableSchema:
    """Intersect live columns with declared ones, matched on physical name.

    Types come from the declared side; the engine's type affinity cannot
    express this mapper's richer type set.
    """
    columns = []
    for info in introspected:
        decl = declared.by_physical_name(info.name)
        if decl is None:
            continue
        is_key = info.is_primary_key and decl.is_primary_key
        columns.append(
            ColumnDescriptor(
                name=decl.name,
                type=decl.type,
                nullable=not info.not_null,
                default_value=info.default_value,
                is_primary_key=is_key,
                auto_increment=decl.auto_increment and is_key,
                mapped_to=decl.mapped_to,
            )
        )
    return TableSchema(declared.table_name, columns)


def diff_schema(declared: TableSchema, introspected: Sequence[ColumnInfo]) -> SchemaDiff:
    if not introspected:
        return SchemaDiff(declared.table_name, table_exists=False, missing=list(declared.columns))

    live = build_live_schema(declared, introspected)
    diff = SchemaDiff(declared.table_name, table_exists=True)
    diff.missing = [c for c in declared.columns if live.by_physical_name(c.physical_name) is None]
    diff.unmanaged = [i.name for i in introspected if declared.by_physical_name(i.name) is None]

    for info in introspected:
        decl = declared.by_physical_name(info.name)
        if decl is None:
            continue
        declared_type = render_column_type(decl.type)
        live_type = info.type_name.upper()
        live_nullable = not info.not_null
        type_changed = bool(live_type) and live_type != declared_type
        if type_changed or live_nullable != decl.nullable:
            diff.drift.append(
                ColumnDrift(
                    column=decl.name,
                    declared_type=declared_type,
                    live_type=live_type,
                    declared_nullable=decl.nullable,
                    live_nullable=live_nullable,
                )
            )
    return diff


def plan_migration(
    declared: TableSchema,
    introspected: Sequence[ColumnInfo],
    codec: ValueCodec | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> MigrationPlan:
    """Diff and render the statements that close the gap.

    Raises:
        SchemaMigrationError: A missing column cannot be added to an existing
            table (a primary key, or NOT NULL without a default).
    """
    diff = diff_schema(declared, introspected)
    plan = MigrationPlan(diff)

    if not diff.table_exists:
        plan.statements.append(build_create_table(declared, codec, dialect=dialect))
        return plan

    for col in diff.missing:
        if col.is_primary_key:
            raise SchemaMigrationError(
                f"Cannot add primary key column {col.name} to existing table {declared.table_name}"
            ).with_context(table=declared.table_name, column=col.name)
        if not col.nullable and col.default_value is None:
            raise SchemaMigrationError(
                f"Cannot add NOT NULL column {col.name} without a default "
                f"to existing table {declared.table_name}"
            ).with_context(table=declared.table_name, column=col.name)
        plan.statements.append(build_add_column(declared, col, codec, dialect=dialect))
    return plan


def reconcile(
    declared: TableSchema,
    introspected: Sequence[ColumnInfo],
    codec: ValueCodec | None = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> list[str]:
    """Statements that bring the live table up to ``declared``."""
    return plan_migration(declared, introspected, codec, dialect=dialect).statements


class SchemaReconciler:
    """Introspects, plans and applies schema migrations against a store.

    Parameters
    ----------
    store
        The embedded store (introspection and statement execution).
    codec
        Renders ``json`` column defaults.
    """

    def __init__(
        self,
        store: Store,
        codec: ValueCodec | None = None,
        dialect: Dialect = DEFAULT_DIALECT,
    ) -> None:
        self._store = store
        self._codec = codec or ValueCodec()
        self._dialect = dialect

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(self, declared: TableSchema) -> MigrationPlan:
        """Introspect the live table and plan without executing anything."""
        introspected = self._store.table_info(declared.table_name)
        plan = plan_migration(declared, introspected, self._codec, dialect=self._dialect)
        self._report(plan)
        return plan

    def apply(self, plan: MigrationPlan) -> MigrationPlan:
        """Execute ``plan.statements`` in order.

        Columns that appeared since the plan was made are skipped. The first
        failing statement aborts the rest.

        Raises:
            SchemaMigrationError: A statement failed; ``plan.applied`` lists
                what ran before it.
        """
        table = plan.diff.table_name
        if plan.diff.table_exists:
            live = {i.name for i in self._store.table_info(table)}
            pending = [
                (col, sql)
                for col, sql in zip(plan.diff.missing, plan.statements, strict=True)
                if col.physical_name not in live
            ]
        else:
            pending = [(None, sql) for sql in plan.statements]

        for col, sql in pending:
            try:
                self._store.execute(sql)
            except QueryError as exc:
                logger.error("schema.migration_failed", table=table, statement=sql, error=str(exc))
                raise SchemaMigrationError(
                    f"Failed to migrate table {table}: {exc}",
                    statement=sql,
                    cause=exc,
                ).with_context(table=table) from exc
            plan.applied.append(sql)
            if col is None:
                logger.info("schema.table_created", table=table)
            else:
                logger.info("schema.column_added", table=table, column=col.physical_name)
        return plan

    def sync(self, declared: TableSchema) -> MigrationPlan:
        """Plan and apply in one step."""
        return self.apply(self.plan(declared))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _report(self, plan: MigrationPlan) -> None:
        table = plan.diff.table_name
        for drift in plan.diff.drift:
            logger.warning(
                "schema.column_drift",
                table=table,
                column=drift.column,
                declared_type=drift.declared_type,
                live_type=drift.live_type,
                declared_nullable=drift.declared_nullable,
                live_nullable=drift.live_nullable,
            )
        for name in plan.diff.unmanaged:
            logger.info("schema.column_unmanaged", table=table, column=name)


__all__ = [
    "ColumnDrift",
    "SchemaDiff",
    "MigrationPlan",
    "build_live_schema",
    "diff_schema",
    "plan_migration",
    "reconcile",
    "SchemaReconciler",
]
