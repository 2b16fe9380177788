"""Tests for declared-vs-live schema reconciliation."""

from __future__ import annotations

import pytest

from schemaspine.adapters.sqlite import SQLiteStore
from schemaspine.core.errors import SchemaMigrationError
from schemaspine.core.protocols import ColumnInfo
from schemaspine.migrations.reconciler import (
    MigrationPlan,
    SchemaDiff,
    SchemaReconciler,
    build_live_schema,
    diff_schema,
    plan_migration,
    reconcile,
)
from schemaspine.schema import ColumnDescriptor, ColumnType, TableSchema


def _schema(*extra: ColumnDescriptor) -> TableSchema:
    return TableSchema(
        "notes",
        [
            ColumnDescriptor(
                "id", ColumnType.INTEGER, default_value=-1, is_primary_key=True, auto_increment=True
            ),
            ColumnDescriptor("title", ColumnType.STRING, default_value="", mapped_to="name"),
            *extra,
        ],
    )


def _info(name: str, type_name: str = "TEXT", *, not_null: bool = True, pk: bool = False) -> ColumnInfo:
    return ColumnInfo(
        name=name, not_null=not_null, default_value=None, is_primary_key=pk, type_name=type_name
    )


LIVE = [_info("id", "INTEGER", pk=True), _info("name")]


# =========================================================================
# Pure diffing
# =========================================================================


class TestDiff:
    def test_missing_table(self):
        diff = diff_schema(_schema(), [])
        assert diff.table_exists is False
        assert [c.name for c in diff.missing] == ["id", "title"]
        assert diff.in_sync is False

    def test_in_sync(self):
        diff = diff_schema(_schema(), LIVE)
        assert diff.table_exists is True
        assert diff.missing == []
        assert diff.in_sync is True

    def test_matches_on_physical_name(self):
        diff = diff_schema(_schema(), [_info("id", "INTEGER", pk=True), _info("title")])
        assert [c.name for c in diff.missing] == ["title"]
        assert diff.unmanaged == ["title"]

    def test_unmanaged_columns(self):
        diff = diff_schema(_schema(), LIVE + [_info("legacy")])
        assert diff.unmanaged == ["legacy"]
        assert diff.missing == []

    def test_type_drift(self):
        score = ColumnDescriptor("score", ColumnType.NUMBER, default_value=0.0)
        diff = diff_schema(_schema(score), LIVE + [_info("score", "TEXT")])
        assert len(diff.drift) == 1
        drift = diff.drift[0]
        assert (drift.column, drift.declared_type, drift.live_type) == ("score", "NUMERIC", "TEXT")

    def test_nullability_drift(self):
        diff = diff_schema(_schema(), [_info("id", "INTEGER", pk=True), _info("name", not_null=False)])
        assert diff.drift[0].live_nullable is True
        assert diff.drift[0].declared_nullable is False

    def test_live_schema_intersection(self):
        live = build_live_schema(_schema(), LIVE + [_info("legacy")])
        assert [c.name for c in live.columns] == ["id", "title"]
        assert live.primary_key.auto_increment is True


class TestPlan:
    def test_create_when_missing(self):
        statements = reconcile(_schema(), [])
        assert len(statements) == 1
        assert statements[0].startswith('CREATE TABLE "notes" (')

    def test_add_missing_columns_in_declaration_order(self):
        schema = _schema(
            ColumnDescriptor("score", ColumnType.NUMBER, default_value=0.0),
            ColumnDescriptor("summary", ColumnType.STRING, nullable=True),
        )
        assert reconcile(schema, LIVE) == [
            'ALTER TABLE "notes" ADD COLUMN "score" NUMERIC NOT NULL DEFAULT 0.0',
            'ALTER TABLE "notes" ADD COLUMN "summary" TEXT',
        ]

    def test_nothing_to_do(self):
        plan = plan_migration(_schema(), LIVE)
        assert plan.statements == []
        assert plan.creates_table is False
        assert plan.added_columns == []

    def test_never_drops(self):
        assert reconcile(_schema(), LIVE + [_info("legacy")]) == []

    def test_not_null_without_default(self):
        schema = _schema(ColumnDescriptor("required", ColumnType.STRING))
        with pytest.raises(SchemaMigrationError, match="without a default"):
            plan_migration(schema, LIVE)

    def test_cannot_add_primary_key(self):
        with pytest.raises(SchemaMigrationError, match="primary key"):
            plan_migration(_schema(), [_info("name")])


# =========================================================================
# Against a live store
# =========================================================================


class TestSchemaReconciler:
    def test_sync_creates_table(self, store: SQLiteStore):
        plan = SchemaReconciler(store).sync(_schema())
        assert plan.creates_table is True
        assert len(plan.applied) == 1
        assert [c.name for c in store.table_info("notes")] == ["id", "name"]

    def test_sync_is_idempotent(self, store: SQLiteStore):
        reconciler = SchemaReconciler(store)
        reconciler.sync(_schema())
        plan = reconciler.sync(_schema())
        assert plan.statements == []
        assert plan.applied == []

    def test_sync_adds_column(self, store: SQLiteStore):
        reconciler = SchemaReconciler(store)
        reconciler.sync(_schema())
        store.execute('INSERT INTO "notes" ("name") VALUES (?)', "first")

        plan = reconciler.sync(_schema(ColumnDescriptor("pinned", ColumnType.BOOLEAN, default_value=False)))
        assert plan.added_columns == ["pinned"]
        assert store.prepare('SELECT "pinned" FROM "notes"').values() == [(0,)]

    def test_apply_skips_columns_added_since_planning(self, store: SQLiteStore):
        reconciler = SchemaReconciler(store)
        reconciler.sync(_schema())
        extended = _schema(ColumnDescriptor("extra", ColumnType.STRING, nullable=True))
        plan = reconciler.plan(extended)
        store.execute('ALTER TABLE "notes" ADD COLUMN "extra" TEXT')
        assert reconciler.apply(plan).applied == []

    def test_apply_failure(self, store: SQLiteStore):
        plan = MigrationPlan(
            SchemaDiff("broken", table_exists=False), statements=["CREATE TABLE broken ("]
        )
        with pytest.raises(SchemaMigrationError) as exc_info:
            SchemaReconciler(store).apply(plan)
        assert exc_info.value.statement == "CREATE TABLE broken ("
        assert exc_info.value.context.table == "broken"
        assert plan.applied == []
