"""Schema reconciliation and snapshot persistence."""

from schemaspine.migrations.reconciler import (
    ColumnDrift,
    MigrationPlan,
    SchemaDiff,
    SchemaReconciler,
    build_live_schema,
    diff_schema,
    plan_migration,
    reconcile,
)
from schemaspine.migrations.snapshot import (
    SNAPSHOT_VERSION,
    SchemaSnapshot,
    SnapshotChange,
    SnapshotStore,
)

__all__ = [
    "ColumnDrift",
    "MigrationPlan",
    "SchemaDiff",
    "SchemaReconciler",
    "build_live_schema",
    "diff_schema",
    "plan_migration",
    "reconcile",
    "SNAPSHOT_VERSION",
    "SchemaSnapshot",
    "SnapshotChange",
    "SnapshotStore",
]
