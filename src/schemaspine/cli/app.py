"""
Root Typer application for the schemaspine CLI.

Every command resolves the database through ``MapperSettings`` (so the
``SCHEMASPINE_DB_PATH`` environment variable works) unless ``--database``
is given.
"""

from __future__ import annotations

import typer
from typer import Typer

from schemaspine.adapters.sqlite import SQLiteStore
from schemaspine.cli.utils import console, fail, load_settings, output_json, print_table
from schemaspine.codec import ValueCodec
from schemaspine.core.errors import StoreError
from schemaspine.core.settings import MapperSettings
from schemaspine.migrations.reconciler import SchemaReconciler
from schemaspine.migrations.snapshot import SchemaSnapshot, SnapshotStore, decode_defaults
from schemaspine.storage import FileStorage, MemoryStorage

app = Typer(
    name="schemaspine",
    help="schemaspine: inspect schema snapshots and reconcile SQLite tables.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from schemaspine import __version__

        try:
            v = pkg_version("schemaspine")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"schemaspine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """schemaspine CLI: snapshots, live columns and migration plans."""


# ── Helpers ──────────────────────────────────────────────────────────────


def _load_snapshot(settings: MapperSettings) -> SchemaSnapshot:
    storage = MemoryStorage() if settings.in_memory else FileStorage()
    return SnapshotStore(storage, settings.snapshot_key).load()


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def show(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Print the schema snapshot recorded beside the database."""
    settings = load_settings(database)
    try:
        snapshot = _load_snapshot(settings)
    except StoreError as e:
        fail(e)

    if json_out:
        output_json(snapshot.to_document().model_dump(mode="json", by_alias=True))
        return
    if not snapshot.models:
        console.print(f"[dim]No snapshot at {settings.snapshot_key}.[/dim]")
        return
    for key, record in snapshot.models.items():
        print_table(
            [
                {
                    "name": c.name,
                    "column": c.mapped_to or c.name,
                    "type": c.type.value,
                    "nullable": c.nullable,
                    "default": c.default_value,
                    "pk": c.is_primary_key,
                    "auto": c.auto_increment,
                }
                for c in record.columns
            ],
            title=key,
        )


@app.command()
def columns(
    table: str = typer.Argument(..., help="Table name"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Print the live columns of TABLE as the engine reports them."""
    settings = load_settings(database)
    with SQLiteStore(settings.db_path, timeout=settings.timeout, readonly=True) as store:
        try:
            info = store.table_info(table)
        except StoreError as e:
            fail(e)

    if not info:
        console.print(f"[yellow]Table {table} does not exist.[/yellow]")
        raise typer.Exit(code=1)

    rows = [
        {
            "name": i.name,
            "type": i.type_name,
            "not_null": i.not_null,
            "default": i.default_value,
            "pk": i.is_primary_key,
        }
        for i in info
    ]
    if json_out:
        output_json(rows)
    else:
        print_table(rows, title=table)


@app.command()
def plan(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path"),
    apply: bool = typer.Option(False, "--apply", help="Execute the planned statements"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Reconcile every snapshot model against the live database."""
    settings = load_settings(database)
    codec = ValueCodec()
    rows = []
    with SQLiteStore(settings.db_path, timeout=settings.timeout) as store:
        reconciler = SchemaReconciler(store, codec)
        try:
            schemas = decode_defaults(_load_snapshot(settings), codec)
            for key, schema in schemas.items():
                migration = reconciler.plan(schema)
                if apply:
                    statements, status = reconciler.apply(migration).applied, "applied"
                else:
                    statements, status = migration.statements, "pending"
                rows.extend({"table": key, "statement": sql, "status": status} for sql in statements)
        except StoreError as e:
            fail(e)

    if json_out:
        output_json(rows)
    elif not rows:
        console.print("[green]All tables match the snapshot.[/green]")
    else:
        print_table(rows, title="Migration plan")
