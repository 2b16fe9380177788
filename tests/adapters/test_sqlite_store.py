"""Tests for ``schemaspine.adapters.sqlite``: the SQLite store."""

from __future__ import annotations

import sqlite3
from unittest.mock import patch

import pytest

from schemaspine.adapters.sqlite import SQLiteStore
from schemaspine.core.errors import QueryError, StoreError
from schemaspine.core.protocols import ColumnInfo, PreparedStatement, Store

DDL = (
    'CREATE TABLE "notes" ('
    '"id" INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, '
    "\"body\" TEXT NOT NULL DEFAULT 'x', "
    '"score" REAL)'
)


@pytest.fixture
def notes(store: SQLiteStore) -> SQLiteStore:
    store.execute(DDL)
    return store


class TestLifecycle:
    def test_lazy_connect(self):
        store = SQLiteStore()
        assert store.is_connected is False
        assert store.connection.row_factory is sqlite3.Row
        assert store.is_connected is True
        store.close()
        assert store.is_connected is False

    def test_close_when_not_connected(self):
        SQLiteStore().close()

    def test_context_manager(self):
        with SQLiteStore() as store:
            assert store.is_connected is True
        assert store.is_connected is False

    @patch("sqlite3.connect", side_effect=sqlite3.OperationalError("unable to open database"))
    def test_connect_failure(self, mock_connect):
        with pytest.raises(StoreError, match="Failed to connect"):
            SQLiteStore("/nonexistent/path.db").connect()

    def test_file_database(self, tmp_path):
        path = str(tmp_path / "app.db")
        with SQLiteStore(path) as store:
            store.execute(DDL)
        with SQLiteStore(path) as store:
            assert store.table_names() == ["notes"]

    def test_protocol(self, store: SQLiteStore):
        assert isinstance(store, Store)
        assert isinstance(store.prepare("SELECT 1"), PreparedStatement)


class TestExecute:
    def test_insert_returns_rowcount_and_id(self, notes: SQLiteStore):
        assert notes.execute('INSERT INTO "notes" ("body") VALUES (?)', "a") == 1
        assert notes.last_inserted_id == 1
        notes.execute('INSERT INTO "notes" ("body") VALUES (?)', "b")
        assert notes.last_inserted_id == 2

    def test_update_rowcount(self, notes: SQLiteStore):
        notes.execute('INSERT INTO "notes" ("body") VALUES (?)', "a")
        notes.execute('INSERT INTO "notes" ("body") VALUES (?)', "b")
        assert notes.execute('UPDATE "notes" SET "score" = ?', 1.5) == 2

    def test_autocommit(self, tmp_path):
        path = str(tmp_path / "app.db")
        writer = SQLiteStore(path)
        writer.execute(DDL)
        writer.execute('INSERT INTO "notes" ("body") VALUES (?)', "a")
        with SQLiteStore(path) as reader:
            assert reader.prepare('SELECT COUNT(*) FROM "notes"').values() == [(1,)]
        writer.close()

    def test_error_is_wrapped(self, store: SQLiteStore):
        with pytest.raises(QueryError) as exc_info:
            store.execute("SELEC nonsense")
        assert exc_info.value.sql == "SELEC nonsense"
        assert isinstance(exc_info.value.cause, sqlite3.Error)

    def test_integer_overflow_is_wrapped(self, store: SQLiteStore):
        with pytest.raises(QueryError) as exc_info:
            store.execute("SELECT ?", 2**70)
        assert isinstance(exc_info.value.cause, OverflowError)

    def test_constraint_violation(self, notes: SQLiteStore):
        notes.execute('INSERT INTO "notes" ("id", "body") VALUES (?, ?)', 1, "a")
        with pytest.raises(QueryError, match="UNIQUE"):
            notes.execute('INSERT INTO "notes" ("id", "body") VALUES (?, ?)', 1, "b")

    def test_readonly(self):
        with SQLiteStore(readonly=True) as store:
            with pytest.raises(QueryError):
                store.execute(DDL)


class TestPreparedStatement:
    def test_get_all_values(self, notes: SQLiteStore):
        notes.execute('INSERT INTO "notes" ("body", "score") VALUES (?, ?)', "a", 1.0)
        notes.execute('INSERT INTO "notes" ("body", "score") VALUES (?, ?)', "b", 2.0)
        stmt = notes.prepare('SELECT * FROM "notes" WHERE "score" > ? ORDER BY "id"')

        assert stmt.get(0) == {"id": 1, "body": "a", "score": 1.0}
        assert stmt.all(1.5) == [{"id": 2, "body": "b", "score": 2.0}]
        assert stmt.values(0) == [(1, "a", 1.0), (2, "b", 2.0)]

    def test_get_no_row(self, notes: SQLiteStore):
        assert notes.prepare('SELECT * FROM "notes"').get() is None

    def test_error_on_run(self, notes: SQLiteStore):
        with pytest.raises(QueryError):
            notes.prepare('SELECT * FROM "absent"').all()


class TestIntrospection:
    def test_table_info(self, notes: SQLiteStore):
        info = notes.table_info("notes")
        assert info == [
            ColumnInfo("id", not_null=True, default_value=None, is_primary_key=True, type_name="INTEGER"),
            ColumnInfo("body", not_null=True, default_value="'x'", is_primary_key=False, type_name="TEXT"),
            ColumnInfo("score", not_null=False, default_value=None, is_primary_key=False, type_name="REAL"),
        ]

    def test_table_info_missing_table(self, store: SQLiteStore):
        assert store.table_info("absent") == []

    def test_table_names(self, notes: SQLiteStore):
        assert notes.table_names() == ["notes"]
