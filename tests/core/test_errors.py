"""Tests for schemaspine.core.errors module."""

from __future__ import annotations

import sqlite3

import pytest

from schemaspine.core.errors import (
    ErrorCategory,
    ErrorContext,
    InvalidDataError,
    InvalidTableError,
    ModelNotRegisteredError,
    NotFoundError,
    QueryError,
    SchemaMigrationError,
    SnapshotError,
    StoreError,
    UnknownCustomTypeError,
    UnknownTaggedTypeError,
)


class TestErrorContext:
    def test_empty_context(self):
        ctx = ErrorContext()
        assert ctx.table is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_skips_unset_fields(self):
        ctx = ErrorContext(table="notes", operation="save", metadata={"attempt": 1})
        assert ctx.to_dict() == {"table": "notes", "operation": "save", "attempt": 1}


class TestStoreError:
    def test_defaults(self):
        err = StoreError("boom")
        assert err.message == "boom"
        assert str(err) == "boom"
        assert err.category == ErrorCategory.INTERNAL
        assert err.cause is None

    def test_cause_is_chained(self):
        cause = ValueError("bad")
        err = StoreError("wrapped", cause=cause)
        assert err.cause is cause
        assert err.__cause__ is cause

    def test_with_context_sets_fields_and_metadata(self):
        err = StoreError("x").with_context(table="notes", column="body", sql="SELECT 1")
        assert err.context.table == "notes"
        assert err.context.column == "body"
        assert err.context.metadata == {"sql": "SELECT 1"}

    def test_with_context_returns_self(self):
        err = NotFoundError("missing")
        assert err.with_context(table="t") is err

    def test_to_dict(self):
        err = StoreError("x", cause=RuntimeError("inner")).with_context(table="t")
        d = err.to_dict()
        assert d["error_type"] == "StoreError"
        assert d["category"] == "INTERNAL"
        assert d["context"] == {"table": "t"}
        assert d["cause"] == "inner"

    def test_category_override(self):
        err = StoreError("x", category=ErrorCategory.STORAGE)
        assert err.category == ErrorCategory.STORAGE

    def test_repr(self):
        assert repr(NotFoundError("gone")) == "NotFoundError('gone', category=DATABASE)"


class TestSubclasses:
    @pytest.mark.parametrize(
        "error_cls,category",
        [
            (NotFoundError, ErrorCategory.DATABASE),
            (InvalidTableError, ErrorCategory.CONFIG),
            (InvalidDataError, ErrorCategory.VALIDATION),
            (SchemaMigrationError, ErrorCategory.DATABASE),
            (SnapshotError, ErrorCategory.STORAGE),
            (QueryError, ErrorCategory.DATABASE),
        ],
    )
    def test_default_categories(self, error_cls, category):
        err = error_cls("x")
        assert err.category == category
        assert isinstance(err, StoreError)

    def test_model_not_registered(self):
        class Ghost:
            pass

        err = ModelNotRegisteredError(Ghost)
        assert isinstance(err, InvalidTableError)
        assert err.row_type is Ghost
        assert "Ghost" in err.message

    def test_invalid_data_carries_column_and_value(self):
        err = InvalidDataError("expected int", column="age", value="ten")
        assert err.column == "age"
        assert err.context.column == "age"
        d = err.to_dict()
        assert d["column"] == "age"
        assert d["value"] == "'ten'"

    def test_unknown_custom_type(self):
        err = UnknownCustomTypeError("Point")
        assert isinstance(err, InvalidDataError)
        assert err.type_name == "Point"
        assert "Point" in err.message

    def test_unknown_tagged_type(self):
        err = UnknownTaggedTypeError("Weird")
        assert isinstance(err, InvalidDataError)
        assert err.tag == "Weird"

    def test_schema_migration_statement(self):
        err = SchemaMigrationError("failed", statement="ALTER TABLE x")
        assert err.statement == "ALTER TABLE x"
        assert err.context.metadata["statement"] == "ALTER TABLE x"

    def test_query_error_sql(self):
        cause = sqlite3.OperationalError("syntax error")
        err = QueryError("rejected", sql="SELEC 1", cause=cause)
        assert err.sql == "SELEC 1"
        assert err.context.metadata["sql"] == "SELEC 1"
        assert err.__cause__ is cause
