"""Tests for column descriptors and table schemas."""

from __future__ import annotations

import pytest

from schemaspine.core.errors import InvalidTableError
from schemaspine.schema import (
    ColumnDescriptor,
    ColumnType,
    TableSchema,
    render_column_type,
    resolve_column_name,
)


def _id() -> ColumnDescriptor:
    return ColumnDescriptor("id", ColumnType.INTEGER, is_primary_key=True, auto_increment=True)


class TestColumnDescriptor:
    def test_type_coerced_from_string(self):
        assert ColumnDescriptor("a", "string").type is ColumnType.STRING

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            ColumnDescriptor("a", "decimal")

    def test_physical_name(self):
        assert ColumnDescriptor("title", ColumnType.STRING).physical_name == "title"
        renamed = ColumnDescriptor("title", ColumnType.STRING, mapped_to="name")
        assert renamed.physical_name == "name"
        assert resolve_column_name(renamed) == "name"


class TestRenderColumnType:
    @pytest.mark.parametrize(
        "column_type,sql",
        [
            (ColumnType.BOOLEAN, "INTEGER"),
            (ColumnType.INTEGER, "INTEGER"),
            (ColumnType.NUMBER, "NUMERIC"),
            (ColumnType.STRING, "TEXT"),
            (ColumnType.JSON, "TEXT"),
            (ColumnType.BLOB, "BLOB"),
        ],
    )
    def test_mapping(self, column_type, sql):
        assert render_column_type(column_type) == sql

    def test_invalid(self):
        with pytest.raises(InvalidTableError):
            render_column_type("decimal")


class TestTableSchema:
    def test_primary_key(self):
        schema = TableSchema("notes", [_id(), ColumnDescriptor("body", ColumnType.STRING)])
        assert schema.primary_key.name == "id"
        assert schema.physical_names == ["id", "body"]

    def test_no_primary_key(self):
        assert TableSchema("log", [ColumnDescriptor("line", ColumnType.STRING)]).primary_key is None

    def test_two_primary_keys(self):
        with pytest.raises(InvalidTableError, match="more than one primary key"):
            TableSchema(
                "notes",
                [_id(), ColumnDescriptor("code", ColumnType.STRING, is_primary_key=True)],
            )

    def test_auto_increment_must_be_key(self):
        with pytest.raises(InvalidTableError, match="must be the primary key"):
            TableSchema("notes", [ColumnDescriptor("seq", ColumnType.INTEGER, auto_increment=True)])

    def test_duplicate_physical_names(self):
        with pytest.raises(InvalidTableError, match="duplicate column names"):
            TableSchema(
                "notes",
                [
                    ColumnDescriptor("title", ColumnType.STRING, mapped_to="name"),
                    ColumnDescriptor("name", ColumnType.STRING),
                ],
            )

    def test_lookups(self):
        schema = TableSchema(
            "notes", [_id(), ColumnDescriptor("title", ColumnType.STRING, mapped_to="name")]
        )
        assert schema.column("title").mapped_to == "name"
        assert schema.column("name") is None
        assert schema.by_physical_name("name").name == "title"
        assert schema.resolve("title") is schema.resolve("name")
        assert schema.resolve("missing") is None
