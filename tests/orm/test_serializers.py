"""Tests for column value serialization."""

from __future__ import annotations

import json

import pytest

from schemaspine.codec import ValueCodec
from schemaspine.core.errors import InvalidDataError, UnknownCustomTypeError
from schemaspine.orm.serializers import deserialize_value, serialize_value
from schemaspine.schema import ColumnDescriptor, ColumnType


def col(type_: ColumnType, *, nullable: bool = False) -> ColumnDescriptor:
    return ColumnDescriptor("field", type_, nullable=nullable)


class TestSerialize:
    @pytest.mark.parametrize(
        "type_,value,stored",
        [
            (ColumnType.BOOLEAN, True, 1),
            (ColumnType.BOOLEAN, False, 0),
            (ColumnType.INTEGER, 42, 42),
            (ColumnType.INTEGER, 3.0, 3),
            (ColumnType.NUMBER, 2.5, 2.5),
            (ColumnType.NUMBER, 7, 7),
            (ColumnType.STRING, "text", "text"),
            (ColumnType.BLOB, bytearray(b"\x01"), b"\x01"),
        ],
    )
    def test_accepted(self, codec: ValueCodec, type_, value, stored):
        assert serialize_value(col(type_), value, codec) == stored

    @pytest.mark.parametrize(
        "type_,value",
        [
            (ColumnType.BOOLEAN, 1),
            (ColumnType.INTEGER, True),
            (ColumnType.INTEGER, 3.5),
            (ColumnType.INTEGER, "3"),
            (ColumnType.NUMBER, False),
            (ColumnType.NUMBER, "2.5"),
            (ColumnType.STRING, 5),
            (ColumnType.BLOB, "bytes"),
        ],
    )
    def test_rejected(self, codec: ValueCodec, type_, value):
        with pytest.raises(InvalidDataError) as exc_info:
            serialize_value(col(type_), value, codec)
        assert exc_info.value.column == "field"

    def test_json(self, codec: ValueCodec):
        stored = serialize_value(col(ColumnType.JSON), {"a": [1]}, codec)
        assert json.loads(stored) == {"type": "Map", "data": [["a", [1]]]}

    def test_json_unencodable(self, codec: ValueCodec):
        with pytest.raises(InvalidDataError) as exc_info:
            serialize_value(col(ColumnType.JSON), lambda: 1, codec)
        assert exc_info.value.column == "field"

    def test_none_requires_nullable(self, codec: ValueCodec):
        with pytest.raises(InvalidDataError, match="not nullable"):
            serialize_value(col(ColumnType.STRING), None, codec)
        assert serialize_value(col(ColumnType.STRING, nullable=True), None, codec) is None


class TestDeserialize:
    def test_boolean(self, codec: ValueCodec):
        assert deserialize_value(col(ColumnType.BOOLEAN), 0, codec) is False
        assert deserialize_value(col(ColumnType.BOOLEAN), 1, codec) is True

    def test_null(self, codec: ValueCodec):
        assert deserialize_value(col(ColumnType.STRING, nullable=True), None, codec) is None

    def test_number_and_integer(self, codec: ValueCodec):
        assert deserialize_value(col(ColumnType.NUMBER), 1.25, codec) == 1.25
        assert deserialize_value(col(ColumnType.INTEGER), 9, codec) == 9

    def test_blob(self, codec: ValueCodec):
        assert deserialize_value(col(ColumnType.BLOB), memoryview(b"ab"), codec) == b"ab"

    def test_json(self, codec: ValueCodec):
        raw = '{"type": "ByteArray", "data": "AQI="}'
        assert deserialize_value(col(ColumnType.JSON), raw, codec) == b"\x01\x02"

    def test_json_invalid_text(self, codec: ValueCodec):
        with pytest.raises(InvalidDataError) as exc_info:
            deserialize_value(col(ColumnType.JSON), "{nope", codec)
        assert exc_info.value.column == "field"

    def test_json_unknown_custom_type_keeps_error_type(self, codec: ValueCodec):
        raw = '{"type": "custom-Gone", "data": {}}'
        with pytest.raises(UnknownCustomTypeError) as exc_info:
            deserialize_value(col(ColumnType.JSON), raw, codec)
        assert exc_info.value.context.column == "field"

    def test_boolean_from_text_rejected(self, codec: ValueCodec):
        with pytest.raises(InvalidDataError):
            deserialize_value(col(ColumnType.BOOLEAN), "yes", codec)
