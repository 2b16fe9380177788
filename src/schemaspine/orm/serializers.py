"""Column value conversion between row attributes and stored values.

=========  ======================  ==========================
type       attribute               stored
=========  ======================  ==========================
boolean    ``bool``                ``0`` / ``1``
integer    ``int``                 ``int``
number     ``int`` / ``float``     ``int`` / ``float``
string     ``str``                 ``str``
blob       ``bytes``               ``bytes``
json       anything encodable      tagged JSON text
=========  ======================  ==========================

``None`` is accepted (and stored as NULL) only for nullable columns.
Every mismatch raises :class:`InvalidDataError` naming the column.
"""

from __future__ import annotations

from typing import Any

from schemaspine.codec import ValueCodec
from schemaspine.core.errors import InvalidDataError
from schemaspine.schema import ColumnDescriptor, ColumnType

_BYTES_TYPES = (bytes, bytearray, memoryview)

# SQLite stores integers as signed 64-bit values.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def _mismatch(col: ColumnDescriptor, value: Any, expected: str) -> InvalidDataError:
    return InvalidDataError(
        f"Column {col.name} expects {expected}, got {type(value).__name__}",
        column=col.name,
        value=value,
    )


def _check_range(col: ColumnDescriptor, value: int) -> int:
    if not INT64_MIN <= value <= INT64_MAX:
        raise InvalidDataError(
            f"Column {col.name} value {value} is outside the 64-bit integer range",
            column=col.name,
            value=value,
        )
    return value


def _as_integer(col: ColumnDescriptor, value: Any) -> int:
    if isinstance(value, bool):
        raise _mismatch(col, value, "an integer")
    if isinstance(value, int):
        return _check_range(col, value)
    if isinstance(value, float) and value.is_integer():
        return _check_range(col, int(value))
    raise _mismatch(col, value, "an integer")


def _as_number(col: ColumnDescriptor, value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _mismatch(col, value, "a number")
    if isinstance(value, int):
        return _check_range(col, value)
    return value


def serialize_value(col: ColumnDescriptor, value: Any, codec: ValueCodec) -> Any:
    """Attribute value → bound SQL parameter for ``col``."""
    if value is None:
        if col.nullable:
            return None
        raise InvalidDataError(f"Column {col.name} is not nullable", column=col.name)

    match col.type:
        case ColumnType.BOOLEAN:
            if not isinstance(value, bool):
                raise _mismatch(col, value, "a boolean")
            return 1 if value else 0
        case ColumnType.INTEGER:
            return _as_integer(col, value)
        case ColumnType.NUMBER:
            return _as_number(col, value)
        case ColumnType.STRING:
            if not isinstance(value, str):
                raise _mismatch(col, value, "a string")
            return value
        case ColumnType.BLOB:
            if not isinstance(value, _BYTES_TYPES):
                raise _mismatch(col, value, "bytes")
            return bytes(value)
        case ColumnType.JSON:
            try:
                return codec.dumps(value)
            except InvalidDataError as e:
                e.column = e.column or col.name
                raise e.with_context(column=col.name)
    raise InvalidDataError(f"Column {col.name} has invalid type {col.type!r}", column=col.name)


def deserialize_value(col: ColumnDescriptor, raw: Any, codec: ValueCodec) -> Any:
    """Stored value → attribute value for ``col``."""
    if raw is None:
        return None

    match col.type:
        case ColumnType.BOOLEAN:
            if isinstance(raw, (bool, int)):
                return bool(raw)
            raise _mismatch(col, raw, "a stored boolean")
        case ColumnType.INTEGER:
            return _as_integer(col, raw)
        case ColumnType.NUMBER:
            return _as_number(col, raw)
        case ColumnType.STRING:
            return raw if isinstance(raw, str) else str(raw)
        case ColumnType.BLOB:
            if isinstance(raw, _BYTES_TYPES):
                return bytes(raw)
            raise _mismatch(col, raw, "stored bytes")
        case ColumnType.JSON:
            if not isinstance(raw, (str, bytes)):
                raise _mismatch(col, raw, "stored JSON text")
            try:
                return codec.loads(raw)
            except InvalidDataError as e:
                e.column = e.column or col.name
                raise e.with_context(column=col.name)
    raise InvalidDataError(f"Column {col.name} has invalid type {col.type!r}", column=col.name)


__all__ = [
    "serialize_value",
    "deserialize_value",
]
