"""Row types, column inference and the RowMapper."""

from schemaspine.orm.builder import (
    ColumnOverride,
    ModelBuilder,
    build_table_schema,
    infer_column_type,
)
from schemaspine.orm.mapper import RegistrationReport, RowMapper
from schemaspine.orm.row import UNSET_ID, Row, RowState, row_state
from schemaspine.orm.serializers import deserialize_value, serialize_value

__all__ = [
    "UNSET_ID",
    "ColumnOverride",
    "ModelBuilder",
    "RegistrationReport",
    "Row",
    "RowMapper",
    "RowState",
    "build_table_schema",
    "deserialize_value",
    "infer_column_type",
    "row_state",
    "serialize_value",
]
