"""
schemaspine - schema-driven persistence of plain Python objects in SQLite.

Register a row type and its table is created or extended to match; then
load, query, save and delete rows by type. Fields that need more than a
scalar column are stored as tagged JSON.

- schemaspine.core: errors, logging, settings, store protocols, dialect
- schemaspine.codec: tagged JSON codec and custom type registry
- schemaspine.query: clause descriptors and the SQL builder
- schemaspine.migrations: schema reconciliation and the schema snapshot
- schemaspine.orm: row types, column inference and the RowMapper
"""

__version__ = "0.1.0"

from schemaspine.adapters.sqlite import SQLiteStore
from schemaspine.codec import TypeRegistry, ValueCodec
from schemaspine.core.errors import (
    InvalidDataError,
    InvalidTableError,
    ModelNotRegisteredError,
    NotFoundError,
    QueryError,
    SchemaMigrationError,
    SnapshotError,
    StoreError,
)
from schemaspine.core.settings import MapperSettings
from schemaspine.orm import ColumnOverride, RegistrationReport, Row, RowMapper
from schemaspine.query import AggregateQuery, OrderClause, SelectQuery, WhereClause
from schemaspine.schema import ColumnDescriptor, ColumnType, TableSchema
from schemaspine.storage import FileStorage, MemoryStorage

__all__ = [
    "__version__",
    # mapper
    "RowMapper",
    "Row",
    "ColumnOverride",
    "RegistrationReport",
    "MapperSettings",
    # schema
    "ColumnDescriptor",
    "ColumnType",
    "TableSchema",
    # queries
    "AggregateQuery",
    "OrderClause",
    "SelectQuery",
    "WhereClause",
    # codec
    "TypeRegistry",
    "ValueCodec",
    # collaborators
    "SQLiteStore",
    "FileStorage",
    "MemoryStorage",
    # errors
    "StoreError",
    "NotFoundError",
    "QueryError",
    "InvalidTableError",
    "ModelNotRegisteredError",
    "InvalidDataError",
    "SchemaMigrationError",
    "SnapshotError",
]
