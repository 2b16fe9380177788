"""Core primitives shared by every schemaspine module.

Modules
-------
errors          StoreError hierarchy with category/context/cause
logging         structlog configuration and get_logger()
settings        MapperSettings (pydantic-settings)
protocols       Store / PreparedStatement / KeyValueStorage contracts
dialect         SQLite SQL fragments (placeholders, quoting, literals)
"""

from schemaspine.core.dialect import DEFAULT_DIALECT, Dialect, SQLiteDialect
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
from schemaspine.core.protocols import ColumnInfo, KeyValueStorage, PreparedStatement, Store

__all__ = [
    # dialect
    "DEFAULT_DIALECT",
    "Dialect",
    "SQLiteDialect",
    # errors
    "ErrorCategory",
    "ErrorContext",
    "StoreError",
    "NotFoundError",
    "QueryError",
    "InvalidTableError",
    "ModelNotRegisteredError",
    "InvalidDataError",
    "UnknownCustomTypeError",
    "UnknownTaggedTypeError",
    "SchemaMigrationError",
    "SnapshotError",
    # protocols
    "ColumnInfo",
    "KeyValueStorage",
    "PreparedStatement",
    "Store",
]
