"""
Structured error types for schemaspine.

Every failure the mapper raises derives from :class:`StoreError`. Errors carry
a category (for routing and log filtering), a structured context (table,
column, operation) and an optional chained cause so the underlying
``sqlite3`` or ``json`` exception survives in tracebacks.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        StoreError                            │
        │            (category, context, cause)                        │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  NotFoundError      InvalidTableError    InvalidDataError    │
        │  QueryError         (CONFIG)             (VALIDATION)        │
        │  (DATABASE)              │                     │             │
        │                 ModelNotRegistered    UnknownCustomType      │
        │                                       UnknownTaggedType      │
        │                                                              │
        │  SchemaMigrationError     SnapshotError                      │
        │  (DATABASE)               (STORAGE)                          │
        └─────────────────────────────────────────────────────────────┘

Propagation:
    - Registration-time errors (``InvalidTableError``) are programmer errors
      and fatal to startup.
    - Per-operation errors (``NotFoundError``, ``InvalidDataError``) go to the
      immediate caller. Only ``RowMapper.find_one_optional`` swallows
      ``NotFoundError``.
    - Nothing is retried.

Examples:
    >>> err = InvalidDataError("expected int", column="age")
    >>> err.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> err.to_dict()["column"]
    'age'

Tags:
    error-handling, exception-hierarchy, error-context, schemaspine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    DATABASE = "DATABASE"  # Engine failures, missing rows
    STORAGE = "STORAGE"  # Snapshot file persistence
    VALIDATION = "VALIDATION"  # Value does not fit its column
    CONFIG = "CONFIG"  # Schema declared incorrectly
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        table: Physical table the operation targeted
        column: Column (field name) involved, if any
        operation: Mapper operation name (``save``, ``find_one``, ...)
        metadata: Additional key-value pairs
    """

    table: str | None = None
    column: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "column", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StoreError(Exception):
    """
    Base exception for all schemaspine errors.

    Subclasses set ``default_category``; callers can override it per
    instance. ``cause`` is chained onto ``__cause__``.

    Examples:
        >>> try:
        ...     raise ValueError("bad json")
        ... except ValueError as e:
        ...     err = StoreError("decode failed", cause=e)
        >>> err.cause
        ValueError('bad json')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> StoreError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("no row").with_context(table="foo")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# LOOKUP ERRORS
# =============================================================================


class NotFoundError(StoreError):
    """A query matched zero rows where exactly one was required."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# QUERY ERRORS
# =============================================================================


class QueryError(StoreError):
    """The engine rejected a statement (constraint, syntax or I/O failure)."""

    default_category = ErrorCategory.DATABASE

    def __init__(self, message: str, *, sql: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.sql = sql
        if sql is not None:
            self.context.metadata["sql"] = sql


# =============================================================================
# DECLARATION ERRORS
# =============================================================================


class InvalidTableError(StoreError):
    """
    Schema declaration conflict.

    Raised for a duplicate primary key, a column type that cannot be
    inferred, an ambiguous custom-type registration or a row type that is
    registered twice. Never retryable: the declaration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class ModelNotRegisteredError(InvalidTableError):
    """A CRUD call referenced a row type that was never registered."""

    def __init__(self, row_type: type):
        self.row_type = row_type
        super().__init__(f"Row type {row_type.__name__} is not registered")


# =============================================================================
# DATA ERRORS
# =============================================================================


class InvalidDataError(StoreError):
    """
    A runtime value does not match its declared column type, or persisted
    JSON failed to parse or decode.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        column: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.column = column
        self.value = value
        if column is not None:
            self.context.column = column

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.column:
            result["column"] = self.column
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class UnknownCustomTypeError(InvalidDataError):
    """A ``custom-<Name>`` tag names a type missing from the registry."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"No registered type named {type_name!r}")


class UnknownTaggedTypeError(InvalidDataError):
    """A tagged JSON value carries a ``type`` the decoder does not know."""

    def __init__(self, tag: Any):
        self.tag = tag
        super().__init__(f"Unknown object type: {tag!r}")


# =============================================================================
# SCHEMA / PERSISTENCE ERRORS
# =============================================================================


class SchemaMigrationError(StoreError):
    """A reconciliation statement could not be applied."""

    default_category = ErrorCategory.DATABASE

    def __init__(self, message: str, *, statement: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.statement = statement
        if statement is not None:
            self.context.metadata["statement"] = statement


class SnapshotError(StoreError):
    """The persisted schema snapshot is unreadable or of an unknown version."""

    default_category = ErrorCategory.STORAGE


__all__ = [
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
]
