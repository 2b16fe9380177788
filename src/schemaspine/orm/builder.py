"""Column inference and the fluent model declaration API.

A table schema is derived from a fresh instance of the row type: each public,
non-callable attribute becomes a column whose type is inferred from its
default value. Explicit :class:`ColumnOverride` entries refine or replace
what inference produces.

Inference rules:

- ``bool`` → boolean, ``int`` and ``float`` → number (``id`` → integer), ``str`` →
  string, ``bytes`` → blob, any other encodable value → json
- an attribute named ``id`` becomes an auto-increment integer primary key,
  unless another column is declared as the key or ``id`` is ignored
- an attribute defaulting to ``None`` is nullable and needs an explicit type
- names starting with ``_`` and callables are never columns

Example::

    mapper.model(Article, "articles") \\
        .column("title", mapped_to="name") \\
        .column("summary", ColumnType.STRING, nullable=True) \\
        .ignore("scratch") \\
        .register()
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from schemaspine.codec import ValueCodec, ValueKind
from schemaspine.core.errors import InvalidDataError, InvalidTableError
from schemaspine.orm.serializers import serialize_value
from schemaspine.schema import ColumnDescriptor, ColumnType, TableSchema

if TYPE_CHECKING:
    from schemaspine.orm.mapper import RegistrationReport, RowMapper

PRIMARY_KEY_NAME = "id"


@dataclass
class ColumnOverride:
    """Explicit declaration for one field; ``None`` means "infer it"."""

    name: str
    type: ColumnType | None = None
    nullable: bool | None = None
    primary_key: bool | None = None
    mapped_to: str | None = None
    auto_increment: bool | None = None

    def merge(self, other: ColumnOverride) -> None:
        for f in dataclasses.fields(other):
            value = getattr(other, f.name)
            if value is not None:
                setattr(self, f.name, value)


def _class_defaults(row_type: type) -> dict[str, Any]:
    """Plain class attributes along the MRO, base classes first.

    Descriptors (properties, class and static methods) are not defaults.
    """
    defaults: dict[str, Any] = {}
    for klass in reversed(row_type.__mro__):
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if hasattr(type(value), "__get__"):
                defaults.pop(name, None)
                continue
            defaults[name] = value
    return defaults


def instance_fields(row: Any) -> dict[str, Any]:
    """Public, non-callable attributes of a row instance, in definition order.

    Instance attributes come first, followed by class-level defaults the
    instance does not shadow.
    """
    if dataclasses.is_dataclass(row):
        fields = {f.name: getattr(row, f.name) for f in dataclasses.fields(row)}
        for name, value in vars(row).items():
            fields.setdefault(name, value)
    else:
        fields = dict(vars(row))
    for name, value in _class_defaults(type(row)).items():
        fields.setdefault(name, value)
    return {
        name: value
        for name, value in fields.items()
        if not name.startswith("_") and not callable(value)
    }


def infer_column_type(name: str, value: Any, codec: ValueCodec) -> ColumnType:
    """Logical type for an attribute from its default value.

    Raises:
        InvalidTableError: ``value`` is ``None`` or cannot be stored.
    """
    if value is None:
        if name == PRIMARY_KEY_NAME:
            return ColumnType.INTEGER
        raise InvalidTableError(
            f"Cannot infer a column type for {name!r} from a None default; declare its type"
        ).with_context(column=name)
    if isinstance(value, bool):
        return ColumnType.BOOLEAN
    if isinstance(value, (int, float)):
        return ColumnType.INTEGER if name == PRIMARY_KEY_NAME else ColumnType.NUMBER
    if isinstance(value, str):
        return ColumnType.STRING
    kind = codec.classify(value)
    if kind is ValueKind.BYTES:
        return ColumnType.BLOB
    if kind is ValueKind.UNENCODABLE:
        raise InvalidTableError(
            f"Attribute {name!r} has a value of type {type(value).__name__} that cannot be stored"
        ).with_context(column=name)
    return ColumnType.JSON


def build_table_schema(
    row_type: type,
    columns: Iterable[ColumnOverride] = (),
    *,
    table_name: str | None = None,
    ignored: Iterable[str] = (),
    codec: ValueCodec | None = None,
) -> TableSchema:
    """Derive the :class:`TableSchema` of ``row_type``.

    Raises:
        InvalidTableError: Conflicting declarations, a type that cannot be
            inferred, a default that does not fit its column, or a row type
            that cannot be constructed without arguments.
    """
    codec = codec or ValueCodec()
    table = table_name or row_type.__name__
    ignored = set(ignored)
    overrides: dict[str, ColumnOverride] = {}
    for override in columns:
        if override.name in overrides:
            overrides[override.name].merge(override)
        else:
            overrides[override.name] = dataclasses.replace(override)

    keys = [o.name for o in overrides.values() if o.primary_key]
    if len(keys) > 1:
        raise InvalidTableError(
            f"Table {table} declares more than one primary key: {keys}"
        ).with_context(table=table)
    explicit_key = bool(keys)

    try:
        instance = row_type()
    except TypeError as e:
        raise InvalidTableError(
            f"Row type {row_type.__name__} must be constructible without arguments", cause=e
        ).with_context(table=table) from e

    defaults = instance_fields(instance)
    names = list(defaults) + [n for n in overrides if n not in defaults]

    descriptors = []
    for name in names:
        if name in ignored:
            continue
        override = overrides.get(name) or ColumnOverride(name)
        if explicit_key and name == PRIMARY_KEY_NAME and not override.primary_key:
            continue
        default = defaults.get(name)

        column_type = override.type or infer_column_type(name, default, codec)
        is_key = override.primary_key if override.primary_key is not None else (
            not explicit_key and name == PRIMARY_KEY_NAME
        )
        auto_increment = override.auto_increment if override.auto_increment is not None else (
            is_key and name == PRIMARY_KEY_NAME and column_type is ColumnType.INTEGER
        )
        nullable = override.nullable if override.nullable is not None else (
            default is None and not is_key
        )
        col = ColumnDescriptor(
            name=name,
            type=column_type,
            nullable=nullable,
            default_value=default,
            is_primary_key=is_key,
            auto_increment=auto_increment,
            mapped_to=override.mapped_to,
        )
        if default is not None and not col.auto_increment:
            _check_default(table, col, codec)
        descriptors.append(col)

    return TableSchema(table, descriptors)


def _check_default(table: str, col: ColumnDescriptor, codec: ValueCodec) -> None:
    try:
        serialize_value(col, col.default_value, codec)
    except InvalidDataError as e:
        raise InvalidTableError(
            f"Default of {table}.{col.name} does not fit its column: {e.message}", cause=e
        ).with_context(table=table, column=col.name) from e


class ModelBuilder:
    """Collects column declarations for one row type, then registers it.

    Declarations accumulate; calling :meth:`column` twice for the same field
    merges the two. Nothing touches the store until :meth:`register`.
    """

    def __init__(self, mapper: RowMapper, row_type: type, table_name: str | None = None) -> None:
        self._mapper = mapper
        self.row_type = row_type
        self.table_name = table_name or row_type.__name__
        self._columns: dict[str, ColumnOverride] = {}
        self._ignored: list[str] = []

    def column(
        self,
        name: str,
        type: ColumnType | str | None = None,
        *,
        nullable: bool | None = None,
        primary_key: bool | None = None,
        mapped_to: str | None = None,
        auto_increment: bool | None = None,
    ) -> ModelBuilder:
        """Declare or refine one column.

        Raises:
            InvalidTableError: A different field is already the primary key.
        """
        if primary_key:
            current = next(
                (o.name for o in self._columns.values() if o.primary_key and o.name != name), None
            )
            if current is not None:
                raise InvalidTableError(
                    f"Table {self.table_name} already has primary key {current!r}"
                ).with_context(table=self.table_name, column=name)
        override = ColumnOverride(
            name=name,
            type=ColumnType(type) if type is not None else None,
            nullable=nullable,
            primary_key=primary_key,
            mapped_to=mapped_to,
            auto_increment=auto_increment,
        )
        if name in self._columns:
            self._columns[name].merge(override)
        else:
            self._columns[name] = override
        return self

    def column_type(self, name: str, type: ColumnType | str) -> ModelBuilder:
        return self.column(name, type)

    def nullable(self, name: str, nullable: bool = True) -> ModelBuilder:
        return self.column(name, nullable=nullable)

    def primary_key(self, name: str) -> ModelBuilder:
        return self.column(name, primary_key=True)

    def map_to(self, name: str, physical_name: str) -> ModelBuilder:
        """Keep ``name`` stored under an older physical column name."""
        return self.column(name, mapped_to=physical_name)

    def ignore(self, *names: str) -> ModelBuilder:
        self._ignored.extend(names)
        return self

    @property
    def columns(self) -> list[ColumnOverride]:
        return list(self._columns.values())

    @property
    def ignored(self) -> list[str]:
        return list(self._ignored)

    def build(self) -> TableSchema:
        """The schema these declarations produce, without registering it."""
        return build_table_schema(
            self.row_type,
            self.columns,
            table_name=self.table_name,
            ignored=self._ignored,
            codec=self._mapper.codec,
        )

    def register(self) -> RegistrationReport:
        return self._mapper.register_model(
            self.row_type,
            self.columns,
            table_name=self.table_name,
            ignored=self._ignored,
        )


__all__ = [
    "PRIMARY_KEY_NAME",
    "ColumnOverride",
    "ModelBuilder",
    "build_table_schema",
    "infer_column_type",
    "instance_fields",
]
