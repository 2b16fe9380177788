"""Tagged JSON codec for ``json``-typed columns.

Plain JSON cannot tell a ``dict`` from an object, bytes from text, or one
class from another. ``ValueCodec`` wraps every value whose runtime type would
otherwise be lost in a ``{"type": ..., "data": ...}`` envelope, so
``decode(encode(v))`` gives back ``v``'s data with its container types.

Wire format (the on-disk contract inside json columns)::

    true / 1.5 / "text" / null          scalars, unchanged
    [ ... ]                             lists, tuples and sets, element-wise
    {"type": "Map",       "data": [[k, v], ...]}
    {"type": "ByteArray", "data": "<base64>"}
    {"type": "custom-<Name>", "data": {field: value, ...}}
    {"type": "unknown",   "data": {field: value, ...}}

Two legacy forms are still read: ``{"type": "U8IntArray"}`` (decodes to
empty bytes, its payload was never written) and an untagged JSON object,
which decodes field-wise into a ``dict``.

Dispatch is a closed set of :class:`ValueKind` variants resolved once per
value by an ordered list of predicates: scalars, then bytes, then registered
types, then mappings, then sequences. Values of an unencodable kind
(callables, modules, generators, complex numbers, objects with no fields)
are dropped from containers and rejected at the top level.

Examples:
    >>> codec = ValueCodec()
    >>> codec.encode({"a": 1})
    {'type': 'Map', 'data': [['a', 1]]}
    >>> codec.decode({"type": "ByteArray", "data": "AQI="})
    b'\\x01\\x02'

Tags:
    codec, json, serialization, registry, schemaspine
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import json
import types
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from schemaspine.core.errors import (
    InvalidDataError,
    InvalidTableError,
    UnknownCustomTypeError,
    UnknownTaggedTypeError,
)
from schemaspine.core.logging import get_logger

logger = get_logger(__name__)

MAP_TAG = "Map"
BYTES_TAG = "ByteArray"
LEGACY_BYTES_TAG = "U8IntArray"
UNKNOWN_TAG = "unknown"
CUSTOM_PREFIX = "custom-"


class ValueKind(str, Enum):
    """Encoding variant of a runtime value."""

    SCALAR = "scalar"
    BYTES = "bytes"
    REGISTERED = "registered"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    UNKNOWN = "unknown"
    UNENCODABLE = "unencodable"


@dataclass(frozen=True)
class Registration:
    """A class whose instances encode as ``custom-<Name>``."""

    cls: type
    ignored_fields: frozenset[str] = frozenset()

    @property
    def name(self) -> str:
        return self.cls.__name__

    @property
    def tag(self) -> str:
        return f"{CUSTOM_PREFIX}{self.name}"


class TypeRegistry:
    """Append-only registry of custom types, populated once at startup.

    Lookups go both ways: by instance (first registration whose class the
    value is an instance of) when encoding, and by type name when decoding.
    Names must therefore be unique across registrations.
    """

    def __init__(self) -> None:
        self._registrations: list[Registration] = []
        self._by_name: dict[str, Registration] = {}

    def register(self, cls: type, ignored_fields: Iterable[str] = ()) -> Registration:
        """Register ``cls``; its ``ignored_fields`` are never persisted.

        Raises:
            InvalidTableError: ``cls`` or another class with the same name is
                already registered.
        """
        registration = Registration(cls, frozenset(ignored_fields))
        existing = self._by_name.get(registration.name)
        if existing is not None:
            if existing.cls is cls:
                raise InvalidTableError(f"Type {registration.name} is already registered")
            raise InvalidTableError(
                f"Ambiguous registration: {cls.__module__}.{cls.__qualname__} "
                f"and {existing.cls.__module__}.{existing.cls.__qualname__} "
                f"share the type name {registration.name!r}"
            )
        self._registrations.append(registration)
        self._by_name[registration.name] = registration
        return registration

    def serializable(self, ignored_fields: Iterable[str] = ()) -> Callable[[type], type]:
        """Class decorator form of :meth:`register`.

        Example:
            >>> registry = TypeRegistry()
            >>> @registry.serializable(ignored_fields=["cache"])
            ... class Point:
            ...     def __init__(self):
            ...         self.x = 0
            ...         self.cache = None
        """

        def decorator(cls: type) -> type:
            self.register(cls, ignored_fields)
            return cls

        return decorator

    def match(self, value: Any) -> Registration | None:
        for registration in self._registrations:
            if isinstance(value, registration.cls):
                return registration
        return None

    def lookup(self, name: str) -> Registration | None:
        return self._by_name.get(name)

    def __contains__(self, cls: object) -> bool:
        return any(r.cls is cls for r in self._registrations)

    def __iter__(self) -> Iterator[Registration]:
        return iter(self._registrations)

    def __len__(self) -> int:
        return len(self._registrations)


# Ordered: the first predicate that accepts a value decides its kind.
_KIND_PREDICATES: tuple[tuple[ValueKind, Callable[[Any], bool]], ...] = (
    (ValueKind.SCALAR, lambda v: v is None or isinstance(v, (bool, int, float, str))),
    (ValueKind.BYTES, lambda v: isinstance(v, (bytes, bytearray, memoryview))),
)
_CONTAINER_PREDICATES: tuple[tuple[ValueKind, Callable[[Any], bool]], ...] = (
    (ValueKind.MAPPING, lambda v: isinstance(v, Mapping)),
    (ValueKind.SEQUENCE, lambda v: isinstance(v, (list, tuple, set, frozenset))),
)
_UNENCODABLE_TYPES = (types.ModuleType, types.GeneratorType, complex)


def _fields_of(value: Any) -> dict[str, Any] | None:
    """Field name → value for an object, or None if it has no fields."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if hasattr(value, "__dict__"):
        return dict(vars(value))
    return None


def _hashable(key: Any) -> Any:
    if isinstance(key, list):
        return tuple(_hashable(k) for k in key)
    return key


class ValueCodec:
    """Bidirectional mapping between runtime values and tagged JSON.

    Parameters:
        registry: Custom types known to this codec. Owned by the codec and
            shared by everything that encodes or decodes through it.
    """

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.registry = registry if registry is not None else TypeRegistry()

    # -- Classification ----------------------------------------------------

    def classify(self, value: Any) -> ValueKind:
        """Resolve the encoding variant of ``value``."""
        for kind, predicate in _KIND_PREDICATES:
            if predicate(value):
                return kind
        if self.registry.match(value) is not None:
            return ValueKind.REGISTERED
        for kind, predicate in _CONTAINER_PREDICATES:
            if predicate(value):
                return kind
        if callable(value) or isinstance(value, _UNENCODABLE_TYPES):
            return ValueKind.UNENCODABLE
        if _fields_of(value) is not None:
            return ValueKind.UNKNOWN
        return ValueKind.UNENCODABLE

    # -- Encoding ----------------------------------------------------------

    def encode(self, value: Any, ignored_field_names: Iterable[str] = ()) -> Any:
        """Encode ``value`` into its JSON-safe tagged form.

        ``ignored_field_names`` applies to the fields (or mapping keys) of
        ``value`` itself; those entries are permanently dropped.

        Raises:
            InvalidDataError: ``value`` itself is of an unencodable kind.
        """
        kind = self.classify(value)
        if kind is ValueKind.UNENCODABLE:
            raise InvalidDataError(
                f"Cannot encode value of type {type(value).__name__}", value=value
            )
        return self._encode(value, kind, frozenset(ignored_field_names))

    def _encode(self, value: Any, kind: ValueKind, ignored: frozenset[str]) -> Any:
        match kind:
            case ValueKind.SCALAR:
                return value
            case ValueKind.BYTES:
                return {
                    "type": BYTES_TAG,
                    "data": base64.b64encode(bytes(value)).decode("ascii"),
                }
            case ValueKind.REGISTERED:
                registration = self.registry.match(value)
                fields = _fields_of(value) or {}
                return {
                    "type": registration.tag,
                    "data": self._encode_fields(fields, registration.ignored_fields | ignored),
                }
            case ValueKind.MAPPING:
                entries = []
                for key, item in value.items():
                    if key in ignored:
                        continue
                    key_kind = self.classify(key)
                    item_kind = self.classify(item)
                    if ValueKind.UNENCODABLE in (key_kind, item_kind):
                        logger.debug("codec.value_dropped", key=repr(key))
                        continue
                    entries.append(
                        [self._encode(key, key_kind, frozenset()), self._encode(item, item_kind, frozenset())]
                    )
                return {"type": MAP_TAG, "data": entries}
            case ValueKind.SEQUENCE:
                encoded = []
                for item in value:
                    item_kind = self.classify(item)
                    if item_kind is ValueKind.UNENCODABLE:
                        logger.debug("codec.value_dropped", value_type=type(item).__name__)
                        continue
                    encoded.append(self._encode(item, item_kind, frozenset()))
                return encoded
            case ValueKind.UNKNOWN:
                return {"type": UNKNOWN_TAG, "data": self._encode_fields(_fields_of(value), ignored)}
        raise InvalidDataError(f"Cannot encode value of type {type(value).__name__}", value=value)

    def _encode_fields(self, fields: Mapping[str, Any], ignored: frozenset[str]) -> dict[str, Any]:
        encoded = {}
        for name, item in fields.items():
            if name in ignored:
                continue
            item_kind = self.classify(item)
            if item_kind is ValueKind.UNENCODABLE:
                logger.debug("codec.value_dropped", field=name)
                continue
            encoded[name] = self._encode(item, item_kind, frozenset())
        return encoded

    # -- Decoding ----------------------------------------------------------

    def decode(self, json_value: Any) -> Any:
        """Exact inverse of :meth:`encode`.

        Raises:
            UnknownCustomTypeError: ``custom-<Name>`` with no registration.
            UnknownTaggedTypeError: Unrecognized ``type`` tag.
            InvalidDataError: Malformed envelope payload.
        """
        if json_value is None or isinstance(json_value, (bool, int, float, str)):
            return json_value
        if isinstance(json_value, list):
            return [self.decode(item) for item in json_value]
        if not isinstance(json_value, dict):
            raise InvalidDataError(
                f"Cannot decode value of type {type(json_value).__name__}", value=json_value
            )
        if "type" not in json_value:
            return self._decode_fields(json_value)

        tag = json_value["type"]
        data = json_value.get("data")

        if tag == MAP_TAG:
            if not isinstance(data, list) or any(
                not isinstance(entry, list) or len(entry) != 2 for entry in data
            ):
                raise InvalidDataError("Map payload must be a list of [key, value] pairs", value=data)
            return {_hashable(self.decode(key)): self.decode(item) for key, item in data}

        if tag == BYTES_TAG:
            try:
                return base64.b64decode(data, validate=True)
            except (binascii.Error, TypeError, ValueError) as e:
                raise InvalidDataError("ByteArray payload is not valid base64", value=data, cause=e) from e

        if tag == LEGACY_BYTES_TAG:
            return b""

        if isinstance(tag, str) and tag.startswith(CUSTOM_PREFIX):
            name = tag[len(CUSTOM_PREFIX):]
            registration = self.registry.lookup(name)
            if registration is None:
                raise UnknownCustomTypeError(name)
            try:
                instance = registration.cls()
            except TypeError as e:
                raise InvalidDataError(
                    f"Type {name} cannot be constructed without arguments", cause=e
                ) from e
            for field_name, item in self._decode_fields(data).items():
                setattr(instance, field_name, item)
            return instance

        if tag == UNKNOWN_TAG:
            return self._decode_fields(data)

        raise UnknownTaggedTypeError(tag)

    def _decode_fields(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise InvalidDataError("Object payload must be a JSON object", value=data)
        return {name: self.decode(item) for name, item in data.items()}

    # -- Text round trip ---------------------------------------------------

    def dumps(self, value: Any, ignored_field_names: Iterable[str] = ()) -> str:
        """``json.dumps(encode(value))``."""
        return json.dumps(self.encode(value, ignored_field_names))

    def loads(self, text: str | bytes) -> Any:
        """``decode(json.loads(text))``; parse failures raise InvalidDataError."""
        try:
            parsed = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise InvalidDataError("Stored value is not valid JSON", value=text, cause=e) from e
        return self.decode(parsed)


__all__ = [
    "ValueKind",
    "Registration",
    "TypeRegistry",
    "ValueCodec",
]
