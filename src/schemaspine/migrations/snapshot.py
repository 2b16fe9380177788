"""Persisted record of the last-known declared schema per table.

The snapshot lets a later run tell which columns were added to or removed
from a row type since the previous run. It lives beside the database under
``<db_path>.model.json`` (any :class:`KeyValueStorage` key works) as::

    {
      "version": 1,
      "models": {
        "<table>": {
          "tableName": "<table>",
          "columns": [
            {"name": ..., "mappedTo": ..., "type": ..., "nullable": ...,
             "defaultValue": ..., "isPrimaryKey": ..., "autoIncrement": ...}
          ]
        }
      }
    }

An unversioned document (a bare ``{<table>: {...}}`` map) is accepted,
upgraded to version 1 and written back on load. Any other version is a
fatal :class:`SnapshotError`. Defaults are stored in tagged JSON form.

Tags:
    snapshot, persistence, schema, pydantic, schemaspine
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from schemaspine.codec import ValueCodec
from schemaspine.core.errors import SnapshotError, StoreError
from schemaspine.core.logging import get_logger
from schemaspine.core.protocols import KeyValueStorage
from schemaspine.schema import ColumnDescriptor, ColumnType, TableSchema

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1


# =========================================================================
# On-disk document
# =========================================================================


class ColumnRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    type: ColumnType
    mapped_to: str | None = Field(default=None, alias="mappedTo")
    nullable: bool = False
    default_value: Any = Field(default=None, alias="defaultValue")
    is_primary_key: bool = Field(default=False, alias="isPrimaryKey")
    auto_increment: bool = Field(default=False, alias="autoIncrement")


class ModelRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    table_name: str = Field(alias="tableName")
    columns: list[ColumnRecord] = Field(default_factory=list)


class SnapshotDocument(BaseModel):
    version: int = SNAPSHOT_VERSION
    models: dict[str, ModelRecord] = Field(default_factory=dict)


def schema_to_record(schema: TableSchema, codec: ValueCodec) -> ModelRecord:
    return ModelRecord(
        table_name=schema.table_name,
        columns=[
            ColumnRecord(
                name=c.name,
                type=c.type,
                mapped_to=c.mapped_to,
                nullable=c.nullable,
                default_value=codec.encode(c.default_value),
                is_primary_key=c.is_primary_key,
                auto_increment=c.auto_increment,
            )
            for c in schema.columns
        ],
    )


def record_to_schema(record: ModelRecord, codec: ValueCodec) -> TableSchema:
    return TableSchema(
        record.table_name,
        [
            ColumnDescriptor(
                name=c.name,
                type=c.type,
                nullable=c.nullable,
                default_value=codec.decode(c.default_value),
                is_primary_key=c.is_primary_key,
                auto_increment=c.auto_increment,
                mapped_to=c.mapped_to,
            )
            for c in record.columns
        ],
    )


# =========================================================================
# In-memory snapshot
# =========================================================================


@dataclass
class SnapshotChange:
    """Outcome of recording one schema into the snapshot."""

    table_name: str
    changed: bool
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


@dataclass
class SchemaSnapshot:
    """``{version, models}``; ``models`` is keyed by table name."""

    version: int = SNAPSHOT_VERSION
    models: dict[str, ModelRecord] = field(default_factory=dict)

    def schema(self, table_key: str, codec: ValueCodec | None = None) -> TableSchema | None:
        record = self.models.get(table_key)
        if record is None:
            return None
        return record_to_schema(record, codec or ValueCodec())

    def record(self, schema: TableSchema, codec: ValueCodec) -> SnapshotChange:
        """Update (never replace) the entry for ``schema``.

        Only the entry's column set is compared; nothing changes when the
        declaration is identical to what is stored.
        """
        new = schema_to_record(schema, codec)
        old = self.models.get(schema.table_name)
        if old is not None and old.model_dump() == new.model_dump():
            return SnapshotChange(schema.table_name, changed=False)

        old_names = [c.name for c in old.columns] if old is not None else []
        new_names = [c.name for c in new.columns]
        self.models[schema.table_name] = new
        return SnapshotChange(
            schema.table_name,
            changed=True,
            added=[n for n in new_names if n not in old_names] if old is not None else [],
            removed=[n for n in old_names if n not in new_names],
        )

    def to_document(self) -> SnapshotDocument:
        return SnapshotDocument(version=self.version, models=dict(self.models))


# =========================================================================
# Persistence
# =========================================================================


class SnapshotStore:
    """Loads and saves a :class:`SchemaSnapshot` through a storage collaborator.

    Parameters
    ----------
    storage
        Byte-blob persistence.
    key
        Storage key, conventionally ``f"{db_path}.model.json"``.
    """

    def __init__(self, storage: KeyValueStorage, key: str) -> None:
        self._storage = storage
        self.key = key

    def load(self) -> SchemaSnapshot:
        """Read the snapshot; a missing one is returned empty and unsaved.

        Raises:
            SnapshotError: Unparseable document or unknown version.
        """
        raw = self._storage.load(self.key)
        if raw is None:
            return SchemaSnapshot()

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SnapshotError(f"Snapshot {self.key} is not valid JSON", cause=e) from e
        if not isinstance(data, dict):
            raise SnapshotError(f"Snapshot {self.key} must be a JSON object")

        upgraded = "version" not in data
        if upgraded:
            data = {"version": SNAPSHOT_VERSION, "models": data}
        if data["version"] != SNAPSHOT_VERSION:
            raise SnapshotError(f"Unknown snapshot version {data['version']!r} in {self.key}")

        try:
            document = SnapshotDocument.model_validate(data)
        except ValidationError as e:
            raise SnapshotError(f"Snapshot {self.key} is malformed: {e}", cause=e) from e

        snapshot = SchemaSnapshot(version=document.version, models=dict(document.models))
        if upgraded:
            self.save(snapshot)
            logger.info("snapshot.upgraded", key=self.key, version=SNAPSHOT_VERSION)
        return snapshot

    def save(self, snapshot: SchemaSnapshot) -> None:
        payload = snapshot.to_document().model_dump(mode="json", by_alias=True)
        try:
            self._storage.save(self.key, json.dumps(payload, indent=2).encode("utf-8"))
        except OSError as e:
            raise SnapshotError(f"Failed to write snapshot {self.key}", cause=e) from e
        logger.debug("snapshot.saved", key=self.key, models=len(snapshot.models))


def decode_defaults(snapshot: SchemaSnapshot, codec: ValueCodec) -> dict[str, TableSchema]:
    """Every model in ``snapshot`` as a :class:`TableSchema`.

    Raises:
        SnapshotError: A stored default cannot be decoded with ``codec``.
    """
    schemas = {}
    for key in snapshot.models:
        try:
            schemas[key] = snapshot.schema(key, codec)
        except StoreError as e:
            raise SnapshotError(f"Snapshot model {key} cannot be decoded: {e.message}", cause=e) from e
    return schemas


__all__ = [
    "SNAPSHOT_VERSION",
    "ColumnRecord",
    "ModelRecord",
    "SnapshotDocument",
    "SnapshotChange",
    "SchemaSnapshot",
    "SnapshotStore",
    "schema_to_record",
    "record_to_schema",
    "decode_defaults",
]
