"""Key-value persistence collaborators for the schema snapshot.

``FileStorage`` maps a key to a file path; ``MemoryStorage`` keeps blobs in
a dict (used for ``:memory:`` databases and in tests). Both satisfy
:class:`~schemaspine.core.protocols.KeyValueStorage`.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


class FileStorage:
    """Stores each key as a file; relative keys resolve under ``base_dir``.

    Writes go to a temporary sibling first and are moved into place, so a
    crash mid-write never leaves a truncated snapshot behind.
    """

    def __init__(self, base_dir: Path | str | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else None

    def path_for(self, key: str) -> Path:
        path = Path(key)
        if self._base_dir is not None and not path.is_absolute():
            path = self._base_dir / path
        return path

    def load(self, key: str) -> bytes | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def save(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    def load(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    def save(self, key: str, data: bytes) -> None:
        self.blobs[key] = bytes(data)


__all__ = [
    "FileStorage",
    "MemoryStorage",
]
