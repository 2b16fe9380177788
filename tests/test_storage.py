"""Tests for snapshot storage backends."""

from __future__ import annotations

from schemaspine.core.protocols import KeyValueStorage
from schemaspine.storage import FileStorage, MemoryStorage


class TestFileStorage:
    def test_missing_key(self, tmp_path):
        assert FileStorage(tmp_path).load("absent.json") is None

    def test_save_and_load(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.save("app.db.model.json", b'{"version": 1}')
        assert (tmp_path / "app.db.model.json").read_bytes() == b'{"version": 1}'
        assert storage.load("app.db.model.json") == b'{"version": 1}'

    def test_creates_parent_directories(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.save("nested/dir/x.json", b"{}")
        assert (tmp_path / "nested" / "dir" / "x.json").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.save("x.json", b"1")
        storage.save("x.json", b"2")
        assert storage.load("x.json") == b"2"
        assert [p.name for p in tmp_path.iterdir()] == ["x.json"]

    def test_absolute_key_ignores_base_dir(self, tmp_path):
        target = tmp_path / "elsewhere.json"
        storage = FileStorage(tmp_path / "base")
        storage.save(str(target), b"{}")
        assert target.exists()
        assert storage.path_for(str(target)) == target

    def test_protocol(self, tmp_path):
        assert isinstance(FileStorage(tmp_path), KeyValueStorage)


class TestMemoryStorage:
    def test_round_trip(self):
        storage = MemoryStorage()
        assert storage.load("k") is None
        storage.save("k", bytearray(b"abc"))
        assert storage.load("k") == b"abc"
        assert isinstance(storage.blobs["k"], bytes)

    def test_protocol(self):
        assert isinstance(MemoryStorage(), KeyValueStorage)
