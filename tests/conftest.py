"""
Shared pytest fixtures for schemaspine tests.

This module provides:
- An in-memory SQLite store, closed after each test
- In-memory snapshot storage
- A fresh type registry and codec per test
- A RowMapper wired to all of the above
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from schemaspine.adapters.sqlite import SQLiteStore
from schemaspine.codec import TypeRegistry, ValueCodec
from schemaspine.orm import RowMapper
from schemaspine.storage import MemoryStorage


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    root = Path(__file__).parent
    for item in items:
        test_path = Path(str(item.path)).relative_to(root)
        if test_path.parts[0] == "cli":
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def store() -> Iterator[SQLiteStore]:
    s = SQLiteStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def registry() -> TypeRegistry:
    return TypeRegistry()


@pytest.fixture
def codec(registry: TypeRegistry) -> ValueCodec:
    return ValueCodec(registry)


@pytest.fixture
def mapper(store: SQLiteStore, storage: MemoryStorage, codec: ValueCodec) -> RowMapper:
    return RowMapper(store, storage, codec=codec)
