"""Per-instance mapper state.

The mapper tracks whether each row object has been persisted yet. That
flag lives in a :class:`RowState` stored on the instance under
``_row_state``. Underscore-prefixed attributes are never mapped to columns,
so the state never leaks into the table. Updates are keyed on the row's
current primary-key value.

Any class that can be constructed without arguments works as a row type.
Subclassing :class:`Row` only adds the ``id = -1`` convention and the
``is_new`` shortcut.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

STATE_ATTR = "_row_state"

# Placeholder id of a row the engine has not assigned a key to yet.
UNSET_ID = -1


@dataclass
class RowState:
    is_new: bool = True


def row_state(row: Any) -> RowState:
    """The :class:`RowState` of ``row``, created on first access."""
    return row.__dict__.setdefault(STATE_ATTR, RowState())


def is_unset_key(value: Any) -> bool:
    return value is None or (not isinstance(value, bool) and value == UNSET_ID)


class Row:
    """Convenience base for row types with an auto-assigned integer ``id``.

    Example:
        >>> class Note(Row):
        ...     def __init__(self):
        ...         super().__init__()
        ...         self.body = ""
        >>> Note().is_new
        True
    """

    def __init__(self) -> None:
        self.id = UNSET_ID

    @property
    def is_new(self) -> bool:
        return row_state(self).is_new

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{name}={value!r}" for name, value in vars(self).items() if not name.startswith("_")
        )
        return f"{type(self).__name__}({fields})"


__all__ = [
    "STATE_ATTR",
    "UNSET_ID",
    "Row",
    "RowState",
    "row_state",
    "is_unset_key",
]
