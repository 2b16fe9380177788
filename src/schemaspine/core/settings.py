"""Environment-driven settings for a mapper instance.

``MapperSettings`` collects everything needed to open a store: the database
path, where the schema snapshot lives, the busy timeout and logging knobs.
Values come from keyword arguments, ``SCHEMASPINE_*`` environment variables
or a ``.env`` file, in that order of precedence.

Examples:
    >>> from schemaspine.core.settings import MapperSettings
    >>> s = MapperSettings(db_path="app.db")
    >>> s.snapshot_key
    'app.db.model.json'

Tags:
    settings, configuration, pydantic, environment, schemaspine
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MEMORY_PATH = ":memory:"


class MapperSettings(BaseSettings):
    """Settings for :meth:`schemaspine.orm.RowMapper.open`.

    Fields
    ──────
    db_path          : SQLite database path (``:memory:`` for a private in-memory db)
    snapshot_suffix  : Appended to ``db_path`` to form the snapshot key
    timeout          : Seconds sqlite waits on a locked database
    log_level        : Structlog log level
    json_logs        : Force JSON (True) / console (False) logs; None auto-detects
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEMASPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    db_path: str = MEMORY_PATH
    snapshot_suffix: str = ".model.json"
    timeout: float = Field(default=5.0, gt=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @property
    def in_memory(self) -> bool:
        return self.db_path == MEMORY_PATH

    @property
    def snapshot_key(self) -> str:
        """Key under which the schema snapshot is persisted."""
        return f"{self.db_path}{self.snapshot_suffix}"
