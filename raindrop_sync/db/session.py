"""Database session management for the sync state store.

Holds the SQLite connection, creates tables, and exposes the small key-value API
the mapping store and token store are built on.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from playhouse.sqlite_ext import SqliteExtDatabase

from raindrop_sync.db.models import ALL_MODELS, KeyValueEntry, _utcnow, database_proxy

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Own the SQLite database backing persisted sync state."""

    def __init__(self, path: str) -> None:
        self.path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._database = SqliteExtDatabase(
            path,
            pragmas={"journal_mode": "wal", "foreign_keys": 1},
        )
        database_proxy.initialize(self._database)

    @property
    def database(self) -> SqliteExtDatabase:
        return self._database

    def migrate(self) -> None:
        self._database.connect(reuse_if_open=True)
        self._database.create_tables(ALL_MODELS, safe=True)
        logger.debug("db_tables_ready", extra={"db_path": self.path})

    @contextlib.contextmanager
    def atomic(self) -> Iterator[None]:
        with self._database.atomic():
            yield

    def kv_get(self, key: str, default: Any = None) -> Any:
        entry = KeyValueEntry.get_or_none(KeyValueEntry.key == key)
        if entry is None or entry.value is None:
            return default
        return entry.value

    def kv_set_many(self, values: Mapping[str, Any]) -> None:
        """Write several keys in one transaction: either all land or none do."""
        now = _utcnow()
        with self._database.atomic():
            for key, value in values.items():
                (
                    KeyValueEntry.insert(key=key, value=value, updated_at=now)
                    .on_conflict(
                        conflict_target=[KeyValueEntry.key],
                        update={KeyValueEntry.value: value, KeyValueEntry.updated_at: now},
                    )
                    .execute()
                )

    def kv_delete(self, key: str) -> None:
        KeyValueEntry.delete().where(KeyValueEntry.key == key).execute()

    def close(self) -> None:
        if not self._database.is_closed():
            self._database.close()
