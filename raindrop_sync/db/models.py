"""Peewee ORM models for the local state database."""

from __future__ import annotations

import datetime as _dt
from typing import Any

import peewee
from playhouse.sqlite_ext import JSONField

from raindrop_sync.core.time_utils import UTC

# A proxy that will be initialised with the concrete database instance at runtime.
database_proxy: peewee.Database = peewee.DatabaseProxy()


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(UTC)


class BaseModel(peewee.Model):
    """Base Peewee model bound to the lazily initialised database proxy."""

    def save(self, *args: Any, **kwargs: Any) -> int:
        if hasattr(self, "updated_at"):
            self.updated_at = _utcnow()
        return super().save(*args, **kwargs)

    class Meta:
        database = database_proxy
        legacy_table_names = False


class KeyValueEntry(BaseModel):
    """Durable key-value state: identity maps and stored credentials."""

    key = peewee.TextField(primary_key=True)
    value = JSONField(null=True)
    updated_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "kv_store"


class SyncHistoryEntry(BaseModel):
    id = peewee.AutoField()
    created_at = peewee.DateTimeField(default=_utcnow)
    status = peewee.TextField()  # success | partial | error | aborted
    details = peewee.TextField(null=True)
    correlation_id = peewee.TextField(null=True)
    counters_json = JSONField(null=True)

    class Meta:
        table_name = "sync_history"
        indexes = ((("created_at",), False),)


ALL_MODELS = (KeyValueEntry, SyncHistoryEntry)
