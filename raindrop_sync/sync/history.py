"""Bounded log of past sync cycles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from raindrop_sync.db.models import SyncHistoryEntry
from raindrop_sync.sync.constants import SYNC_HISTORY_LIMIT

if TYPE_CHECKING:
    from raindrop_sync.db.session import DatabaseSessionManager

logger = logging.getLogger(__name__)


class SyncHistory:
    """Keeps the newest ``limit`` cycle outcomes."""

    def __init__(self, db: DatabaseSessionManager, *, limit: int = SYNC_HISTORY_LIMIT) -> None:
        self._db = db
        self.limit = limit

    def record(
        self,
        status: str,
        *,
        details: str | None = None,
        correlation_id: str | None = None,
        counters: dict[str, Any] | None = None,
    ) -> SyncHistoryEntry:
        with self._db.atomic():
            entry = SyncHistoryEntry.create(
                status=status,
                details=details,
                correlation_id=correlation_id,
                counters_json=counters or {},
            )
            keep = (
                SyncHistoryEntry.select(SyncHistoryEntry.id)
                .order_by(SyncHistoryEntry.id.desc())
                .limit(self.limit)
            )
            pruned = SyncHistoryEntry.delete().where(SyncHistoryEntry.id.not_in(keep)).execute()
        if pruned:
            logger.debug("sync_history_pruned", extra={"removed": pruned})
        return entry

    def recent(self, limit: int | None = None) -> list[SyncHistoryEntry]:
        query = SyncHistoryEntry.select().order_by(SyncHistoryEntry.id.desc())
        return list(query.limit(limit or self.limit))

    def last(self) -> SyncHistoryEntry | None:
        return SyncHistoryEntry.select().order_by(SyncHistoryEntry.id.desc()).first()
