"""Durable identity maps between remote ids and local bookmark-node ids.

Two maps are kept: collection id -> folder id, and item id -> bookmark id. Both
are loaded at cycle start, pruned against the live local tree, mutated in memory
and written back together in a single transaction at cycle end. Items whose
bookmark was deleted locally are written alongside them until a mirror pass has
handled the remote side.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Collection, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from raindrop_sync.adapters.bookmarks.models import LocalNode
    from raindrop_sync.db.session import DatabaseSessionManager

logger = logging.getLogger(__name__)

COLLECTION_MAP_KEY = "raindrop_collection_folder_map"
ITEM_MAP_KEY = "raindrop_item_bookmark_map"
LOCAL_DELETES_KEY = "raindrop_locally_deleted_items"

NodeLookup = Callable[[str], Awaitable["LocalNode | None"]]


@dataclass
class CleanupReport:
    removed_collections: dict[int, str] = field(default_factory=dict)
    removed_items: dict[int, str] = field(default_factory=dict)
    # Subset of removed_items whose bookmark no longer exists at all.
    locally_deleted_items: dict[int, str] = field(default_factory=dict)

    @property
    def removed(self) -> int:
        return len(self.removed_collections) + len(self.removed_items)


def _decode(raw: Any, *, key: str) -> dict[int, str]:
    # JSON object keys are strings; remote ids are ints
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning("mapping_payload_invalid", extra={"key": key, "type": type(raw).__name__})
        return {}
    decoded: dict[int, str] = {}
    for remote_id, local_id in raw.items():
        try:
            decoded[int(remote_id)] = str(local_id)
        except (TypeError, ValueError):
            logger.warning("mapping_entry_invalid", extra={"key": key, "remote_id": remote_id})
    return decoded


class _BiMap:
    """int -> str map that keeps values unique and offers reverse lookup."""

    def __init__(self, data: Mapping[int, str] | None = None) -> None:
        self._forward: dict[int, str] = {}
        self._reverse: dict[str, int] = {}
        for remote_id, local_id in (data or {}).items():
            self.set(remote_id, local_id)

    def get(self, remote_id: int) -> str | None:
        return self._forward.get(remote_id)

    def key_for(self, local_id: str) -> int | None:
        return self._reverse.get(local_id)

    def set(self, remote_id: int, local_id: str) -> None:
        previous_local = self._forward.get(remote_id)
        if previous_local is not None:
            self._reverse.pop(previous_local, None)
        previous_remote = self._reverse.get(local_id)
        if previous_remote is not None and previous_remote != remote_id:
            self._forward.pop(previous_remote, None)
        self._forward[remote_id] = local_id
        self._reverse[local_id] = remote_id

    def remove(self, remote_id: int) -> str | None:
        local_id = self._forward.pop(remote_id, None)
        if local_id is not None:
            self._reverse.pop(local_id, None)
        return local_id

    def items(self) -> list[tuple[int, str]]:
        return list(self._forward.items())

    def to_json(self) -> dict[str, str]:
        return {str(remote_id): local_id for remote_id, local_id in self._forward.items()}

    def __contains__(self, remote_id: object) -> bool:
        return remote_id in self._forward

    def __len__(self) -> int:
        return len(self._forward)


class MappingStore:
    """Identity maps backed by the key-value table."""

    def __init__(self, db: DatabaseSessionManager) -> None:
        self._db = db
        self._collections = _BiMap()
        self._items = _BiMap()
        self.locally_deleted_items: dict[int, str] = {}

    def load(self) -> None:
        self._collections = _BiMap(
            _decode(self._db.kv_get(COLLECTION_MAP_KEY), key=COLLECTION_MAP_KEY)
        )
        self._items = _BiMap(_decode(self._db.kv_get(ITEM_MAP_KEY), key=ITEM_MAP_KEY))
        self.locally_deleted_items = _decode(
            self._db.kv_get(LOCAL_DELETES_KEY), key=LOCAL_DELETES_KEY
        )
        logger.debug(
            "mapping_loaded",
            extra={
                "collections": len(self._collections),
                "items": len(self._items),
                "locally_deleted": len(self.locally_deleted_items),
            },
        )

    async def cleanup(self, lookup: NodeLookup) -> CleanupReport:
        """Drop entries whose local node is gone or has the wrong kind.

        A collection must map to a live folder and an item to a live bookmark.
        Item entries dropped because the bookmark vanished are added to
        ``locally_deleted_items``, which survives ``persist`` until the item is
        deleted remotely, relinked or mapped again.
        """
        report = CleanupReport()

        for collection_id, folder_id in self._collections.items():
            node = await lookup(folder_id)
            if node is None or not node.is_folder:
                self._collections.remove(collection_id)
                report.removed_collections[collection_id] = folder_id

        for item_id, bookmark_id in self._items.items():
            node = await lookup(bookmark_id)
            if node is None:
                self._items.remove(item_id)
                report.removed_items[item_id] = bookmark_id
                report.locally_deleted_items[item_id] = bookmark_id
            elif node.is_folder:
                self._items.remove(item_id)
                report.removed_items[item_id] = bookmark_id

        self.locally_deleted_items.update(report.locally_deleted_items)
        if report.removed:
            logger.debug(
                "mapping_cleanup_removed",
                extra={
                    "collections": len(report.removed_collections),
                    "items": len(report.removed_items),
                    "locally_deleted": len(report.locally_deleted_items),
                },
            )
        return report

    # -- collections ------------------------------------------------------

    def folder_for(self, collection_id: int) -> str | None:
        return self._collections.get(collection_id)

    def collection_for(self, folder_id: str) -> int | None:
        return self._collections.key_for(folder_id)

    def set_folder(self, collection_id: int, folder_id: str) -> None:
        self._collections.set(collection_id, folder_id)

    def remove_folder(self, collection_id: int) -> str | None:
        return self._collections.remove(collection_id)

    def collection_entries(self) -> list[tuple[int, str]]:
        return self._collections.items()

    # -- items ------------------------------------------------------------

    def bookmark_for(self, item_id: int) -> str | None:
        return self._items.get(item_id)

    def item_for(self, bookmark_id: str) -> int | None:
        return self._items.key_for(bookmark_id)

    def set_bookmark(self, item_id: int, bookmark_id: str) -> None:
        self._items.set(item_id, bookmark_id)
        self.locally_deleted_items.pop(item_id, None)

    def remove_item(self, item_id: int) -> str | None:
        return self._items.remove(item_id)

    def forget_bookmark(self, bookmark_id: str) -> int | None:
        item_id = self._items.key_for(bookmark_id)
        if item_id is not None:
            self._items.remove(item_id)
        return item_id

    def item_entries(self) -> list[tuple[int, str]]:
        return self._items.items()

    def retain_local_deletes(self, live_item_ids: Collection[int]) -> None:
        """Forget deletion markers for items that no longer exist remotely."""
        stale = [item_id for item_id in self.locally_deleted_items if item_id not in live_item_ids]
        for item_id in stale:
            del self.locally_deleted_items[item_id]
        if stale:
            logger.debug("mapping_local_deletes_dropped", extra={"items": len(stale)})

    def clear(self) -> None:
        self._collections = _BiMap()
        self._items = _BiMap()
        self.locally_deleted_items = {}

    def persist(self) -> None:
        """Write both maps and the pending local deletions in one transaction."""
        self._db.kv_set_many(
            {
                COLLECTION_MAP_KEY: self._collections.to_json(),
                ITEM_MAP_KEY: self._items.to_json(),
                LOCAL_DELETES_KEY: {
                    str(item_id): bookmark_id
                    for item_id, bookmark_id in self.locally_deleted_items.items()
                },
            }
        )
        logger.debug(
            "mapping_persisted",
            extra={
                "collections": len(self._collections),
                "items": len(self._items),
                "locally_deleted": len(self.locally_deleted_items),
            },
        )
