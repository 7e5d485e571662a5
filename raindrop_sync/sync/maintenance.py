"""User-triggered maintenance: duplicate cleanup and removing synced bookmarks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from raindrop_sync.adapters.bookmarks.models import LocalFolder, LocalStoreError
from raindrop_sync.sync.duplicates import prune_duplicates

if TYPE_CHECKING:
    from raindrop_sync.adapters.bookmarks.protocols import LocalBookmarkStore
    from raindrop_sync.sync.mapping import MappingStore

logger = logging.getLogger(__name__)


@dataclass
class ClearResult:
    bookmarks_removed: int = 0
    folders_removed: int = 0


async def _walk_folders(store: LocalBookmarkStore, root_id: str) -> list[str]:
    folders = [root_id]
    pending = [root_id]
    while pending:
        for child in await store.get_children(pending.pop()):
            if isinstance(child, LocalFolder):
                folders.append(child.id)
                pending.append(child.id)
    return folders


async def cleanup_all_duplicates(
    store: LocalBookmarkStore,
    mapping: MappingStore,
    root_id: str,
    *,
    correlation_id: str | None = None,
) -> int:
    """Prune same-URL bookmarks in ``root_id`` and every folder beneath it."""
    removed = 0
    for folder_id in await _walk_folders(store, root_id):
        removed += await prune_duplicates(store, mapping, folder_id, correlation_id=correlation_id)
    logger.info(
        "duplicate_cleanup_complete",
        extra={"correlation_id": correlation_id, "root_folder_id": root_id, "removed": removed},
    )
    return removed


async def clear_all_synced_bookmarks(
    store: LocalBookmarkStore,
    mapping: MappingStore,
    *,
    correlation_id: str | None = None,
) -> ClearResult:
    """Delete every mapped bookmark, then every mapped folder left empty.

    Folders still holding unsynced bookmarks are kept. Both maps are cleared.
    """
    result = ClearResult()

    for _, bookmark_id in mapping.item_entries():
        node = await store.get_node(bookmark_id)
        if node is None or node.is_folder:
            continue
        await store.remove(bookmark_id)
        result.bookmarks_removed += 1

    remaining = [folder_id for _, folder_id in mapping.collection_entries()]
    # Nested collection folders empty out only after their children go.
    progress = True
    while remaining and progress:
        progress = False
        for folder_id in list(remaining):
            node = await store.get_node(folder_id)
            if node is None or not node.is_folder:
                remaining.remove(folder_id)
                continue
            if await store.get_children(folder_id):
                continue
            try:
                await store.remove(folder_id)
            except LocalStoreError as exc:
                logger.warning(
                    "synced_folder_remove_failed",
                    extra={"correlation_id": correlation_id, "folder_id": folder_id, "error": str(exc)},
                )
            else:
                result.folders_removed += 1
                progress = True
            remaining.remove(folder_id)

    mapping.clear()
    logger.info(
        "synced_bookmarks_cleared",
        extra={
            "correlation_id": correlation_id,
            "bookmarks_removed": result.bookmarks_removed,
            "folders_removed": result.folders_removed,
            "folders_kept": len(remaining),
        },
    )
    return result
