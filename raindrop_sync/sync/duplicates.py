"""Remove bookmarks that share a normalized URL within one folder."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from raindrop_sync.adapters.bookmarks.models import LocalBookmark
from raindrop_sync.core.url_utils import normalize_url

if TYPE_CHECKING:
    from raindrop_sync.adapters.bookmarks.protocols import LocalBookmarkStore
    from raindrop_sync.sync.mapping import MappingStore

logger = logging.getLogger(__name__)


def group_duplicates(bookmarks: list[LocalBookmark]) -> dict[str, list[LocalBookmark]]:
    """Group bookmarks by normalized URL, keeping only groups of two or more."""
    groups: dict[str, list[LocalBookmark]] = defaultdict(list)
    for bookmark in sorted(bookmarks, key=lambda b: b.position):
        key = normalize_url(bookmark.url)
        if key:
            groups[key].append(bookmark)
    return {key: group for key, group in groups.items() if len(group) > 1}


def choose_survivor(group: list[LocalBookmark], mapping: MappingStore) -> LocalBookmark:
    """Keep the first mapped bookmark, else the first one by position."""
    for bookmark in group:
        if mapping.item_for(bookmark.id) is not None:
            return bookmark
    return group[0]


async def prune_duplicates(
    store: LocalBookmarkStore,
    mapping: MappingStore,
    folder_id: str,
    *,
    correlation_id: str | None = None,
) -> int:
    """Delete all but one bookmark per normalized URL in ``folder_id``."""
    children = await store.get_children(folder_id)
    bookmarks = [child for child in children if isinstance(child, LocalBookmark)]

    removed = 0
    for key, group in group_duplicates(bookmarks).items():
        survivor = choose_survivor(group, mapping)
        for bookmark in group:
            if bookmark.id == survivor.id:
                continue
            await store.remove(bookmark.id)
            mapping.forget_bookmark(bookmark.id)
            removed += 1
        logger.debug(
            "duplicate_bookmarks_pruned",
            extra={
                "correlation_id": correlation_id,
                "folder_id": folder_id,
                "url": key[:100],
                "kept": survivor.id,
                "removed": len(group) - 1,
            },
        )

    if removed:
        logger.info(
            "duplicates_removed",
            extra={"correlation_id": correlation_id, "folder_id": folder_id, "count": removed},
        )
    return removed
