"""Reorder bookmarks and collection folders inside their parent folders."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from raindrop_sync.adapters.bookmarks.models import LocalBookmark
from raindrop_sync.core.sync_enums import BookmarkSort
from raindrop_sync.core.text_utils import title_sort_key
from raindrop_sync.core.time_utils import UTC, ensure_aware
from raindrop_sync.core.url_utils import url_domain

if TYPE_CHECKING:
    from raindrop_sync.adapters.bookmarks.protocols import LocalBookmarkStore

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

CreatedAtLookup = Callable[[LocalBookmark], "datetime | None"]


def sort_bookmarks(
    bookmarks: Sequence[LocalBookmark],
    sort: BookmarkSort,
    created_at: CreatedAtLookup | None = None,
) -> list[LocalBookmark]:
    """Return ``bookmarks`` in the requested order; ``NONE`` keeps current order."""
    sort = BookmarkSort(sort)
    items = list(bookmarks)
    if sort is BookmarkSort.NONE:
        return items

    def created(bookmark: LocalBookmark) -> datetime:
        value = created_at(bookmark) if created_at is not None else bookmark.date_added
        return ensure_aware(value) or _EPOCH

    def title_key(bookmark: LocalBookmark) -> tuple[str, str, str]:
        return (title_sort_key(bookmark.title), bookmark.url, bookmark.id)

    if sort is BookmarkSort.CREATED_DESC:
        return sorted(items, key=lambda b: (-created(b).timestamp(), title_key(b)))
    if sort is BookmarkSort.CREATED_ASC:
        return sorted(items, key=lambda b: (created(b).timestamp(), title_key(b)))
    if sort is BookmarkSort.ALPHA_ASC:
        return sorted(items, key=title_key)
    if sort is BookmarkSort.ALPHA_DESC:
        return sorted(items, key=title_key, reverse=True)
    return sorted(items, key=lambda b: (url_domain(b.url), *title_key(b)))


class OrderingService:
    """Move nodes so a set of siblings appears in a target order.

    The set is laid out contiguously from the lowest position any of its members
    currently holds. Nodes already in place are not touched, so an ordered
    folder costs no moves.
    """

    def __init__(self, store: LocalBookmarkStore, *, correlation_id: str | None = None) -> None:
        self._store = store
        self._cid = correlation_id

    async def apply_order(self, parent_id: str, ordered_ids: Sequence[str]) -> int:
        if len(ordered_ids) < 2:
            return 0

        children = await self._store.get_children(parent_id)
        wanted = set(ordered_ids)
        current = [child.id for child in children]
        start = min(index for index, node_id in enumerate(current) if node_id in wanted)

        moved = 0
        for offset, node_id in enumerate(ordered_ids):
            target = start + offset
            if current.index(node_id) == target:
                continue
            await self._store.move(node_id, parent_id=parent_id, index=target)
            current.remove(node_id)
            current.insert(target, node_id)
            moved += 1

        if moved:
            logger.info(
                "folder_reordered",
                extra={"correlation_id": self._cid, "parent_folder_id": parent_id, "moved": moved},
            )
        return moved

    async def reorder_bookmarks(
        self,
        folder_id: str,
        sort: BookmarkSort,
        created_at: CreatedAtLookup | None = None,
    ) -> int:
        if BookmarkSort(sort) is BookmarkSort.NONE:
            return 0
        children = await self._store.get_children(folder_id)
        bookmarks = [child for child in children if isinstance(child, LocalBookmark)]
        ordered = sort_bookmarks(bookmarks, sort, created_at)
        return await self.apply_order(folder_id, [b.id for b in ordered])

    async def reorder_folders(self, parent_id: str, ordered_folder_ids: Sequence[str]) -> int:
        children = await self._store.get_children(parent_id)
        present = {child.id for child in children if child.is_folder}
        return await self.apply_order(
            parent_id, [folder_id for folder_id in ordered_folder_ids if folder_id in present]
        )
