"""Per-folder reconciliation between one remote collection and its local folder.

Passes run in a fixed order: remote deletion of locally removed bookmarks,
local deletion of remotely removed items, creation (batched), duplicate pruning,
upload of local-only bookmarks, and finally reordering. Which passes run is
decided by the mode policy.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from raindrop_sync.adapters.bookmarks.models import LocalBookmark
from raindrop_sync.adapters.raindrop.errors import RaindropAuthError
from raindrop_sync.core.sync_enums import BookmarkSort
from raindrop_sync.core.url_utils import normalize_url
from raindrop_sync.sync.constants import DEFAULT_BATCH_SIZE, UPLOADABLE_SCHEMES
from raindrop_sync.sync.duplicates import prune_duplicates
from raindrop_sync.sync.ordering import OrderingService
from raindrop_sync.sync.results import BulkResult, FolderSyncResult

if TYPE_CHECKING:
    from datetime import datetime

    from raindrop_sync.adapters.bookmarks.protocols import LocalBookmarkStore
    from raindrop_sync.adapters.raindrop.models import RemoteCollection, RemoteItem
    from raindrop_sync.adapters.raindrop.protocols import RaindropClientProtocol
    from raindrop_sync.sync.mapping import MappingStore
    from raindrop_sync.sync.policy import ModePolicy

logger = logging.getLogger(__name__)


def _bookmarks(children: Sequence[object]) -> list[LocalBookmark]:
    return [child for child in children if isinstance(child, LocalBookmark)]


def _is_uploadable(url: str) -> bool:
    scheme, _, _ = url.partition(":")
    return scheme.lower() in UPLOADABLE_SCHEMES


class Reconciler:
    """Reconcile one collection's items with one local folder."""

    def __init__(
        self,
        client: RaindropClientProtocol,
        store: LocalBookmarkStore,
        mapping: MappingStore,
        policy: ModePolicy,
        *,
        bookmarks_sort: BookmarkSort = BookmarkSort.NONE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        correlation_id: str | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._mapping = mapping
        self._policy = policy
        self._bookmarks_sort = BookmarkSort(bookmarks_sort)
        self._batch_size = max(1, batch_size)
        self._cid = correlation_id
        self._ordering = OrderingService(store, correlation_id=correlation_id)

    async def reconcile(
        self,
        collection: RemoteCollection,
        folder_id: str,
        items: Sequence[RemoteItem],
    ) -> FolderSyncResult:
        result = FolderSyncResult(collection_id=collection.id, folder_id=folder_id)
        remote_by_id: dict[int, RemoteItem] = {item.id: item for item in items}

        if self._policy.delete_remote_on_local_delete:
            await self._propagate_local_deletions(folder_id, remote_by_id, result)

        remote = list(remote_by_id.values())
        remote_by_url: dict[str, RemoteItem] = {}
        for item in remote:
            key = normalize_url(item.url)
            if key and key not in remote_by_url:
                remote_by_url[key] = item

        if self._policy.delete_local_on_remote_delete:
            await self._apply_remote_deletions(folder_id, remote_by_id, remote_by_url, result)

        if self._policy.create_local:
            await self._create_missing(folder_id, remote, result)
            result.duplicates_removed += await prune_duplicates(
                self._store, self._mapping, folder_id, correlation_id=self._cid
            )

        if self._policy.create_remote:
            await self._upload_local_only(collection, folder_id, remote_by_id, remote_by_url, result)

        if self._policy.reorder and self._bookmarks_sort is not BookmarkSort.NONE:
            result.moved += await self._ordering.reorder_bookmarks(
                folder_id, self._bookmarks_sort, self._created_at_lookup(remote_by_id)
            )

        logger.info(
            "folder_reconciled",
            extra={
                "correlation_id": self._cid,
                "collection_id": collection.id,
                "folder_id": folder_id,
                "remote_items": len(items),
                "created_local": result.created_local,
                "linked_existing": result.linked_existing,
                "updated_titles": result.updated_titles,
                "deleted_local": result.deleted_local,
                "deleted_remote": result.deleted_remote,
                "relinked": result.relinked,
                "duplicates_removed": result.duplicates_removed,
                "uploaded": result.uploaded,
                "moved": result.moved,
                "failed": result.failed,
            },
        )
        return result

    # -- pass: local deletions -> remote ----------------------------------

    async def _propagate_local_deletions(
        self, folder_id: str, remote_by_id: dict[int, RemoteItem], result: FolderSyncResult
    ) -> None:
        pending = [i for i in self._mapping.locally_deleted_items if i in remote_by_id]
        if not pending:
            return

        survivors: dict[str, LocalBookmark] = {}
        for bookmark in _bookmarks(await self._store.get_children(folder_id)):
            key = normalize_url(bookmark.url)
            if key and key not in survivors and self._mapping.item_for(bookmark.id) is None:
                survivors[key] = bookmark

        for item_id in pending:
            survivor = survivors.pop(normalize_url(remote_by_id[item_id].url), None)
            if survivor is not None:
                # another bookmark for the same page is still here
                self._mapping.set_bookmark(item_id, survivor.id)
                self._mapping.locally_deleted_items.pop(item_id, None)
                result.relinked += 1
                continue

            # the item is never recreated locally, whether or not the delete lands
            remote_by_id.pop(item_id)
            try:
                await self._client.delete_item(item_id)
            except RaindropAuthError:
                raise
            except Exception as exc:
                result.failed += 1
                result.errors.append(f"Failed to delete remote item {item_id}: {exc}")
                logger.warning(
                    "remote_delete_failed",
                    extra={"correlation_id": self._cid, "item_id": item_id, "error": str(exc)},
                )
                continue
            self._mapping.locally_deleted_items.pop(item_id, None)
            result.deleted_remote += 1

    # -- pass: remote deletions -> local ----------------------------------

    async def _apply_remote_deletions(
        self,
        folder_id: str,
        remote_by_id: dict[int, RemoteItem],
        remote_by_url: dict[str, RemoteItem],
        result: FolderSyncResult,
    ) -> None:
        for bookmark in _bookmarks(await self._store.get_children(folder_id)):
            item_id = self._mapping.item_for(bookmark.id)
            if item_id is None or item_id in remote_by_id:
                continue

            replacement = remote_by_url.get(normalize_url(bookmark.url))
            if replacement is not None and self._mapping.bookmark_for(replacement.id) is None:
                self._mapping.set_bookmark(replacement.id, bookmark.id)
                result.relinked += 1
                logger.info(
                    "bookmark_relinked",
                    extra={
                        "correlation_id": self._cid,
                        "bookmark_id": bookmark.id,
                        "old_item_id": item_id,
                        "item_id": replacement.id,
                    },
                )
                continue

            try:
                await self._store.remove(bookmark.id)
            except Exception as exc:
                result.failed += 1
                result.errors.append(f"Failed to remove bookmark {bookmark.id}: {exc}")
                logger.warning(
                    "local_delete_failed",
                    extra={"correlation_id": self._cid, "bookmark_id": bookmark.id, "error": str(exc)},
                )
                continue
            self._mapping.remove_item(item_id)
            result.deleted_local += 1

    # -- pass: remote additions -> local ----------------------------------

    async def _create_missing(
        self, folder_id: str, remote: Sequence[RemoteItem], result: FolderSyncResult
    ) -> None:
        local = _bookmarks(await self._store.get_children(folder_id))
        local_by_id = {bookmark.id: bookmark for bookmark in local}
        unmapped_by_url: dict[str, list[LocalBookmark]] = {}
        seen_urls: set[str] = set()
        for bookmark in local:
            key = normalize_url(bookmark.url)
            if not key:
                continue
            seen_urls.add(key)
            if self._mapping.item_for(bookmark.id) is None:
                unmapped_by_url.setdefault(key, []).append(bookmark)

        to_create: list[RemoteItem] = []
        for item in remote:
            bookmark_id = self._mapping.bookmark_for(item.id)
            if bookmark_id is not None:
                mapped = local_by_id.get(bookmark_id)
                if (
                    mapped is not None
                    and self._policy.update_titles
                    and item.title
                    and mapped.title != item.title
                ):
                    await self._store.update(bookmark_id, title=item.title)
                    result.updated_titles += 1
                continue

            key = normalize_url(item.url)
            if not key:
                continue
            candidates = unmapped_by_url.get(key)
            if candidates:
                existing = candidates.pop(0)
                self._mapping.set_bookmark(item.id, existing.id)
                result.linked_existing += 1
                continue
            if key in seen_urls:
                continue
            seen_urls.add(key)
            to_create.append(item)

        if not to_create:
            return

        bulk = await self._create_in_batches(folder_id, to_create)
        for item, node_id in bulk.succeeded:
            self._mapping.set_bookmark(item.id, node_id)
        result.created_local += len(bulk.succeeded)
        result.failed += len(bulk.failed)
        result.errors.extend(f"Failed to create bookmark for item {item.id}: {error}" for item, error in bulk.failed)

    async def _create_one(self, folder_id: str, item: RemoteItem) -> str:
        node = await self._store.create(folder_id, item.title or item.url, item.url)
        return node.id

    async def _create_in_batches(self, folder_id: str, items: Sequence[RemoteItem]) -> BulkResult:
        """Create bookmarks concurrently per batch; retry failures one by one."""
        bulk = BulkResult()
        for start in range(0, len(items), self._batch_size):
            chunk = items[start : start + self._batch_size]
            outcomes = await asyncio.gather(
                *(self._create_one(folder_id, item) for item in chunk),
                return_exceptions=True,
            )

            retry: list[RemoteItem] = []
            for item, outcome in zip(chunk, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    retry.append(item)
                else:
                    bulk.succeeded.append((item, outcome))

            if not retry:
                continue

            bulk.fallback_used = True
            logger.warning(
                "bookmark_batch_partial_failure",
                extra={
                    "correlation_id": self._cid,
                    "folder_id": folder_id,
                    "batch_size": len(chunk),
                    "failed": len(retry),
                },
            )
            for item in retry:
                try:
                    bulk.succeeded.append((item, await self._create_one(folder_id, item)))
                except Exception as exc:
                    bulk.failed.append((item, str(exc)))
                    logger.warning(
                        "bookmark_create_failed",
                        extra={"correlation_id": self._cid, "item_id": item.id, "error": str(exc)},
                    )
        return bulk

    # -- pass: local additions -> remote ----------------------------------

    async def _upload_local_only(
        self,
        collection: RemoteCollection,
        folder_id: str,
        remote_by_id: dict[int, RemoteItem],
        remote_by_url: dict[str, RemoteItem],
        result: FolderSyncResult,
    ) -> None:
        for bookmark in _bookmarks(await self._store.get_children(folder_id)):
            if self._mapping.item_for(bookmark.id) is not None:
                continue
            key = normalize_url(bookmark.url)
            if not key or key in remote_by_url:
                continue
            if not _is_uploadable(bookmark.url):
                logger.debug(
                    "bookmark_upload_skipped_scheme",
                    extra={"correlation_id": self._cid, "bookmark_id": bookmark.id},
                )
                continue
            try:
                item = await self._client.create_item(
                    collection.id, url=bookmark.url, title=bookmark.title
                )
            except RaindropAuthError:
                raise
            except Exception as exc:
                result.failed += 1
                result.errors.append(f"Failed to upload bookmark {bookmark.id}: {exc}")
                logger.warning(
                    "bookmark_upload_failed",
                    extra={"correlation_id": self._cid, "bookmark_id": bookmark.id, "error": str(exc)},
                )
                continue
            self._mapping.set_bookmark(item.id, bookmark.id)
            remote_by_id[item.id] = item
            remote_by_url[key] = item
            result.uploaded += 1

    # -- helpers ------------------------------------------------------------

    def _created_at_lookup(self, remote_by_id: dict[int, RemoteItem]):
        def created_at(bookmark: LocalBookmark) -> datetime | None:
            item_id = self._mapping.item_for(bookmark.id)
            item = remote_by_id.get(item_id) if item_id is not None else None
            if item is not None and item.created_at is not None:
                return item.created_at
            return bookmark.date_added

        return created_at
