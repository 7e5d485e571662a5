"""Find or create the local folder that mirrors a remote collection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from raindrop_sync.adapters.bookmarks.protocols import LocalBookmarkStore
    from raindrop_sync.adapters.raindrop.models import RemoteCollection
    from raindrop_sync.sync.mapping import MappingStore
    from raindrop_sync.sync.policy import ModePolicy

logger = logging.getLogger(__name__)


def _same_title(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


class FolderResolver:
    """Resolve collection folders for one cycle.

    Lookup order: persisted mapping, folders created earlier in the cycle, an
    unclaimed same-titled child of the parent, then creation (unless the mode
    forbids creating folders). Among several same-titled candidates the one with
    the lowest position wins.
    """

    def __init__(
        self,
        store: LocalBookmarkStore,
        mapping: MappingStore,
        policy: ModePolicy,
        *,
        correlation_id: str | None = None,
    ) -> None:
        self._store = store
        self._mapping = mapping
        self._policy = policy
        self._cid = correlation_id
        self._created: dict[int, str] = {}
        self.folders_created = 0
        self.titles_updated = 0

    async def resolve(self, collection: RemoteCollection, parent_folder_id: str) -> str | None:
        title = collection.title or f"Collection {collection.id}"

        mapped = self._mapping.folder_for(collection.id)
        if mapped is not None:
            node = await self._store.get_node(mapped)
            if node is not None and node.is_folder:
                if self._policy.update_titles and node.title != title:
                    await self._store.update(mapped, title=title)
                    self.titles_updated += 1
                    logger.info(
                        "folder_title_updated",
                        extra={"correlation_id": self._cid, "collection_id": collection.id, "folder_id": mapped},
                    )
                return mapped
            self._mapping.remove_folder(collection.id)

        created = self._created.get(collection.id)
        if created is not None:
            self._mapping.set_folder(collection.id, created)
            return created

        children = await self._store.get_children(parent_folder_id)
        candidates = sorted(
            (
                child
                for child in children
                if child.is_folder
                and _same_title(child.title, title)
                and self._mapping.collection_for(child.id) is None
            ),
            key=lambda child: child.position,
        )
        if candidates:
            folder_id = candidates[0].id
            self._mapping.set_folder(collection.id, folder_id)
            logger.info(
                "folder_matched_by_title",
                extra={
                    "correlation_id": self._cid,
                    "collection_id": collection.id,
                    "folder_id": folder_id,
                    "candidates": len(candidates),
                },
            )
            return folder_id

        if not self._policy.create_folders:
            logger.debug(
                "folder_creation_not_allowed",
                extra={"correlation_id": self._cid, "collection_id": collection.id},
            )
            return None

        folder = await self._store.create(parent_folder_id, title)
        self._created[collection.id] = folder.id
        self._mapping.set_folder(collection.id, folder.id)
        self.folders_created += 1
        logger.info(
            "folder_created",
            extra={
                "correlation_id": self._cid,
                "collection_id": collection.id,
                "folder_id": folder.id,
                "parent_folder_id": parent_folder_id,
            },
        )
        return folder.id
