"""In-process bookmark tree used directly in tests and as the base for file-backed stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from raindrop_sync.adapters.bookmarks.models import (
    LocalBookmark,
    LocalFolder,
    LocalNode,
    LocalStoreError,
)
from raindrop_sync.core.time_utils import utc_now

logger = logging.getLogger(__name__)

ROOT_ID = "0"
DEFAULT_ROOT_FOLDERS = (("1", "Bookmarks bar"), ("2", "Other bookmarks"), ("3", "Mobile bookmarks"))


@dataclass
class _Node:
    id: str
    title: str
    parent_id: str | None
    url: str | None = None
    date_added: datetime | None = None
    children: list[str] = field(default_factory=list)
    # Store-specific attributes carried through untouched (guid, meta_info, ...).
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_folder(self) -> bool:
        return self.url is None


class InMemoryBookmarkStore:
    """Ordered bookmark tree with the same id/position semantics as a browser store.

    ``move`` places the node at the requested final index of the destination
    parent, clamped to the parent's length.
    """

    def __init__(self, *, with_default_roots: bool = True) -> None:
        self._nodes: dict[str, _Node] = {ROOT_ID: _Node(id=ROOT_ID, title="", parent_id=None)}
        self._next_id = 1
        if with_default_roots:
            for folder_id, title in DEFAULT_ROOT_FOLDERS:
                self._insert(_Node(id=folder_id, title=title, parent_id=ROOT_ID), None)

    # -- internal helpers -------------------------------------------------

    def _allocate_id(self) -> str:
        while str(self._next_id) in self._nodes:
            self._next_id += 1
        node_id = str(self._next_id)
        self._next_id += 1
        return node_id

    def _insert(self, node: _Node, index: int | None) -> None:
        if node.parent_id is None:
            raise LocalStoreError("Only the root may have no parent")
        parent = self._require(node.parent_id)
        if not parent.is_folder:
            raise LocalStoreError(f"Parent {node.parent_id} is not a folder")
        self._nodes[node.id] = node
        siblings = parent.children
        if index is None or index >= len(siblings):
            siblings.append(node.id)
        else:
            siblings.insert(max(0, index), node.id)

    def _require(self, node_id: str) -> _Node:
        node = self._nodes.get(node_id)
        if node is None:
            raise LocalStoreError(f"Bookmark node {node_id} does not exist")
        return node

    def _position(self, node: _Node) -> int:
        if node.parent_id is None:
            return 0
        return self._nodes[node.parent_id].children.index(node.id)

    def _snapshot(self, node: _Node) -> LocalNode:
        position = self._position(node)
        if node.is_folder:
            return LocalFolder(
                id=node.id, title=node.title, parent_id=node.parent_id, position=position
            )
        return LocalBookmark(
            id=node.id,
            title=node.title,
            url=node.url or "",
            parent_id=node.parent_id,
            position=position,
            date_added=node.date_added,
        )

    def _walk(self, node_id: str) -> list[_Node]:
        node = self._nodes[node_id]
        result = [node]
        for child_id in node.children:
            result.extend(self._walk(child_id))
        return result

    def _guard_root(self, node_id: str) -> None:
        node = self._require(node_id)
        if node.parent_id is None or node.parent_id == ROOT_ID:
            raise LocalStoreError(f"Node {node_id} is a permanent root folder")

    # -- LocalBookmarkStore -------------------------------------------------

    async def get_tree(self) -> list[LocalNode]:
        return [self._snapshot(node) for node in self._walk(ROOT_ID)[1:]]

    async def get_node(self, node_id: str) -> LocalNode | None:
        node = self._nodes.get(node_id)
        if node is None or node.parent_id is None:
            return None
        return self._snapshot(node)

    async def get_children(self, folder_id: str) -> list[LocalNode]:
        folder = self._require(folder_id)
        if not folder.is_folder:
            raise LocalStoreError(f"Node {folder_id} is not a folder")
        return [self._snapshot(self._nodes[child_id]) for child_id in folder.children]

    async def create(
        self,
        parent_id: str,
        title: str,
        url: str | None = None,
        index: int | None = None,
    ) -> LocalNode:
        node = _Node(
            id=self._allocate_id(),
            title=title,
            parent_id=parent_id,
            url=url,
            date_added=utc_now(),
        )
        self._insert(node, index)
        return self._snapshot(node)

    async def update(self, node_id: str, *, title: str) -> LocalNode:
        self._guard_root(node_id)
        node = self._require(node_id)
        node.title = title
        return self._snapshot(node)

    async def move(
        self, node_id: str, *, parent_id: str | None = None, index: int | None = None
    ) -> LocalNode:
        self._guard_root(node_id)
        node = self._require(node_id)
        source_id = node.parent_id
        if source_id is None:
            raise LocalStoreError(f"Bookmark node {node_id} has no parent")
        destination = parent_id or source_id
        if node.is_folder and any(n.id == destination for n in self._walk(node_id)):
            raise LocalStoreError(f"Cannot move folder {node_id} into its own subtree")

        old_parent = self._nodes[source_id]
        old_index = old_parent.children.index(node_id)
        old_parent.children.remove(node_id)
        node.parent_id = destination
        try:
            self._insert(node, index)
        except LocalStoreError:
            node.parent_id = source_id
            old_parent.children.insert(old_index, node_id)
            raise
        return self._snapshot(node)

    async def remove(self, node_id: str) -> None:
        self._guard_root(node_id)
        node = self._require(node_id)
        if node.is_folder and node.children:
            raise LocalStoreError(f"Folder {node_id} is not empty")
        self._nodes[node.parent_id].children.remove(node_id)  # type: ignore[index]
        del self._nodes[node_id]

    async def remove_tree(self, node_id: str) -> None:
        self._guard_root(node_id)
        node = self._require(node_id)
        for descendant in self._walk(node_id):
            self._nodes.pop(descendant.id, None)
        self._nodes[node.parent_id].children.remove(node_id)  # type: ignore[index]

    async def reload(self) -> None:
        return None

    async def flush(self) -> None:
        return None
