"""Port for the host bookmark store.

Each call is atomic from the caller's point of view. Ids are opaque strings and
``position`` is unique within a parent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from raindrop_sync.adapters.bookmarks.models import LocalNode


class LocalBookmarkStore(Protocol):
    async def get_tree(self) -> list[LocalNode]: ...

    async def get_node(self, node_id: str) -> LocalNode | None: ...

    async def get_children(self, folder_id: str) -> list[LocalNode]: ...

    async def create(
        self,
        parent_id: str,
        title: str,
        url: str | None = None,
        index: int | None = None,
    ) -> LocalNode: ...

    async def update(self, node_id: str, *, title: str) -> LocalNode: ...

    async def move(
        self, node_id: str, *, parent_id: str | None = None, index: int | None = None
    ) -> LocalNode: ...

    async def remove(self, node_id: str) -> None: ...

    async def remove_tree(self, node_id: str) -> None: ...

    async def reload(self) -> None:
        """Pick up changes made to the backing store outside this process."""
        ...

    async def flush(self) -> None: ...
