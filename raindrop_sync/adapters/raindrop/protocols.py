"""Protocol definitions (ports) for the Raindrop API.

The sync engine depends on these rather than on the HTTP client so tests can
substitute an in-memory fake.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from raindrop_sync.adapters.raindrop.models import RemoteCollection, RemoteItem


class RaindropClientProtocol(Protocol):
    async def get_root_collections(self) -> list[RemoteCollection]: ...

    async def get_child_collections(self) -> list[RemoteCollection]: ...

    async def get_items(self, collection_id: int) -> list[RemoteItem]: ...

    async def create_item(
        self, collection_id: int, *, url: str, title: str | None
    ) -> RemoteItem: ...

    async def delete_item(self, item_id: int) -> None: ...


class RaindropClientFactory(Protocol):
    def __call__(
        self, api_url: str, access_token: str, *, rpm: int
    ) -> AbstractAsyncContextManager[RaindropClientProtocol]: ...
