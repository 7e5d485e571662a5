"""Pytest configuration and shared fixtures.

Provides an in-memory Raindrop API double, a fresh bookmark tree, a temporary
state database and a config factory.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from raindrop_sync.adapters.bookmarks.memory import InMemoryBookmarkStore
from raindrop_sync.adapters.raindrop.errors import RaindropAuthError, RaindropNetworkError
from raindrop_sync.adapters.raindrop.models import RemoteCollection, RemoteItem
from raindrop_sync.config import AppConfig, RaindropConfig, RuntimeConfig, SyncConfig
from raindrop_sync.db.session import DatabaseSessionManager

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class FakeRaindropApi:
    """In-memory stand-in for RaindropClient that records every mutation."""

    def __init__(self) -> None:
        self.collections: dict[int, RemoteCollection] = {}
        self.items: dict[int, RemoteItem] = {}
        self._ids = itertools.count(1000)
        self._clock = itertools.count(1)
        self.created: list[RemoteItem] = []
        self.deleted: list[int] = []
        self.sessions = 0
        self.auth_error = False
        self.child_error: Exception | None = None
        self.items_error: dict[int, Exception] = {}

    # -- setup helpers ------------------------------------------------------

    def add_collection(
        self, collection_id: int, title: str, *, parent: int | None = None, sort: int = 0
    ) -> RemoteCollection:
        payload: dict[str, Any] = {"_id": collection_id, "title": title, "sort": sort}
        if parent is not None:
            payload["parent"] = {"$id": parent}
        collection = RemoteCollection.model_validate(payload)
        self.collections[collection_id] = collection
        return collection

    def add_item(
        self,
        collection_id: int,
        url: str,
        title: str = "",
        *,
        item_id: int | None = None,
        created: datetime | None = None,
    ) -> RemoteItem:
        item = RemoteItem(
            id=item_id if item_id is not None else next(self._ids),
            title=title,
            url=url,
            created_at=created or BASE_TIME + timedelta(minutes=next(self._clock)),
            collection_id=collection_id,
        )
        self.items[item.id] = item
        return item

    def remove_item(self, item_id: int) -> None:
        self.items.pop(item_id, None)

    def rename_item(self, item_id: int, title: str) -> None:
        self.items[item_id] = self.items[item_id].model_copy(update={"title": title})

    def items_in(self, collection_id: int) -> list[RemoteItem]:
        return [item for item in self.items.values() if item.collection_id == collection_id]

    @property
    def mutations(self) -> int:
        return len(self.created) + len(self.deleted)

    # -- RaindropClientProtocol -------------------------------------------

    async def get_root_collections(self) -> list[RemoteCollection]:
        if self.auth_error:
            raise RaindropAuthError("get_root_collections: credentials rejected")
        return [c for c in self.collections.values() if c.parent_id is None]

    async def get_child_collections(self) -> list[RemoteCollection]:
        if self.child_error is not None:
            raise self.child_error
        return [c for c in self.collections.values() if c.parent_id is not None]

    async def get_items(self, collection_id: int) -> list[RemoteItem]:
        if collection_id in self.items_error:
            raise self.items_error[collection_id]
        return sorted(
            self.items_in(collection_id),
            key=lambda item: item.created_at or BASE_TIME,
            reverse=True,
        )

    async def create_item(self, collection_id: int, *, url: str, title: str | None) -> RemoteItem:
        item = self.add_item(collection_id, url, title or "")
        self.created.append(item)
        return item

    async def delete_item(self, item_id: int) -> None:
        self.items.pop(item_id, None)
        self.deleted.append(item_id)

    # -- RaindropClientFactory --------------------------------------------

    def factory(self, api_url: str, access_token: str, *, rpm: int):
        @asynccontextmanager
        async def session():
            self.sessions += 1
            yield self

        return session()


class FlakyStore(InMemoryBookmarkStore):
    """Bookmark store whose ``create`` fails a configurable number of times per URL."""

    def __init__(self, failures: dict[str, int] | None = None) -> None:
        super().__init__()
        self.failures = dict(failures or {})
        self.create_calls: list[str | None] = []

    async def create(self, parent_id, title, url=None, index=None):
        self.create_calls.append(url)
        if url is not None and self.failures.get(url, 0) > 0:
            self.failures[url] -= 1
            raise RaindropNetworkError(f"simulated failure for {url}")
        return await super().create(parent_id, title, url, index)


@pytest.fixture
def api() -> FakeRaindropApi:
    return FakeRaindropApi()


@pytest.fixture
def store() -> InMemoryBookmarkStore:
    return InMemoryBookmarkStore()


@pytest.fixture
def db(tmp_path):
    manager = DatabaseSessionManager(str(tmp_path / "state.db"))
    manager.migrate()
    yield manager
    manager.close()


@pytest.fixture
def make_config(tmp_path) -> Callable[..., AppConfig]:
    def _make(*, access_token: str = "test-token", **sync: Any) -> AppConfig:
        sync.setdefault("bookmarks_sort", "none")
        return AppConfig(
            raindrop=RaindropConfig(access_token=access_token),
            sync=SyncConfig(**sync),
            runtime=RuntimeConfig(db_path=str(tmp_path / "state.db")),
        )

    return _make


async def titles_under(store: InMemoryBookmarkStore, folder_id: str) -> list[str]:
    return [child.title for child in await store.get_children(folder_id)]


async def find_folder(store: InMemoryBookmarkStore, parent_id: str, title: str) -> str:
    for child in await store.get_children(parent_id):
        if child.is_folder and child.title == title:
            return child.id
    raise AssertionError(f"folder {title!r} not found under {parent_id}")
