"""Tests for duplicate cleanup and clearing synced bookmarks."""

from __future__ import annotations

from datetime import datetime

import pytest

from raindrop_sync.sync import SyncOrchestrator
from raindrop_sync.sync.errors import SyncAbortedError
from raindrop_sync.sync.maintenance import cleanup_all_duplicates, clear_all_synced_bookmarks
from raindrop_sync.sync.mapping import MappingStore
from tests.conftest import find_folder, titles_under


@pytest.fixture
def mapping(db):
    return MappingStore(db)


@pytest.mark.asyncio
async def test_cleanup_walks_nested_folders(store, mapping):
    outer = await store.create("1", "Outer")
    inner = await store.create(outer.id, "Inner")
    await store.create(outer.id, "One", "https://dup.example.com")
    await store.create(outer.id, "Two", "https://dup.example.com/#top")
    await store.create(inner.id, "Three", "https://other.example.com?utm_source=x")
    await store.create(inner.id, "Four", "https://other.example.com")
    await store.create(inner.id, "Unique", "https://unique.example.com")

    removed = await cleanup_all_duplicates(store, mapping, "1")

    assert removed == 2
    assert await titles_under(store, outer.id) == ["Inner", "One"]
    assert await titles_under(store, inner.id) == ["Three", "Unique"]


@pytest.mark.asyncio
async def test_cleanup_keeps_mapped_bookmark(store, mapping):
    await store.create("1", "First", "https://dup.example.com")
    mapped = await store.create("1", "Mapped", "https://dup.example.com")
    mapping.set_bookmark(7, mapped.id)

    assert await cleanup_all_duplicates(store, mapping, "1") == 1
    assert await titles_under(store, "1") == ["Mapped"]
    assert mapping.bookmark_for(7) == mapped.id


@pytest.mark.asyncio
async def test_clear_removes_synced_content_only(store, mapping):
    parent = await store.create("1", "Reading")
    child = await store.create(parent.id, "Articles")
    kept = await store.create("1", "Work")
    synced = [
        await store.create(parent.id, "r", "https://r.example.com"),
        await store.create(child.id, "a", "https://a.example.com"),
        await store.create(kept.id, "w", "https://w.example.com"),
    ]
    await store.create(kept.id, "mine", "https://mine.example.com")
    for collection_id, folder in ((10, parent), (11, child), (20, kept)):
        mapping.set_folder(collection_id, folder.id)
    for item_id, bookmark in enumerate(synced, start=100):
        mapping.set_bookmark(item_id, bookmark.id)

    result = await clear_all_synced_bookmarks(store, mapping)

    assert result.bookmarks_removed == 3
    assert result.folders_removed == 2
    assert await titles_under(store, "1") == ["Work"]
    assert await titles_under(store, kept.id) == ["mine"]
    assert mapping.collection_entries() == []
    assert mapping.item_entries() == []


@pytest.mark.asyncio
async def test_orchestrator_clear_persists_empty_mapping(api, store, db, make_config):
    api.add_collection(10, "Reading")
    api.add_item(10, "https://r.example.com", "R")
    orchestrator = SyncOrchestrator(
        make_config(),
        store=store,
        db=db,
        client_factory=api.factory,
        now=lambda: datetime(2025, 3, 1, 12, 0),
    )
    await orchestrator.run_cycle()
    assert await find_folder(store, "1", "Reading")

    cleared = await orchestrator.clear_synced_bookmarks()

    assert cleared.bookmarks_removed == 1
    assert cleared.folders_removed == 1
    assert await titles_under(store, "1") == []
    reloaded = MappingStore(db)
    reloaded.load()
    assert reloaded.item_entries() == []
    assert api.deleted == []


@pytest.mark.asyncio
async def test_orchestrator_cleanup_requires_existing_subfolder(api, store, db, make_config):
    orchestrator = SyncOrchestrator(
        make_config(use_subfolder=True), store=store, db=db, client_factory=api.factory
    )

    with pytest.raises(SyncAbortedError, match="subfolder"):
        await orchestrator.cleanup_duplicates()
    assert await titles_under(store, "1") == []
