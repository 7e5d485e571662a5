from __future__ import annotations

import pytest

from raindrop_sync.adapters.raindrop.models import RemoteCollection
from raindrop_sync.core.sync_enums import SyncMode
from raindrop_sync.sync.folders import FolderResolver
from raindrop_sync.sync.mapping import MappingStore
from raindrop_sync.sync.policy import policy_for


def _collection(cid: int, title: str) -> RemoteCollection:
    return RemoteCollection(id=cid, title=title)


@pytest.fixture
def mapping(db):
    return MappingStore(db)


@pytest.mark.asyncio
async def test_creates_folder_once(store, mapping):
    resolver = FolderResolver(store, mapping, policy_for(SyncMode.ADDITIONS_ONLY))

    first = await resolver.resolve(_collection(1, "Work"), "1")
    second = await resolver.resolve(_collection(1, "Work"), "1")

    assert first == second
    assert mapping.folder_for(1) == first
    assert resolver.folders_created == 1
    assert [c.title for c in await store.get_children("1")] == ["Work"]


@pytest.mark.asyncio
async def test_adopts_existing_folder_by_title(store, mapping):
    existing = await store.create("1", "work")
    resolver = FolderResolver(store, mapping, policy_for(SyncMode.ADDITIONS_ONLY))

    folder_id = await resolver.resolve(_collection(1, "Work"), "1")

    assert folder_id == existing.id
    assert resolver.folders_created == 0


@pytest.mark.asyncio
async def test_title_tie_break_prefers_lowest_position(store, mapping):
    await store.create("1", "Misc")
    first = await store.create("1", "Work")
    second = await store.create("1", "Work")
    resolver = FolderResolver(store, mapping, policy_for(SyncMode.ADDITIONS_ONLY))

    assert await resolver.resolve(_collection(1, "Work"), "1") == first.id
    # the first folder is claimed; a second same-titled collection takes the next one
    assert await resolver.resolve(_collection(2, "Work"), "1") == second.id
    assert resolver.folders_created == 0


@pytest.mark.asyncio
async def test_mapped_folder_wins_over_title(store, mapping):
    mapped = await store.create("2", "Somewhere else")
    await store.create("1", "Work")
    mapping.set_folder(1, mapped.id)
    resolver = FolderResolver(store, mapping, policy_for(SyncMode.ADDITIONS_ONLY))

    assert await resolver.resolve(_collection(1, "Work"), "1") == mapped.id
    node = await store.get_node(mapped.id)
    assert node.title == "Somewhere else"


@pytest.mark.asyncio
async def test_mirror_renames_mapped_folder(store, mapping):
    mapped = await store.create("1", "Old name")
    mapping.set_folder(1, mapped.id)
    resolver = FolderResolver(store, mapping, policy_for(SyncMode.MIRROR))

    await resolver.resolve(_collection(1, "New name"), "1")

    assert (await store.get_node(mapped.id)).title == "New name"
    assert resolver.titles_updated == 1


@pytest.mark.asyncio
async def test_stale_mapping_falls_back(store, mapping):
    mapping.set_folder(1, "9999")
    resolver = FolderResolver(store, mapping, policy_for(SyncMode.OFF))

    folder_id = await resolver.resolve(_collection(1, "Work"), "1")

    assert folder_id != "9999"
    assert mapping.folder_for(1) == folder_id


@pytest.mark.asyncio
async def test_upload_only_never_creates(store, mapping):
    resolver = FolderResolver(store, mapping, policy_for(SyncMode.UPLOAD_ONLY))

    assert await resolver.resolve(_collection(1, "Work"), "1") is None
    assert await store.get_children("1") == []

    existing = await store.create("1", "Work")
    assert await resolver.resolve(_collection(1, "Work"), "1") == existing.id
