"""Tests for building, flattening, selecting and ordering the collection forest."""

from __future__ import annotations

import unittest

from raindrop_sync.adapters.raindrop.models import RemoteCollection
from raindrop_sync.core.sync_enums import CollectionSelection, CollectionSort
from raindrop_sync.sync.hierarchy import HierarchyBuilder, resolve_parent_id


def _collection(cid: int, title: str, parent=None, sort: int = 0) -> RemoteCollection:
    payload = {"_id": cid, "title": title, "sort": sort}
    if parent is not None:
        payload["parent"] = parent
    return RemoteCollection.model_validate(payload)


class TestResolveParentId(unittest.TestCase):
    def test_object_forms(self):
        assert resolve_parent_id({"parent": {"$id": 5}}) == 5
        assert resolve_parent_id({"parent": {"id": 6}}) == 6
        assert resolve_parent_id({"parent": {"_id": "7"}}) == 7

    def test_scalar_and_alternate_fields(self):
        assert resolve_parent_id({"parent": 3}) == 3
        assert resolve_parent_id({"parentId": "42"}) == 42
        assert resolve_parent_id({"parent_id": 9}) == 9

    def test_first_field_wins(self):
        assert resolve_parent_id({"parent": {"$id": 1}, "parentId": 2}) == 1

    def test_missing(self):
        assert resolve_parent_id({}) is None
        assert resolve_parent_id({"parent": None}) is None
        assert resolve_parent_id({"parent": {}}) is None


class TestHierarchyBuilder(unittest.TestCase):
    def setUp(self):
        self.collections = [
            _collection(1, "Work", sort=2),
            _collection(2, "Alpha", parent={"$id": 1}, sort=1),
            _collection(3, "Zeta", parent={"$id": 1}, sort=0),
            _collection(4, "Deep", parent={"$id": 2}),
            _collection(5, "Home", sort=1),
            _collection(6, "Orphan", parent={"$id": 999}),
        ]

    def test_flatten_puts_parents_first_with_depth(self):
        builder = HierarchyBuilder(CollectionSort.ALPHA_ASC)
        flat = builder.flatten(builder.build_forest(self.collections))

        order = [entry.collection.id for entry in flat]
        assert order == [5, 6, 1, 2, 4, 3]
        depths = {entry.collection.id: entry.depth for entry in flat}
        assert depths == {5: 0, 6: 0, 1: 0, 2: 1, 4: 2, 3: 1}
        parents = {entry.collection.id: entry.parent_id for entry in flat}
        assert parents[4] == 2
        assert parents[6] is None

    def test_every_collection_appears_exactly_once(self):
        builder = HierarchyBuilder()
        flat = builder.flatten(builder.build_forest(self.collections))
        assert sorted(entry.collection.id for entry in flat) == [1, 2, 3, 4, 5, 6]

    def test_parent_cycle_does_not_lose_collections(self):
        looped = [
            _collection(10, "A", parent={"$id": 11}),
            _collection(11, "B", parent={"$id": 10}),
            _collection(12, "C"),
        ]
        builder = HierarchyBuilder()
        flat = builder.flatten(builder.build_forest(looped))
        assert sorted(entry.collection.id for entry in flat) == [10, 11, 12]

    def test_raindrop_order_uses_sort_field(self):
        builder = HierarchyBuilder(CollectionSort.RAINDROP_ORDER)
        flat = builder.flatten(builder.build_forest(self.collections))
        assert [entry.collection.id for entry in flat] == [6, 5, 1, 3, 2, 4]

    def test_alpha_desc(self):
        builder = HierarchyBuilder(CollectionSort.ALPHA_DESC)
        roots = builder.sort(c for c in self.collections if c.id in {1, 5, 6})
        assert [c.title for c in roots] == ["Work", "Orphan", "Home"]

    def test_sort_ties_broken_by_id(self):
        builder = HierarchyBuilder(CollectionSort.ALPHA_ASC)
        same = [_collection(8, "Same"), _collection(7, "same")]
        assert [c.id for c in builder.sort(same)] == [7, 8]

    def test_selection_top_level(self):
        builder = HierarchyBuilder()
        selected = builder.build(self.collections, CollectionSelection.TOP_LEVEL)
        assert {entry.collection.id for entry in selected} == {1, 5, 6}

    def test_selection_all(self):
        builder = HierarchyBuilder()
        selected = builder.build(self.collections, CollectionSelection.ALL)
        assert len(selected) == 6

    def test_selection_custom_keeps_forest_order(self):
        builder = HierarchyBuilder()
        selected = builder.build(self.collections, CollectionSelection.CUSTOM, {4, 1, 77})
        assert [entry.collection.id for entry in selected] == [1, 4]

    def test_selection_custom_without_ids_falls_back_to_top_level(self):
        builder = HierarchyBuilder()
        custom = builder.build(self.collections, CollectionSelection.CUSTOM, set())
        top_level = builder.build(self.collections, CollectionSelection.TOP_LEVEL)
        assert custom == top_level


if __name__ == "__main__":
    unittest.main()
