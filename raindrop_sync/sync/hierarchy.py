"""Turn the flat collection list into an ordered forest and pick what to sync."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from raindrop_sync.adapters.raindrop.models import RemoteCollection, resolve_parent_id
from raindrop_sync.core.sync_enums import CollectionSelection, CollectionSort
from raindrop_sync.core.text_utils import title_sort_key

logger = logging.getLogger(__name__)

__all__ = [
    "CollectionNode",
    "FlatCollection",
    "HierarchyBuilder",
    "resolve_parent_id",
]


@dataclass
class CollectionNode:
    collection: RemoteCollection
    children: list[CollectionNode] = field(default_factory=list)


@dataclass(frozen=True)
class FlatCollection:
    """A collection with its depth in the forest and its effective parent.

    ``parent_id`` is None for roots, including collections whose declared parent
    is absent from the fetched list.
    """

    collection: RemoteCollection
    depth: int
    parent_id: int | None


class HierarchyBuilder:
    """Build, flatten, filter and order the remote collection hierarchy."""

    def __init__(self, sort_policy: CollectionSort = CollectionSort.ALPHA_ASC) -> None:
        self.sort_policy = CollectionSort(sort_policy)

    def sort(self, collections: Iterable[RemoteCollection]) -> list[RemoteCollection]:
        """Order sibling collections. Ties always fall back to the collection id."""
        items = list(collections)
        if self.sort_policy is CollectionSort.ALPHA_ASC:
            return sorted(items, key=lambda c: (title_sort_key(c.title), c.id))
        if self.sort_policy is CollectionSort.ALPHA_DESC:
            ordered = sorted(items, key=lambda c: (title_sort_key(c.title), -c.id))
            ordered.reverse()
            return ordered
        return sorted(items, key=lambda c: (c.sort_order, c.id))

    def build_forest(self, collections: Iterable[RemoteCollection]) -> list[CollectionNode]:
        """Link each collection under its parent; orphans become roots.

        Collections caught in a parent cycle are promoted to roots so every input
        collection appears exactly once.
        """
        by_id: dict[int, RemoteCollection] = {}
        for collection in collections:
            by_id[collection.id] = collection

        children_of: dict[int, list[RemoteCollection]] = defaultdict(list)
        roots: list[RemoteCollection] = []
        for collection in by_id.values():
            parent = collection.parent_id
            if isinstance(parent, int) and parent in by_id and parent != collection.id:
                children_of[parent].append(collection)
            else:
                roots.append(collection)

        visited: set[int] = set()

        def build(collection: RemoteCollection) -> CollectionNode:
            visited.add(collection.id)
            node = CollectionNode(collection=collection)
            for child in self.sort(children_of.get(collection.id, [])):
                if child.id not in visited:
                    node.children.append(build(child))
            return node

        forest = [build(root) for root in self.sort(roots)]

        unreachable = [c for c in by_id.values() if c.id not in visited]
        if unreachable:
            logger.warning(
                "collection_parent_cycle_detected",
                extra={"collection_ids": sorted(c.id for c in unreachable)},
            )
            for collection in sorted(unreachable, key=lambda c: c.id):
                if collection.id not in visited:
                    forest.append(build(collection))
        return forest

    def flatten(self, forest: Iterable[CollectionNode]) -> list[FlatCollection]:
        """Depth-first walk: every parent precedes its descendants."""
        flat: list[FlatCollection] = []

        def walk(node: CollectionNode, depth: int, parent_id: int | None) -> None:
            flat.append(FlatCollection(collection=node.collection, depth=depth, parent_id=parent_id))
            for child in node.children:
                walk(child, depth + 1, node.collection.id)

        for root in forest:
            walk(root, 0, None)
        return flat

    def apply_selection(
        self,
        flat: Iterable[FlatCollection],
        mode: CollectionSelection,
        selected_ids: Iterable[int] = (),
    ) -> list[FlatCollection]:
        """Filter the flattened forest, keeping parent-before-child order."""
        entries = list(flat)
        mode = CollectionSelection(mode)
        if mode is CollectionSelection.ALL:
            return entries
        wanted = {int(i) for i in selected_ids}
        if mode is CollectionSelection.TOP_LEVEL or not wanted:
            return [entry for entry in entries if entry.depth == 0]
        return [entry for entry in entries if entry.collection.id in wanted]

    def build(
        self,
        collections: Iterable[RemoteCollection],
        mode: CollectionSelection,
        selected_ids: Iterable[int] = (),
    ) -> list[FlatCollection]:
        return self.apply_selection(self.flatten(self.build_forest(collections)), mode, selected_ids)
