"""An R*-tree that indexes 2D or 3D points."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Optional

from .geometry import (
    BoundingVolume,
    InvalidCapacityError,
    euclidean_distance_sq,
    mbr_of,
)
from .rstar_split import choose_subtree, forced_reinsert, split_entries
from .rtree_common import (
    Entry,
    Node,
    compute_group_mbr,
    delete_entry,
    knn_search,
    search_node,
)

logger = logging.getLogger(__name__)

Metric = Callable[[Any, Any], float]


def _node_height(node: Node) -> int:
    """Return the height of ``node`` above the leaves (a leaf node has height 0)."""
    height = 0
    while not node.is_leaf:
        height += 1
        first = node.entries[0] if node.entries else None
        if first is None or first.is_leaf():
            break
        node = first.child
    return height


def _target_height(entry: Entry) -> int:
    """Return the height of the nodes that ``entry`` belongs in."""
    if entry.is_leaf():
        return 0
    return _node_height(entry.child) + 1


@dataclass
class _InsertState:
    """Bookkeeping for one insertion and the reinsertions it triggers."""

    reinserted_heights: set[int] = field(default_factory=set)
    queue: list[tuple[Entry, int]] = field(default_factory=list)


def _split_into_entries(entries: list[Entry], max_entries: int, is_leaf: bool) -> list[Entry]:
    group1, group2 = split_entries(entries, max_entries)
    return [
        Entry(mbr=compute_group_mbr(group), child=Node(entries=group, is_leaf=is_leaf))
        for group in (group1, group2)
    ]


class RStarTree:
    """An R*-tree of points; overflowing nodes first reinsert, then split.

    A node holds at most ``max_entries`` entries; groups made by a split keep
    at least ``ceil(0.4 * max_entries)`` entries each.
    """

    def __init__(self, max_entries: int) -> None:
        if max_entries < 2:
            raise InvalidCapacityError(max_entries)
        logger.debug("Creating RStarTree with max_entries %d", max_entries)
        self._root = Node()
        self._max_entries = max_entries
        self._min_entries = math.ceil(max_entries * 0.4)

    def __iter__(self) -> Iterator[Any]:
        stack = [self._root]
        while stack:
            node = stack.pop()
            children = []
            for entry in node.entries:
                if entry.is_leaf():
                    yield entry.obj
                else:
                    children.append(entry.child)
            stack.extend(reversed(children))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def height(self) -> int:
        """Return the number of levels in the tree (1 for a lone root)."""
        return _node_height(self._root) + 1

    def insert(self, obj: Any) -> None:
        """Insert a point into the tree."""
        logger.debug("Inserting object into RStarTree: %r", obj)
        self._insert_entry(Entry(mbr=mbr_of(obj), obj=obj))

    def _insert_entry(self, entry: Entry) -> None:
        state = _InsertState(queue=[(entry, _target_height(entry))])
        while state.queue:
            item, target = state.queue.pop()
            if self._root.entries:
                root_height = _node_height(self._root)
            else:
                self._root.is_leaf = target == 0
                root_height = target

            overflow = self._insert(self._root, item, root_height, target, state)
            if overflow is None:
                continue
            if root_height in state.reinserted_heights:
                is_leaf = self._root.is_leaf
                self._root = Node(
                    entries=_split_into_entries(overflow, self._max_entries, is_leaf),
                    is_leaf=False,
                )
            else:
                state.reinserted_heights.add(root_height)
                node = Node(entries=overflow, is_leaf=self._root.is_leaf)
                removed = forced_reinsert(node, self._max_entries)
                self._root.entries = node.entries
                state.queue.extend((e, root_height) for e in removed)

    def _insert(
        self, node: Node, entry: Entry, height: int, target: int, state: _InsertState
    ) -> Optional[list[Entry]]:
        """Insert ``entry`` under ``node``; return the node's entries if it overflowed."""
        if node.is_leaf or height <= target:
            node.entries.append(entry)
        else:
            index = choose_subtree(node, entry)
            slot = node.entries[index]
            child = slot.child
            child_height = height - 1
            overflow = self._insert(child, entry, child_height, target, state)
            if overflow is not None:
                if child_height in state.reinserted_heights:
                    new_entries = _split_into_entries(
                        overflow, self._max_entries, child.is_leaf
                    )
                    node.entries[index] = new_entries[0]
                    node.entries.append(new_entries[1])
                else:
                    state.reinserted_heights.add(child_height)
                    overflowed = Node(entries=overflow, is_leaf=child.is_leaf)
                    removed = forced_reinsert(overflowed, self._max_entries)
                    child.entries = overflowed.entries
                    state.queue.extend((e, child_height) for e in removed)
            slot = node.entries[index]
            new_mbr = compute_group_mbr(slot.child.entries)
            if new_mbr is not None:
                slot.mbr = new_mbr

        if len(node.entries) > self._max_entries:
            taken, node.entries = node.entries, []
            return taken
        return None

    def insert_bulk(self, objects: Iterable[Any]) -> None:
        """Insert many points by packing them into full nodes level by level."""
        entries = [Entry(mbr=mbr_of(obj), obj=obj) for obj in objects]
        if not entries:
            return
        size = self._max_entries
        while len(entries) > size:
            next_level: list[Entry] = []
            for start in range(0, len(entries), size):
                chunk = entries[start:start + size]
                mbr = compute_group_mbr(chunk)
                if mbr is not None:
                    child = Node(entries=chunk, is_leaf=self._root.is_leaf)
                    next_level.append(Entry(mbr=mbr, child=child))
            entries = next_level
            self._root.is_leaf = False
        self._root.entries.extend(entries)

    def range_search_bbox(self, query: BoundingVolume) -> list[Any]:
        """Return the points whose bounding volumes intersect ``query``."""
        logger.debug("Range search with query %r", query)
        return search_node(self._root, query)

    def range_search(
        self, query: Any, radius: float, metric: Metric = euclidean_distance_sq
    ) -> list[Any]:
        """Return the points within ``radius`` of ``query``.

        ``metric`` returns a squared distance. Candidates come from the
        bounding box of the search circle or sphere.
        """
        volume = type(mbr_of(query)).from_point_radius(query, radius)
        radius_sq = radius * radius
        return [
            obj for obj in self.range_search_bbox(volume) if metric(query, obj) <= radius_sq
        ]

    def knn_search(
        self, query: Any, k: int, metric: Metric = euclidean_distance_sq
    ) -> list[Any]:
        """Return the ``k`` points nearest to ``query``, nearest first."""
        return knn_search(self._root, query, k, metric)

    def delete(self, obj: Any) -> bool:
        """Remove ``obj``; return True if at least one match was found."""
        logger.debug("Deleting object %r", obj)
        deleted, orphans = delete_entry(self._root, obj, mbr_of(obj), self._min_entries)
        if deleted:
            for entry in orphans:
                self._insert_entry(entry)
            if not self._root.is_leaf and len(self._root.entries) == 1:
                last = self._root.entries.pop()
                if not last.is_leaf():
                    self._root = last.child
        return deleted