"""An R-tree that indexes 2D or 3D points."""

from __future__ import annotations

import logging
import math
import sys
from typing import Any, Callable, Iterable, Iterator, Optional

from .geometry import (
    BoundingVolume,
    InvalidCapacityError,
    euclidean_distance_sq,
    mbr_of,
)
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


def _insert_into(node: Node, entry: Entry) -> None:
    """Place ``entry`` in the subtree under ``node``, least enlargement first."""
    if node.is_leaf:
        node.entries.append(entry)
        return

    best: Optional[Entry] = None
    best_enlargement = math.inf
    for candidate in node.entries:
        if candidate.is_leaf():
            continue
        enlargement = candidate.mbr.enlargement(entry.mbr)
        if enlargement < best_enlargement:
            best_enlargement = enlargement
            best = candidate
        elif (
            best is not None
            and abs(enlargement - best_enlargement) < sys.float_info.epsilon
            and candidate.mbr.area() < best.mbr.area()
        ):
            best = candidate

    if best is None:
        node.entries.append(entry)
        return

    best.mbr = best.mbr.union(entry.mbr)
    _insert_into(best.child, entry)
    new_mbr = compute_group_mbr(best.child.entries)
    if new_mbr is not None:
        best.mbr = new_mbr


def _split(entries: list[Entry]) -> tuple[list[Entry], list[Entry]]:
    """Split entries into two groups seeded by the first two entries."""
    if len(entries) < 2:
        return list(entries), []
    group1 = [entries[0]]
    group2 = [entries[1]]
    for entry in entries[2:]:
        mbr1 = compute_group_mbr(group1)
        mbr2 = compute_group_mbr(group2)
        if mbr1.enlargement(entry.mbr) < mbr2.enlargement(entry.mbr):
            group1.append(entry)
        else:
            group2.append(entry)
    return group1, group2


class RTree:
    """An R-tree of points; a node splits when it holds more than ``max_entries``."""

    def __init__(self, max_entries: int) -> None:
        if max_entries < 2:
            raise InvalidCapacityError(max_entries)
        logger.debug("Creating RTree with max_entries %d", max_entries)
        self._root = Node()
        self._max_entries = max_entries
        self._min_entries = math.ceil(max_entries * 0.4)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def min_entries(self) -> int:
        return self._min_entries

    def __iter__(self) -> Iterator[Any]:
        stack = [self._root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                yield from (entry.obj for entry in node.entries if entry.is_leaf())
            else:
                stack.extend(
                    entry.child for entry in reversed(node.entries) if not entry.is_leaf()
                )

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def insert(self, obj: Any) -> None:
        """Insert a point into the tree."""
        logger.debug("Inserting object into RTree: %r", obj)
        self._insert_entry(Entry(mbr=mbr_of(obj), obj=obj))

    def _insert_entry(self, entry: Entry) -> None:
        _insert_into(self._root, entry)
        if len(self._root.entries) > self._max_entries:
            self._split_root()

    def _split_root(self) -> None:
        logger.debug("Splitting root node")
        group1, group2 = _split(self._root.entries)
        is_leaf = self._root.is_leaf
        child1 = Node(entries=group1, is_leaf=is_leaf)
        child2 = Node(entries=group2, is_leaf=is_leaf)
        self._root = Node(
            entries=[
                Entry(mbr=compute_group_mbr(group1), child=child1),
                Entry(mbr=compute_group_mbr(group2), child=child2),
            ],
            is_leaf=False,
        )

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
        """Remove one occurrence of ``obj``; return True if one was found."""
        logger.debug("Deleting object %r", obj)
        deleted, orphans = delete_entry(
            self._root, obj, mbr_of(obj), self._min_entries
        )
        if deleted:
            for entry in orphans:
                self._insert_entry(entry)
            if not self._root.is_leaf and len(self._root.entries) == 1:
                last = self._root.entries.pop()
                if not last.is_leaf():
                    self._root = last.child
        return deleted