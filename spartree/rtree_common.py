"""Entries, nodes and algorithms shared by the R-tree family."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Callable, Optional

from .geometry import BoundingVolume, euclidean_distance_sq


@dataclass
class Entry:
    """An entry of a node: either a leaf holding an object or a link to a child node."""

    mbr: BoundingVolume
    obj: Any = None
    child: Optional[Node] = None

    def is_leaf(self) -> bool:
        """Return True if the entry holds an object rather than a child node."""
        return self.child is None


@dataclass
class Node:
    """A tree node; ``is_leaf`` tells whether its entries hold objects."""

    entries: list[Entry] = field(default_factory=list)
    is_leaf: bool = True


def compute_group_mbr(entries: list[Entry]) -> Optional[BoundingVolume]:
    """Return the bounding volume covering all entries, or None if there are none."""
    if not entries:
        return None
    return reduce(lambda acc, entry: acc.union(entry.mbr), entries[1:], entries[0].mbr)


def search_node(node: Node, query: BoundingVolume) -> list[Any]:
    """Return every object under ``node`` whose bounding volume intersects ``query``."""
    result: list[Any] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_leaf:
            result.extend(
                entry.obj
                for entry in current.entries
                if entry.is_leaf() and entry.mbr.intersects(query)
            )
        else:
            children = [
                entry.child
                for entry in current.entries
                if not entry.is_leaf() and entry.mbr.intersects(query)
            ]
            stack.extend(reversed(children))
    return result


def _delete(
    node: Node,
    obj: Any,
    object_mbr: BoundingVolume,
    min_entries: int,
    reinsert: list[Entry],
) -> bool:
    if node.is_leaf:
        for position, entry in enumerate(node.entries):
            if entry.is_leaf() and entry.obj == obj:
                del node.entries[position]
                return True
        return False

    deleted = False
    underfull: list[int] = []
    for index, entry in enumerate(node.entries):
        if entry.is_leaf() or not entry.mbr.intersects(object_mbr):
            continue
        child = entry.child
        if _delete(child, obj, object_mbr, min_entries, reinsert):
            deleted = True
            if len(child.entries) < min_entries:
                underfull.append(index)
            else:
                new_mbr = compute_group_mbr(child.entries)
                if new_mbr is not None:
                    entry.mbr = new_mbr

    for index in reversed(underfull):
        removed = node.entries.pop(index)
        reinsert.extend(removed.child.entries)
    return deleted


def delete_entry(
    node: Node, obj: Any, object_mbr: BoundingVolume, min_entries: int
) -> tuple[bool, list[Entry]]:
    """Remove ``obj`` from the subtree rooted at ``node``.

    Children left with fewer than ``min_entries`` entries are dissolved.
    Returns whether anything was deleted, and the orphaned entries that
    must be inserted again.
    """
    reinsert: list[Entry] = []
    deleted = _delete(node, obj, object_mbr, min_entries, reinsert)
    return deleted, reinsert


def knn_search(
    root: Node,
    query: Any,
    k: int,
    metric: Callable[[Any, Any], float] = euclidean_distance_sq,
) -> list[Any]:
    """Return the ``k`` objects nearest to ``query``, nearest first.

    ``metric`` returns a squared distance; pruning uses Euclidean distance
    to bounding volumes.
    """
    if k <= 0:
        return []

    tie = itertools.count()
    candidates = [(entry.mbr.min_distance(query) ** 2, next(tie), entry) for entry in root.entries]
    heapq.heapify(candidates)

    # Max-heap of found objects keyed by (distance, insertion order).
    results: list[tuple[float, int, Any]] = []
    counter = 0

    def worst() -> float:
        return -results[0][0]

    while candidates:
        dist, _, entry = heapq.heappop(candidates)
        if len(results) >= k and dist > worst():
            break

        if entry.is_leaf():
            d_sq = metric(query, entry.obj)
            if len(results) < k:
                counter += 1
                heapq.heappush(results, (-d_sq, -counter, entry.obj))
            elif d_sq < worst():
                counter += 1
                heapq.heapreplace(results, (-d_sq, -counter, entry.obj))
        else:
            for child_entry in entry.child.entries:
                d_sq = child_entry.mbr.min_distance(query) ** 2
                if len(results) < k or d_sq < worst():
                    heapq.heappush(candidates, (d_sq, next(tie), child_entry))

    ordered = sorted(results, key=lambda item: (-item[0], -item[1]))
    return [obj for _, _, obj in ordered]