"""Subtree choice, forced reinsertion and node splitting for the R*-tree."""

from __future__ import annotations

import math
from typing import Optional

from .geometry import BoundingVolume
from .rtree_common import Entry, Node, compute_group_mbr

EPSILON = 1e-10
"""Tolerance under which two overlap values count as equal."""


def _children_are_leaves(node: Node) -> bool:
    if not node.entries:
        return False
    first = node.entries[0]
    return not first.is_leaf() and first.child.is_leaf


def _overlap_cost(node: Node, candidate: Entry, new_mbr: BoundingVolume) -> float:
    return sum(
        other.mbr.union(new_mbr).overlap(other.mbr)
        for other in node.entries
        if other is not candidate
    )


def choose_subtree(node: Node, entry: Entry) -> int:
    """Return the index of the entry of ``node`` that ``entry`` should descend into.

    When the children are leaves, the least overlap cost wins, then the least
    enlargement, then the smallest area. Otherwise only enlargement and area
    are compared. Ties go to the earliest entry; an empty node gives 0.
    """
    if not node.entries:
        return 0
    new_mbr = entry.mbr

    if _children_are_leaves(node):
        def key(item: tuple[int, Entry]) -> tuple[float, float, float]:
            _, candidate = item
            return (
                _overlap_cost(node, candidate, new_mbr),
                candidate.mbr.enlargement(new_mbr),
                candidate.mbr.area(),
            )
    else:
        def key(item: tuple[int, Entry]) -> tuple[float, float]:
            _, candidate = item
            return (candidate.mbr.enlargement(new_mbr), candidate.mbr.area())

    index, _ = min(enumerate(node.entries), key=key)
    return index


def _center(mbr: BoundingVolume) -> tuple[float, ...]:
    return tuple(mbr.center(dim) for dim in range(mbr.DIM))


def forced_reinsert(node: Node, max_entries: int) -> list[Entry]:
    """Remove and return the entries of ``node`` farthest from its centre.

    ``ceil(0.3 * max_entries)`` entries are taken, farthest first; the rest
    stay in ``node`` in their sorted order. An empty node yields nothing.
    """
    node_mbr: Optional[BoundingVolume] = compute_group_mbr(node.entries)
    if node_mbr is None:
        return []
    reinsert_count = math.ceil(max_entries * 0.3)
    node_center = _center(node_mbr)

    def distance_sq(entry: Entry) -> float:
        return sum((c - n) ** 2 for c, n in zip(_center(entry.mbr), node_center))

    node.entries.sort(key=distance_sq, reverse=True)
    removed = node.entries[:reinsert_count]
    del node.entries[:reinsert_count]
    return removed


def _split_points(count: int, min_entries: int) -> range:
    return range(min_entries, count - min_entries + 1)


def split_entries(
    entries: list[Entry], max_entries: int
) -> tuple[list[Entry], list[Entry]]:
    """Split an overflowing list of entries into two groups.

    The axis is the one whose sorted distributions have the least total
    margin; along it, the split with the least overlap (then least area)
    is taken. Each group keeps at least ``ceil(0.4 * max_entries)`` entries.
    """
    entries = list(entries)
    if not entries:
        return [], []
    min_entries = math.ceil(max_entries * 0.4)
    dims = entries[0].mbr.DIM

    best_axis = 0
    best_split = 0
    min_margin = math.inf
    for dim in range(dims):
        entries.sort(key=lambda e, d=dim: e.mbr.center(d))
        for k in _split_points(len(entries), min_entries):
            mbr1 = compute_group_mbr(entries[:k])
            mbr2 = compute_group_mbr(entries[k:])
            margin = mbr1.margin() + mbr2.margin()
            if margin < min_margin:
                min_margin = margin
                best_axis = dim
                best_split = k

    entries.sort(key=lambda e: e.mbr.center(best_axis))

    best_overlap = math.inf
    best_area = math.inf
    for k in _split_points(len(entries), min_entries):
        mbr1 = compute_group_mbr(entries[:k])
        mbr2 = compute_group_mbr(entries[k:])
        overlap = mbr1.overlap(mbr2)
        area = mbr1.area() + mbr2.area()
        if overlap < best_overlap:
            best_overlap = overlap
            best_area = area
            best_split = k
        elif abs(overlap - best_overlap) < EPSILON and area < best_area:
            best_area = area
            best_split = k

    return entries[:best_split], entries[best_split:]