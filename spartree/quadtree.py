"""A quadtree that indexes 2D points inside a rectangular region."""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, Iterable, Iterator

from .geometry import InvalidCapacityError, Point2D, Rectangle, euclidean_distance_sq

logger = logging.getLogger(__name__)

Metric = Callable[[Point2D, Point2D], float]

# Child order used for searching, deleting and merging.
_NE, _NW, _SE, _SW = range(4)
# Child order tried when inserting a single point.
_INSERT_ORDER = (_NW, _NE, _SW, _SE)


class Quadtree:
    """A region quadtree that splits a node into four quadrants once it is full.

    Points outside the tree's boundary are ignored. ``capacity`` is the
    number of points a node holds before it subdivides.
    """

    def __init__(self, boundary: Rectangle, capacity: int) -> None:
        if capacity < 1:
            raise InvalidCapacityError(capacity)
        logger.debug("Creating Quadtree with boundary %r and capacity %d", boundary, capacity)
        self._boundary = boundary
        self._capacity = capacity
        self._points: list[Point2D] = []
        self._children: tuple[Quadtree, ...] = ()

    @property
    def boundary(self) -> Rectangle:
        return self._boundary

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_divided(self) -> bool:
        """True if this node has been split into four quadrants."""
        return bool(self._children)

    @property
    def children(self) -> tuple[Quadtree, ...]:
        """The quadrants (northeast, northwest, southeast, southwest), or an empty tuple."""
        return self._children

    def __iter__(self) -> Iterator[Point2D]:
        yield from self._points
        for child in self._children:
            yield from child

    def __len__(self) -> int:
        return len(self._points) + sum(len(child) for child in self._children)

    def _subdivide(self) -> None:
        logger.debug("Subdividing Quadtree at boundary %r", self._boundary)
        b = self._boundary
        w = b.width / 2.0
        h = b.height / 2.0
        self._children = (
            Quadtree(Rectangle(b.x + w, b.y, w, h), self._capacity),
            Quadtree(Rectangle(b.x, b.y, w, h), self._capacity),
            Quadtree(Rectangle(b.x + w, b.y + h, w, h), self._capacity),
            Quadtree(Rectangle(b.x, b.y + h, w, h), self._capacity),
        )
        old_points, self._points = self._points, []
        for point in old_points:
            if not self.insert(point):
                logger.debug("Failed to reinsert point %r during subdivision", point)

    def insert(self, point: Point2D) -> bool:
        """Insert a point; return False if it lies outside the boundary."""
        if not self._boundary.contains(point):
            return False

        if not self._children:
            if len(self._points) < self._capacity:
                self._points.append(point)
                return True
            self._subdivide()

        for index in _INSERT_ORDER:
            if self._children[index].insert(point):
                return True

        raise RuntimeError(
            "a point within the parent boundary should always fit in a child boundary"
        )

    def insert_bulk(self, points: Iterable[Point2D]) -> None:
        """Insert many points at once, skipping those outside the boundary."""
        inside = [point for point in points if self._boundary.contains(point)]
        if not inside:
            return

        if not self._children and len(self._points) + len(inside) <= self._capacity:
            self._points.extend(inside)
            return

        if not self._children:
            self._subdivide()

        groups: list[list[Point2D]] = [[], [], [], []]
        for point in inside:
            for index, child in enumerate(self._children):
                if child._boundary.contains(point):
                    groups[index].append(point)
                    break

        for child, group in zip(self._children, groups):
            if group:
                child.insert_bulk(group)

    def _min_distance_sq(self, target: Point2D) -> float:
        """Squared Euclidean distance from ``target`` to this node's boundary."""
        b = self._boundary
        if target.x < b.x:
            dx = b.x - target.x
        elif target.x > b.x + b.width:
            dx = target.x - (b.x + b.width)
        else:
            dx = 0.0
        if target.y < b.y:
            dy = b.y - target.y
        elif target.y > b.y + b.height:
            dy = target.y - (b.y + b.height)
        else:
            dy = 0.0
        return dx * dx + dy * dy

    def knn_search(
        self, target: Point2D, k: int, metric: Metric = euclidean_distance_sq
    ) -> list[Point2D]:
        """Return the ``k`` points nearest to ``target``, nearest first.

        ``metric`` returns a squared distance. Pruning uses Euclidean
        distance, so metrics unlike it may give poorer results.
        """
        if k <= 0:
            return []
        # Min-heap on negated distance: the root is the farthest point kept.
        heap: list[tuple[float, int, Point2D]] = []
        self._knn(target, k, metric, heap, itertools.count())
        ordered = sorted(heap, key=lambda item: (-item[0], -item[1]))
        return [point for _, _, point in ordered]

    def _knn(
        self,
        target: Point2D,
        k: int,
        metric: Metric,
        heap: list[tuple[float, int, Point2D]],
        counter: Iterator[int],
    ) -> None:
        for point in self._points:
            item = (-metric(point, target), -next(counter), point)
            if len(heap) < k:
                heapq.heappush(heap, item)
            else:
                heapq.heappushpop(heap, item)
        for child in self._children:
            if len(heap) == k and child._min_distance_sq(target) > -heap[0][0]:
                continue
            child._knn(target, k, metric, heap, counter)

    def range_search(
        self, center: Point2D, radius: float, metric: Metric = euclidean_distance_sq
    ) -> list[Point2D]:
        """Return every point within ``radius`` of ``center``.

        ``metric`` returns a squared distance. Pruning uses Euclidean
        distance, so metrics unlike it may give poorer results.
        """
        radius_sq = radius * radius
        found: list[Point2D] = []
        stack = [self]
        while stack:
            node = stack.pop()
            if node._min_distance_sq(center) > radius_sq:
                continue
            found.extend(p for p in node._points if metric(p, center) <= radius_sq)
            stack.extend(reversed(node._children))
        return found

    def delete(self, point: Point2D) -> bool:
        """Remove one occurrence of ``point``; return True if one was found."""
        if not self._boundary.contains(point):
            return False
        if self._children:
            deleted = False
            for child in self._children:
                if child.delete(point):
                    deleted = True
            self._try_merge()
            return deleted
        try:
            self._points.remove(point)
        except ValueError:
            return False
        logger.debug("Deleted point %r from Quadtree", point)
        return True

    def _try_merge(self) -> None:
        if not self._children:
            return
        for child in self._children:
            child._try_merge()
        if any(child._children for child in self._children):
            return
        total = sum(len(child._points) for child in self._children)
        if total <= self._capacity:
            for child in self._children:
                self._points.extend(child._points)
            logger.debug(
                "Merged children into node at %r with %d points", self._boundary, total
            )
            self._children = ()