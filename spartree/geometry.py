"""Points, bounding volumes and distance helpers shared by the spatial trees."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

EPSILON = 1e-10
"""Side length given to the bounding volume of a single point."""


class SpartError(Exception):
    """Base class for errors raised by the spatial trees."""


class InvalidCapacityError(SpartError, ValueError):
    """Raised when a tree is created with a capacity it cannot work with."""

    def __init__(self, capacity: int) -> None:
        super().__init__(f"Invalid capacity: {capacity}")
        self.capacity = capacity


@dataclass(frozen=True)
class Point2D:
    """A point in the plane with optional attached data."""

    x: float
    y: float
    data: Any = None


@dataclass(frozen=True)
class Point3D:
    """A point in space with optional attached data."""

    x: float
    y: float
    z: float
    data: Any = None


Point = Union[Point2D, Point3D]


def _coords(point: Point) -> tuple[float, ...]:
    if isinstance(point, Point3D):
        return (point.x, point.y, point.z)
    return (point.x, point.y)


def euclidean_distance_sq(a: Point, b: Point) -> float:
    """Return the squared Euclidean distance between two points."""
    coords_a, coords_b = _coords(a), _coords(b)
    if len(coords_a) != len(coords_b):
        raise TypeError("points must have the same number of dimensions")
    return sum((ca - cb) ** 2 for ca, cb in zip(coords_a, coords_b))


@dataclass(frozen=True)
class Rectangle:
    """An axis-aligned rectangle given by its lower corner and its size."""

    DIM: ClassVar[int] = 2

    x: float
    y: float
    width: float
    height: float

    def contains(self, point: Point2D) -> bool:
        """Return True if the point lies inside or on the edge of the rectangle."""
        return (
            self.x <= point.x <= self.x + self.width
            and self.y <= point.y <= self.y + self.height
        )

    def intersects(self, other: Rectangle) -> bool:
        """Return True if the two rectangles touch or overlap."""
        return (
            self.x <= other.x + other.width
            and other.x <= self.x + self.width
            and self.y <= other.y + other.height
            and other.y <= self.y + self.height
        )

    def union(self, other: Rectangle) -> Rectangle:
        """Return the smallest rectangle that covers both rectangles."""
        min_x = min(self.x, other.x)
        min_y = min(self.y, other.y)
        max_x = max(self.x + self.width, other.x + other.width)
        max_y = max(self.y + self.height, other.y + other.height)
        return Rectangle(min_x, min_y, max_x - min_x, max_y - min_y)

    def area(self) -> float:
        return self.width * self.height

    def overlap(self, other: Rectangle) -> float:
        """Return the area shared by the two rectangles."""
        dx = min(self.x + self.width, other.x + other.width) - max(self.x, other.x)
        dy = min(self.y + self.height, other.y + other.height) - max(self.y, other.y)
        if dx <= 0 or dy <= 0:
            return 0.0
        return dx * dy

    def enlargement(self, other: Rectangle) -> float:
        """Return how much the area grows when the rectangle is extended to cover ``other``."""
        return self.union(other).area() - self.area()

    def margin(self) -> float:
        """Return the perimeter of the rectangle."""
        return 2.0 * (self.width + self.height)

    def center(self, dim: int) -> float:
        """Return the centre coordinate along axis ``dim`` (0 for x, 1 for y)."""
        if dim == 0:
            return self.x + self.width / 2.0
        if dim == 1:
            return self.y + self.height / 2.0
        raise IndexError(f"dimension {dim} out of range for a rectangle")

    def min_distance(self, point: Point2D) -> float:
        """Return the shortest distance from the rectangle to the point."""
        if point.x < self.x:
            dx = self.x - point.x
        elif point.x > self.x + self.width:
            dx = point.x - (self.x + self.width)
        else:
            dx = 0.0
        if point.y < self.y:
            dy = self.y - point.y
        elif point.y > self.y + self.height:
            dy = point.y - (self.y + self.height)
        else:
            dy = 0.0
        return (dx * dx + dy * dy) ** 0.5

    @classmethod
    def from_point_radius(cls, point: Point2D, radius: float) -> Rectangle:
        """Return the square of half-side ``radius`` centred on the point."""
        return cls(point.x - radius, point.y - radius, 2.0 * radius, 2.0 * radius)


@dataclass(frozen=True)
class Cube:
    """An axis-aligned box given by its lower corner and its size."""

    DIM: ClassVar[int] = 3

    x: float
    y: float
    z: float
    width: float
    height: float
    depth: float

    def contains(self, point: Point3D) -> bool:
        """Return True if the point lies inside or on the surface of the box."""
        return (
            self.x <= point.x <= self.x + self.width
            and self.y <= point.y <= self.y + self.height
            and self.z <= point.z <= self.z + self.depth
        )

    def intersects(self, other: Cube) -> bool:
        """Return True if the two boxes touch or overlap."""
        return (
            self.x <= other.x + other.width
            and other.x <= self.x + self.width
            and self.y <= other.y + other.height
            and other.y <= self.y + self.height
            and self.z <= other.z + other.depth
            and other.z <= self.z + self.depth
        )

    def union(self, other: Cube) -> Cube:
        """Return the smallest box that covers both boxes."""
        min_x = min(self.x, other.x)
        min_y = min(self.y, other.y)
        min_z = min(self.z, other.z)
        max_x = max(self.x + self.width, other.x + other.width)
        max_y = max(self.y + self.height, other.y + other.height)
        max_z = max(self.z + self.depth, other.z + other.depth)
        return Cube(min_x, min_y, min_z, max_x - min_x, max_y - min_y, max_z - min_z)

    def area(self) -> float:
        """Return the volume of the box."""
        return self.width * self.height * self.depth

    def overlap(self, other: Cube) -> float:
        """Return the volume shared by the two boxes."""
        dx = min(self.x + self.width, other.x + other.width) - max(self.x, other.x)
        dy = min(self.y + self.height, other.y + other.height) - max(self.y, other.y)
        dz = min(self.z + self.depth, other.z + other.depth) - max(self.z, other.z)
        if dx <= 0 or dy <= 0 or dz <= 0:
            return 0.0
        return dx * dy * dz

    def enlargement(self, other: Cube) -> float:
        """Return how much the volume grows when the box is extended to cover ``other``."""
        return self.union(other).area() - self.area()

    def margin(self) -> float:
        """Return the total length of the box's edges."""
        return 4.0 * (self.width + self.height + self.depth)

    def center(self, dim: int) -> float:
        """Return the centre coordinate along axis ``dim`` (0, 1 or 2)."""
        if dim == 0:
            return self.x + self.width / 2.0
        if dim == 1:
            return self.y + self.height / 2.0
        if dim == 2:
            return self.z + self.depth / 2.0
        raise IndexError(f"dimension {dim} out of range for a cube")

    def min_distance(self, point: Point3D) -> float:
        """Return the shortest distance from the box to the point."""
        deltas = []
        for low, size, value in (
            (self.x, self.width, point.x),
            (self.y, self.height, point.y),
            (self.z, self.depth, point.z),
        ):
            if value < low:
                deltas.append(low - value)
            elif value > low + size:
                deltas.append(value - (low + size))
            else:
                deltas.append(0.0)
        return sum(d * d for d in deltas) ** 0.5

    @classmethod
    def from_point_radius(cls, point: Point3D, radius: float) -> Cube:
        """Return the cube of half-side ``radius`` centred on the point."""
        side = 2.0 * radius
        return cls(point.x - radius, point.y - radius, point.z - radius, side, side, side)


BoundingVolume = Union[Rectangle, Cube]


def mbr_of(point: Point) -> BoundingVolume:
    """Return the tiny bounding volume used to index a single point."""
    if isinstance(point, Point3D):
        return Cube(point.x, point.y, point.z, EPSILON, EPSILON, EPSILON)
    if isinstance(point, Point2D):
        return Rectangle(point.x, point.y, EPSILON, EPSILON)
    raise TypeError(f"cannot compute a bounding volume for {point!r}")