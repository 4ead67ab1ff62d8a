import pytest

from spartree.geometry import (
    Cube,
    InvalidCapacityError,
    Point2D,
    Point3D,
    Rectangle,
    euclidean_distance_sq,
)
from spartree.r_star_tree import RStarTree


def _grid_2d(n):
    return [Point2D(float(i % 17), float(i // 17), data=i) for i in range(n)]


def _grid_3d(n):
    return [Point3D(float(i % 7), float((i // 7) % 7), float(i // 49), data=i) for i in range(n)]


def _everything_2d():
    return Rectangle(-1000.0, -1000.0, 3000.0, 3000.0)


@pytest.mark.parametrize("capacity", [0, 1])
def test_invalid_capacity(capacity):
    with pytest.raises(InvalidCapacityError) as info:
        RStarTree(capacity)
    assert info.value.capacity == capacity


def test_doc_example_2d_and_3d():
    tree2d = RStarTree(4)
    tree2d.insert(Point2D(10.0, 20.0))
    results = tree2d.range_search_bbox(Rectangle(5.0, 15.0, 10.0, 10.0))
    assert results == [Point2D(10.0, 20.0)]

    tree3d = RStarTree(4)
    tree3d.insert(Point3D(10.0, 20.0, 30.0))
    results3d = tree3d.range_search_bbox(Cube(5.0, 15.0, 25.0, 10.0, 10.0, 10.0))
    assert results3d == [Point3D(10.0, 20.0, 30.0)]


def test_empty_tree():
    tree = RStarTree(4)
    assert tree.height() == 1
    assert tree.knn_search(Point2D(0.0, 0.0), 3) == []
    assert tree.range_search_bbox(_everything_2d()) == []
    assert len(tree) == 0


@pytest.mark.parametrize("max_entries", [2, 3, 5, 8])
def test_insert_keeps_every_point(max_entries):
    points = _grid_2d(300)
    tree = RStarTree(max_entries)
    for p in points:
        tree.insert(p)
    found = tree.range_search_bbox(_everything_2d())
    assert sorted(found, key=lambda p: p.data) == points
    assert len(tree) == len(points)
    assert tree.height() > 1


def test_insert_3d_keeps_every_point():
    points = _grid_3d(250)
    tree = RStarTree(5)
    for p in points:
        tree.insert(p)
    everything = Cube(-10.0, -10.0, -10.0, 100.0, 100.0, 100.0)
    assert sorted(tree.range_search_bbox(everything), key=lambda p: p.data) == points


def test_range_search_bbox_matches_containment():
    points = _grid_2d(200)
    tree = RStarTree(5)
    for p in points:
        tree.insert(p)
    query = Rectangle(3.0, 2.0, 4.5, 3.5)
    expected = {p.data for p in points if query.contains(p)}
    assert {p.data for p in tree.range_search_bbox(query)} == expected


def test_range_search_radius():
    points = _grid_2d(200)
    tree = RStarTree(4)
    for p in points:
        tree.insert(p)
    center = Point2D(8.0, 5.0)
    radius = 3.0
    expected = {p.data for p in points if euclidean_distance_sq(p, center) <= radius * radius}
    found = tree.range_search(center, radius)
    assert {p.data for p in found} == expected
    assert all(euclidean_distance_sq(p, center) <= radius * radius for p in found)


def test_range_search_3d_radius():
    points = _grid_3d(200)
    tree = RStarTree(6)
    for p in points:
        tree.insert(p)
    center = Point3D(3.0, 3.0, 2.0)
    expected = {p.data for p in points if euclidean_distance_sq(p, center) <= 4.0}
    assert {p.data for p in tree.range_search(center, 2.0)} == expected


def test_knn_search_returns_nearest_in_order():
    points = _grid_2d(250)
    tree = RStarTree(5)
    for p in points:
        tree.insert(p)
    query = Point2D(6.3, 4.7)
    result = tree.knn_search(query, 6)
    assert len(result) == 6
    dists = [euclidean_distance_sq(query, p) for p in result]
    assert dists == sorted(dists)
    all_dists = sorted(euclidean_distance_sq(query, p) for p in points)
    assert dists == all_dists[:6]


def test_knn_search_3d():
    points = _grid_3d(200)
    tree = RStarTree(4)
    for p in points:
        tree.insert(p)
    query = Point3D(2.2, 3.9, 1.4)
    result = tree.knn_search(query, 5)
    all_dists = sorted(euclidean_distance_sq(query, p) for p in points)
    assert [euclidean_distance_sq(query, p) for p in result] == all_dists[:5]


def test_knn_zero_and_more_than_available():
    tree = RStarTree(4)
    points = [Point2D(1.0, 1.0, data=1), Point2D(2.0, 2.0, data=2)]
    for p in points:
        tree.insert(p)
    assert tree.knn_search(Point2D(0.0, 0.0), 0) == []
    assert tree.knn_search(Point2D(0.0, 0.0), 10) == points


def test_delete_single_and_missing():
    points = _grid_2d(120)
    tree = RStarTree(4)
    for p in points:
        tree.insert(p)
    target = points[len(points) // 2]
    assert tree.delete(target) is True
    remaining = tree.range_search_bbox(_everything_2d())
    assert target not in remaining
    assert len(remaining) == len(points) - 1
    assert tree.delete(target) is False
    assert tree.delete(Point2D(500.0, 500.0)) is False


def test_delete_all_points():
    points = _grid_2d(100)
    tree = RStarTree(4)
    for p in points:
        tree.insert(p)
    for index, p in enumerate(points):
        assert tree.delete(p) is True
        remaining = {q.data for q in tree.range_search_bbox(_everything_2d())}
        assert remaining == {q.data for q in points[index + 1:]}
    assert len(tree) == 0


def test_insert_bulk():
    points = [Point2D(float(i), float(i), data=i) for i in range(10)]
    tree = RStarTree(4)
    tree.insert_bulk(points)
    assert tree.height() == 2
    assert sorted(tree.range_search_bbox(_everything_2d()), key=lambda p: p.data) == points
    nearest = tree.knn_search(Point2D(3.1, 3.1), 1)
    assert nearest == [points[3]]


def test_insert_bulk_empty_is_noop():
    tree = RStarTree(4)
    tree.insert_bulk([])
    assert tree.height() == 1
    assert len(tree) == 0


def test_insert_bulk_then_insert_and_delete():
    points = _grid_2d(60)
    tree = RStarTree(5)
    tree.insert_bulk(points)
    extra = Point2D(100.0, 100.0, data="extra")
    tree.insert(extra)
    assert extra in tree.range_search_bbox(Rectangle(99.0, 99.0, 2.0, 2.0))
    assert tree.delete(points[0]) is True
    assert points[0] not in tree.range_search_bbox(_everything_2d())


def test_duplicate_points_both_stored():
    tree = RStarTree(3)
    same = Point2D(5.0, 5.0, data="a")
    twin = Point2D(5.0, 5.0, data="b")
    for p in _grid_2d(40):
        tree.insert(p)
    tree.insert(same)
    tree.insert(twin)
    found = tree.range_search(Point2D(5.0, 5.0), 0.0)
    assert {p.data for p in found} >= {"a", "b"}
    assert tree.delete(same) is True
    found = tree.range_search(Point2D(5.0, 5.0), 0.0)
    assert "a" not in {p.data for p in found}
    assert "b" in {p.data for p in found}


def test_custom_metric_is_used():
    tree = RStarTree(4)
    points = _grid_2d(50)
    for p in points:
        tree.insert(p)

    def manhattan_sq(a, b):
        return (abs(a.x - b.x) + abs(a.y - b.y)) ** 2

    center = Point2D(5.0, 1.0)
    found = tree.range_search(center, 1.0, manhattan_sq)
    expected = {p.data for p in points if manhattan_sq(center, p) <= 1.0}
    assert {p.data for p in found} == expected