import pytest

from spartree.geometry import Cube, InvalidCapacityError, Point2D, Point3D, Rectangle
from spartree.r_tree import RTree


def _line_tree(count, max_entries=4):
    tree = RTree(max_entries)
    points = [Point2D(float(i), float(i), i) for i in range(count)]
    for point in points:
        tree.insert(point)
    return tree, points


@pytest.mark.parametrize("capacity", [0, 1])
def test_invalid_capacity(capacity):
    with pytest.raises(InvalidCapacityError):
        RTree(capacity)


def test_min_entries_from_max():
    assert RTree(5).min_entries == 2
    assert RTree(5).max_entries == 5


def test_range_search_bbox_2d_example():
    tree = RTree(4)
    point = Point2D(10.0, 20.0)
    tree.insert(point)
    assert tree.range_search_bbox(Rectangle(5.0, 15.0, 10.0, 10.0)) == [point]


def test_range_search_bbox_3d_example():
    tree = RTree(4)
    point = Point3D(10.0, 20.0, 30.0)
    tree.insert(point)
    assert tree.range_search_bbox(Cube(5.0, 15.0, 25.0, 10.0, 10.0, 10.0)) == [point]


def test_range_search_bbox_misses_far_box():
    tree, _ = _line_tree(10)
    assert tree.range_search_bbox(Rectangle(50.0, 50.0, 5.0, 5.0)) == []


def test_all_points_kept_after_many_inserts():
    tree, points = _line_tree(100)
    assert len(tree) == 100
    found = tree.range_search_bbox(Rectangle(-1.0, -1.0, 200.0, 200.0))
    assert sorted(p.data for p in found) == [p.data for p in points]


def test_knn_search_2d_order():
    tree, points = _line_tree(100)
    assert tree.knn_search(Point2D(0.0, 0.0), 3) == points[:3]


def test_knn_search_zero_k():
    tree, _ = _line_tree(10)
    assert tree.knn_search(Point2D(0.0, 0.0), 0) == []


def test_knn_search_more_than_available():
    tree, points = _line_tree(5)
    assert tree.knn_search(Point2D(0.0, 0.0), 10) == points


def test_knn_search_3d():
    tree = RTree(4)
    points = [Point3D(float(i), float(i), float(i), i) for i in range(50)]
    for point in points:
        tree.insert(point)
    result = tree.knn_search(Point3D(20.0, 20.0, 20.0), 1)
    assert result == [points[20]]


def test_range_search_radius_2d():
    tree = RTree(4)
    points = [Point2D(float(i), 0.0, i) for i in range(21)]
    for point in points:
        tree.insert(point)
    found = tree.range_search(Point2D(10.0, 0.0), 2.5)
    assert sorted(p.data for p in found) == [8, 9, 10, 11, 12]


def test_range_search_radius_3d():
    tree = RTree(4)
    points = [Point3D(0.0, 0.0, float(i), i) for i in range(21)]
    for point in points:
        tree.insert(point)
    found = tree.range_search(Point3D(0.0, 0.0, 0.0), 1.5)
    assert sorted(p.data for p in found) == [0, 1]


def test_range_search_custom_metric_uses_box_candidates():
    tree = RTree(4)
    near = Point2D(0.0, 0.0)
    corner = Point2D(2.0, 2.0)
    tree.insert(near)
    tree.insert(corner)
    assert tree.range_search(near, 2.5) == [near]
    found = tree.range_search(near, 2.5, metric=lambda a, b: 0.0)
    assert set(found) == {near, corner}


def test_insert_bulk_then_search():
    tree = RTree(4)
    points = [Point2D(float(i), float(i), i) for i in range(10)]
    tree.insert_bulk(points)
    assert len(tree) == 10
    assert tree.knn_search(Point2D(9.0, 9.0), 2) == [points[9], points[8]]


def test_insert_bulk_empty_is_noop():
    tree = RTree(4)
    tree.insert_bulk([])
    assert len(tree) == 0
    assert tree.knn_search(Point2D(0.0, 0.0), 1) == []


def test_delete_present_and_absent():
    tree, points = _line_tree(8)
    assert tree.delete(points[3]) is True
    assert points[3] not in tree.range_search_bbox(Rectangle(-1.0, -1.0, 20.0, 20.0))
    assert tree.delete(points[3]) is False
    assert len(tree) == 7


def test_delete_unknown_point():
    tree, _ = _line_tree(8)
    assert tree.delete(Point2D(100.0, 100.0)) is False
    assert len(tree) == 8


def test_delete_all_points():
    tree, points = _line_tree(8)
    for point in points:
        assert tree.delete(point) is True
    assert len(tree) == 0
    assert tree.range_search_bbox(Rectangle(-1.0, -1.0, 20.0, 20.0)) == []


def test_delete_keeps_remaining_points():
    tree, points = _line_tree(8)
    for point in points[::2]:
        tree.delete(point)
    remaining = sorted(p.data for p in tree)
    assert remaining == [p.data for p in points[1::2]]
    assert tree.knn_search(Point2D(0.0, 0.0), 1) == [points[1]]