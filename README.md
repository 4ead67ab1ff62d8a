# spartree

Space partitioning trees for indexing 2D and 3D points, in pure Python with no
dependencies beyond the standard library.

- `spartree.quadtree.Quadtree` — a region quadtree over a fixed `Rectangle` boundary, for `Point2D`.
- `spartree.r_tree.RTree` — an R-tree holding `Point2D` or `Point3D` objects.
- `spartree.r_star_tree.RStarTree` — an R*-tree with forced reinsertion and
  margin/overlap driven splits, holding `Point2D` or `Point3D` objects.

Every tree supports `insert`, `insert_bulk`, `delete`, `knn_search` and
`range_search`; the R-tree and R*-tree also have `range_search_bbox`. All trees
can be iterated over (yielding the stored points) and support `len()`.

## Geometry

`spartree.geometry` holds the shared types:

- `Point2D(x, y, data=None)` and `Point3D(x, y, z, data=None)` — frozen
  dataclasses. Equality compares `data` too, which matters for `delete`.
- `Rectangle(x, y, width, height)` and `Cube(x, y, z, width, height, depth)` —
  axis-aligned boxes given by their lower corner and size, with `contains`,
  `intersects`, `union`, `area` (volume for a cube), `overlap`, `enlargement`,
  `margin`, `center`, `min_distance` and the class method `from_point_radius`.
- `euclidean_distance_sq(a, b)` — the default metric.
- `mbr_of(point)` — the tiny box (side `1e-10`) used to index a single point.

## Quadtree

```python
from spartree.geometry import Point2D, Rectangle
from spartree.quadtree import Quadtree

tree = Quadtree(Rectangle(x=0.0, y=0.0, width=100.0, height=100.0), 4)

tree.insert(Point2D(10.0, 20.0, "a"))
tree.insert(Point2D(50.0, 50.0, "b"))

nearest = tree.knn_search(Point2D(12.0, 22.0), 1)
nearby = tree.range_search(Point2D(12.0, 22.0), 10.0)
tree.delete(Point2D(10.0, 20.0, "a"))
```

Points outside the boundary are not stored: `insert` returns `False` for them
and `insert_bulk` skips them. A node splits into four quadrants once it holds
`capacity` points, and quadrants are merged back after deletions when their
points fit in the parent again. The properties `boundary`, `capacity`,
`is_divided` and `children` expose the node's shape.

## R-tree and R*-tree

```python
from spartree.geometry import Cube, Point3D
from spartree.r_star_tree import RStarTree

tree = RStarTree(4)          # spartree.r_tree.RTree(4) has the same interface
tree.insert(Point3D(10.0, 20.0, 30.0, "a"))
tree.insert_bulk([Point3D(float(i), float(i), float(i), i) for i in range(100)])

box = Cube(x=5.0, y=15.0, z=25.0, width=10.0, height=10.0, depth=10.0)
hits = tree.range_search_bbox(box)
within = tree.range_search(Point3D(10.0, 20.0, 30.0), 5.0)
nearest = tree.knn_search(Point3D(0.0, 0.0, 0.0), 3)
tree.delete(Point3D(10.0, 20.0, 30.0, "a"))
```

`insert_bulk` packs the points into full nodes level by level rather than
inserting them one at a time. `delete` removes one matching point and returns
whether one was found; nodes left underfull are dissolved and their entries
inserted again. `RStarTree.height()` returns the number of levels, and `RTree`
has the `max_entries` and `min_entries` properties.

The lower-level pieces are public too: `spartree.rtree_common` (the `Entry` and
`Node` types with `compute_group_mbr`, `search_node`, `delete_entry` and
`knn_search`) and `spartree.rstar_split` (`choose_subtree`, `forced_reinsert`
and `split_entries`).

## Metrics

The optional `metric` argument of `knn_search` and `range_search` is any
function returning the squared distance between two points; it defaults to
`euclidean_distance_sq`. Pruning assumes Euclidean geometry, so metrics that
disagree with it may give incomplete results. `knn_search` returns at most `k`
points, nearest first, and an empty list when `k` is zero or less.

## Errors

Creating a tree with too small a capacity (less than one for a quadtree, less
than two for the R-tree family) raises `InvalidCapacityError`, a subclass of
both `SpartError` and `ValueError`, found in `spartree.geometry`.

## What it does not do

Trees live in memory only: there is no way to save a tree to a file or load one
back. The package is a library and provides no command-line program.

## Tests

The test suite uses pytest, which the `test` extra installs.