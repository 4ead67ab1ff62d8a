"""Space partitioning trees for 2D and 3D points: quadtree, R-tree and R*-tree."""

__version__ = "0.3.0"