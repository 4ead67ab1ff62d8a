[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spartree"
version = "0.3.0"
description = "Space partitioning trees for 2D and 3D points: quadtree, R-tree and R*-tree"
requires-python = ">=3.10"
dependencies = []
keywords = ["quadtree", "r-tree", "r-star-tree", "spatial-index", "knn", "range-search"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: GIS",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["spartree"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
