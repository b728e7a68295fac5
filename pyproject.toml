[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "depth_clustering"
version = "0.1.0"
description = "Range-image based ground removal and connected-component labelling for 3D laser scans"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = [
    "lidar",
    "point cloud",
    "range image",
    "depth image",
    "ground removal",
    "segmentation",
    "connected components",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["depth_clustering"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
