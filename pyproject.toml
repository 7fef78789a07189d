[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zarrstream"
version = "0.1.0"
description = "Chunk and shard arithmetic, metadata and frame handling for streaming image frames into Zarr v2 and v3 arrays"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["zarr", "ome-ngff", "microscopy", "streaming", "chunking", "sharding"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["zarrstream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
