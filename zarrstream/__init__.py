"""Chunk and shard layout, metadata documents and frame handling for Zarr v2/v3 arrays."""

__version__ = "0.1.0"

__all__ = [
    "array_metadata",
    "common",
    "dimensions",
    "frames",
    "ome",
    "settings",
    "shard_index",
]