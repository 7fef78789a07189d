"""Array metadata documents and storage paths for Zarr v2 and v3 arrays."""

from __future__ import annotations

import sys
from typing import Any, Optional

from .common import CompressionParams, DataType, bytes_of_type
from .dimensions import ArrayDimensions

_V2_TYPE_CODES = {
    DataType.UINT8: "u1",
    DataType.UINT16: "u2",
    DataType.UINT32: "u4",
    DataType.UINT64: "u8",
    DataType.INT8: "i1",
    DataType.INT16: "i2",
    DataType.INT32: "i4",
    DataType.INT64: "i8",
    DataType.FLOAT32: "f4",
    DataType.FLOAT64: "f8",
}

_V3_TYPE_NAMES = {
    DataType.UINT8: "uint8",
    DataType.UINT16: "uint16",
    DataType.UINT32: "uint32",
    DataType.UINT64: "uint64",
    DataType.INT8: "int8",
    DataType.INT16: "int16",
    DataType.INT32: "int32",
    DataType.INT64: "int64",
    DataType.FLOAT32: "float32",
    DataType.FLOAT64: "float64",
}

_SHUFFLE_NAMES = {0: "noshuffle", 1: "shuffle", 2: "bitshuffle"}


def _data_type(data_type: int) -> DataType:
    try:
        return DataType(data_type)
    except ValueError:
        raise ValueError(f"Unsupported sample type: {data_type}") from None


def v2_dtype(data_type: int) -> str:
    """Zarr v2 dtype string, with the native byte order as prefix."""
    prefix = ">" if sys.byteorder == "big" else "<"
    return prefix + _V2_TYPE_CODES[_data_type(data_type)]


def v3_dtype(data_type: int) -> str:
    """Zarr v3 data type name."""
    return _V3_TYPE_NAMES[_data_type(data_type)]


def shuffle_to_string(shuffle: int) -> str:
    """Blosc shuffle mode name as used in v3 codec configuration."""
    try:
        return _SHUFFLE_NAMES[shuffle]
    except KeyError:
        raise ValueError(f"Invalid shuffle value: {shuffle}") from None


def append_dimension_size(dimensions: ArrayDimensions, frames_written: int) -> int:
    """Extent of the append dimension after ``frames_written`` frames."""
    append_size = frames_written
    for i in range(dimensions.ndims() - 3, 0, -1):
        array_size_px = dimensions[i].array_size_px
        if not array_size_px:
            raise ValueError(f"Dimension {dimensions[i].name!r} has zero array size.")
        append_size = -(-append_size // array_size_px)
    return append_size


def _array_shape(dimensions: ArrayDimensions, frames_written: int) -> list[int]:
    shape = [append_dimension_size(dimensions, frames_written)]
    shape.extend(dim.array_size_px for dim in list(dimensions)[1:])
    return shape


def v2_array_metadata(
    dimensions: ArrayDimensions,
    frames_written: int,
    compression: Optional[CompressionParams],
) -> dict[str, Any]:
    """The ``.zarray`` document for a Zarr v2 array."""
    compressor: Optional[dict[str, Any]] = None
    if compression is not None:
        compressor = {
            "id": "blosc",
            "cname": compression.codec_id,
            "clevel": compression.clevel,
            "shuffle": compression.shuffle,
        }

    return {
        "zarr_format": 2,
        "shape": _array_shape(dimensions, frames_written),
        "chunks": [dim.chunk_size_px for dim in dimensions],
        "dtype": v2_dtype(dimensions.dtype()),
        "fill_value": 0,
        "order": "C",
        "filters": None,
        "dimension_separator": "/",
        "compressor": compressor,
    }


def v3_array_metadata(
    dimensions: ArrayDimensions,
    frames_written: int,
    compression: Optional[CompressionParams],
) -> dict[str, Any]:
    """The ``zarr.json`` document for a sharded Zarr v3 array."""
    chunk_shape = [dim.chunk_size_px for dim in dimensions]
    shard_shape = [dim.shard_size_chunks * dim.chunk_size_px for dim in dimensions]

    codecs: list[dict[str, Any]] = [
        {"configuration": {"endian": "little"}, "name": "bytes"}
    ]
    if compression is not None:
        codecs.append(
            {
                "configuration": {
                    "blocksize": 0,
                    "clevel": compression.clevel,
                    "cname": compression.codec_id,
                    "shuffle": shuffle_to_string(compression.shuffle),
                    "typesize": bytes_of_type(dimensions.dtype()),
                },
                "name": "blosc",
            }
        )

    sharding_indexed = {
        "name": "sharding_indexed",
        "configuration": {
            "chunk_shape": chunk_shape,
            "index_codecs": [
                {"configuration": {"endian": "little"}, "name": "bytes"},
                {"name": "crc32c"},
            ],
            "index_location": "end",
            "codecs": codecs,
        },
    }

    return {
        "shape": _array_shape(dimensions, frames_written),
        "chunk_grid": {
            "name": "regular",
            "configuration": {"chunk_shape": shard_shape},
        },
        "chunk_key_encoding": {
            "name": "default",
            "configuration": {"separator": "/"},
        },
        "fill_value": 0,
        "attributes": {},
        "zarr_format": 3,
        "node_type": "array",
        "storage_transformers": [],
        "data_type": v3_dtype(dimensions.dtype()),
        "codecs": [sharding_indexed],
    }


def v2_metadata_path(store_path: str, level_of_detail: int) -> str:
    return f"{store_path}/{level_of_detail}/.zarray"


def v3_metadata_path(store_path: str, level_of_detail: int) -> str:
    return f"{store_path}/{level_of_detail}/zarr.json"


def v2_data_root(store_path: str, level_of_detail: int, append_chunk_index: int) -> str:
    return f"{store_path}/{level_of_detail}/{append_chunk_index}"


def v3_data_root(store_path: str, level_of_detail: int, append_chunk_index: int) -> str:
    return f"{store_path}/{level_of_detail}/c/{append_chunk_index}"


def v3_should_rollover(dimensions: ArrayDimensions, frames_written: int) -> bool:
    """True when ``frames_written`` completes a full layer of shards."""
    append_dim = dimensions.final_dim()
    frames_before_flush = append_dim.chunk_size_px * append_dim.shard_size_chunks
    for i in range(1, dimensions.ndims() - 2):
        frames_before_flush *= dimensions[i].array_size_px
    if frames_before_flush <= 0:
        raise ValueError("Number of frames before flush must be positive.")
    return frames_written % frames_before_flush == 0