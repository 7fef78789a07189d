"""Shared enumerations, compression parameters and size helpers."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

MAX_CONCURRENT_FILES = 256

_WHITESPACE = " \t\n\v\f\r"


class DataType(enum.IntEnum):
    """Sample types an array may hold."""

    UINT8 = 0
    UINT16 = 1
    UINT32 = 2
    UINT64 = 3
    INT8 = 4
    INT16 = 5
    INT32 = 6
    INT64 = 7
    FLOAT32 = 8
    FLOAT64 = 9


class DimensionType(enum.IntEnum):
    """Kinds of array dimension."""

    SPACE = 0
    CHANNEL = 1
    TIME = 2
    OTHER = 3


class ZarrVersion(enum.IntEnum):
    """Supported Zarr format versions."""

    V2 = 2
    V3 = 3


class Compressor(enum.IntEnum):
    """Compression libraries."""

    NONE = 0
    BLOSC1 = 1


class CompressionCodec(enum.IntEnum):
    """Codecs offered by the compressor."""

    NONE = 0
    BLOSC_LZ4 = 1
    BLOSC_ZSTD = 2


@dataclass(frozen=True)
class CompressionParams:
    """Blosc compression parameters as written to array metadata."""

    codec_id: str
    clevel: int = 1
    shuffle: int = 1


_BYTES_OF_TYPE = {
    DataType.INT8: 1,
    DataType.UINT8: 1,
    DataType.INT16: 2,
    DataType.UINT16: 2,
    DataType.INT32: 4,
    DataType.UINT32: 4,
    DataType.FLOAT32: 4,
    DataType.INT64: 8,
    DataType.UINT64: 8,
    DataType.FLOAT64: 8,
}


class _Dimension(Protocol):
    array_size_px: int
    chunk_size_px: int
    shard_size_chunks: int


def trim(s: str) -> str:
    """Return ``s`` with leading and trailing whitespace removed."""
    return s.strip(_WHITESPACE) if s else ""


def is_empty_string(s: str, err_on_empty: str) -> bool:
    """Return True, logging ``err_on_empty``, if ``s`` is blank."""
    if not trim(s):
        logger.error(err_on_empty)
        return True
    return False


def bytes_of_type(data_type: int) -> int:
    """Return the size in bytes of one sample of ``data_type``."""
    try:
        return _BYTES_OF_TYPE[DataType(data_type)]
    except ValueError:
        raise ValueError(f"Invalid data type: {data_type}") from None


def bytes_of_frame(dims, data_type: int) -> int:
    """Return the size in bytes of one frame of the given array."""
    height = dims.height_dim().array_size_px
    width = dims.width_dim().array_size_px
    return bytes_of_type(data_type) * height * width


def chunks_along_dimension(dimension: _Dimension) -> int:
    """Return the number of (possibly ragged) chunks along ``dimension``."""
    if dimension.chunk_size_px <= 0:
        raise ValueError("Invalid chunk size.")
    return -(-dimension.array_size_px // dimension.chunk_size_px)


def shards_along_dimension(dimension: _Dimension) -> int:
    """Return the number of shards along ``dimension``, or 0 if unsharded."""
    shard_size = dimension.shard_size_chunks
    if shard_size == 0:
        return 0
    return -(-chunks_along_dimension(dimension) // shard_size)