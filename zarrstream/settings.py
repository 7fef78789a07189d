"""Stream settings and their validation."""

from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Sequence, TypeVar

from .common import (
    CompressionCodec,
    CompressionParams,
    Compressor,
    DataType,
    DimensionType,
    ZarrVersion,
    is_empty_string,
    trim,
)
from .dimensions import ArrayDimensions, ZarrDimension

logger = logging.getLogger(__name__)

BLOSC_NOSHUFFLE = 0
BLOSC_SHUFFLE = 1
BLOSC_BITSHUFFLE = 2

_E = TypeVar("_E", bound=IntEnum)


class SettingsError(ValueError):
    """Raised when stream settings are invalid."""


@dataclass
class S3Settings:
    """Where to put the dataset in S3-compatible object storage."""

    endpoint: Optional[str]
    bucket_name: Optional[str]
    region: Optional[str] = None


@dataclass
class CompressionSettings:
    """Requested compression of chunk data."""

    compressor: int = Compressor.NONE
    codec: int = CompressionCodec.NONE
    level: int = 1
    shuffle: int = BLOSC_SHUFFLE


@dataclass
class DimensionProperties:
    """One dimension as requested by the user."""

    name: Optional[str]
    type: int = DimensionType.SPACE
    array_size_px: int = 0
    chunk_size_px: int = 0
    shard_size_chunks: int = 0


@dataclass
class StreamSettings:
    """Everything needed to open a stream."""

    store_path: Optional[str]
    s3_settings: Optional[S3Settings] = None
    compression_settings: Optional[CompressionSettings] = None
    data_type: int = DataType.UINT8
    version: int = ZarrVersion.V2
    dimensions: Optional[Sequence[DimensionProperties]] = field(default_factory=list)
    multiscale: bool = False
    max_threads: int = 0


def _member(enum_cls: type[_E], value: object) -> Optional[_E]:
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return None


def validate_s3_settings(settings: S3Settings) -> None:
    """Raise :class:`SettingsError` unless the S3 settings are usable."""
    if is_empty_string(settings.endpoint or "", "S3 endpoint is empty"):
        raise SettingsError("S3 endpoint is empty")

    length = len(trim(settings.bucket_name or ""))
    if length < 3 or length > 63:
        raise SettingsError(
            f"Invalid length for S3 bucket name: {length}. "
            "Must be between 3 and 63 characters"
        )


def validate_filesystem_store_path(data_root: str) -> None:
    """Raise :class:`SettingsError` unless the parent of ``data_root`` is a
    writable directory."""
    parent = os.path.dirname(data_root) or "."

    if not os.path.isdir(parent):
        raise SettingsError(
            f"Parent path '{parent}' does not exist or is not a directory"
        )

    mode = os.stat(parent).st_mode
    if not mode & (stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH):
        raise SettingsError(f"Parent path '{parent}' is not writable")


def validate_compression_settings(settings: CompressionSettings) -> None:
    """Raise :class:`SettingsError` unless the compression settings are valid."""
    compressor = _member(Compressor, settings.compressor)
    if compressor is None:
        raise SettingsError(f"Invalid compressor: {settings.compressor}")

    codec = _member(CompressionCodec, settings.codec)
    if codec is None:
        raise SettingsError(f"Invalid compression codec: {settings.codec}")

    if compressor != Compressor.NONE and codec == CompressionCodec.NONE:
        raise SettingsError("Compression codec must be set when using a compressor")

    if settings.level > 9:
        raise SettingsError(
            f"Invalid compression level: {settings.level}. Must be between 0 and 9"
        )

    if settings.shuffle not in (BLOSC_NOSHUFFLE, BLOSC_SHUFFLE, BLOSC_BITSHUFFLE):
        raise SettingsError(
            f"Invalid shuffle: {settings.shuffle}. Must be {BLOSC_NOSHUFFLE} "
            f"(no shuffle), {BLOSC_SHUFFLE} (byte  shuffle), or "
            f"{BLOSC_BITSHUFFLE} (bit shuffle)"
        )


def validate_dimension(
    dimension: DimensionProperties, version: int, is_append: bool
) -> None:
    """Raise :class:`SettingsError` unless ``dimension`` is valid.

    The append dimension may have a zero array size; it grows as frames arrive.
    """
    if is_empty_string(dimension.name or "", "Dimension name is empty"):
        raise SettingsError("Dimension name is empty")

    if _member(DimensionType, dimension.type) is None:
        raise SettingsError(f"Invalid dimension type: {dimension.type}")

    if not is_append and dimension.array_size_px == 0:
        raise SettingsError("Array size must be nonzero")

    if dimension.chunk_size_px == 0:
        raise SettingsError(f"Invalid chunk size: {dimension.chunk_size_px}")

    if version == ZarrVersion.V3 and dimension.shard_size_chunks == 0:
        raise SettingsError("Shard size must be nonzero")


def validate_settings(settings: Optional[StreamSettings]) -> None:
    """Raise :class:`SettingsError` describing the first problem found."""
    if settings is None:
        raise SettingsError("Null pointer: settings")

    version = _member(ZarrVersion, settings.version)
    if version is None:
        raise SettingsError(f"Invalid Zarr version: {settings.version}")

    if settings.store_path is None:
        raise SettingsError("Null pointer: store_path")
    if not settings.store_path:
        raise SettingsError("Store path is empty")

    if settings.s3_settings is not None:
        validate_s3_settings(settings.s3_settings)
    else:
        validate_filesystem_store_path(settings.store_path)

    if _member(DataType, settings.data_type) is None:
        raise SettingsError(f"Invalid data type: {settings.data_type}")

    if settings.compression_settings is not None:
        validate_compression_settings(settings.compression_settings)

    dimensions = settings.dimensions
    if dimensions is None:
        raise SettingsError("Null pointer: dimensions")

    if len(dimensions) < 3:
        raise SettingsError(
            f"Invalid number of dimensions: {len(dimensions)}. Must be at least 3"
        )

    if dimensions[-1].type != DimensionType.SPACE:
        raise SettingsError("Last dimension must be of type Space")

    if dimensions[-2].type != DimensionType.SPACE:
        raise SettingsError("Second to last dimension must be of type Space")

    for i, dimension in enumerate(dimensions):
        validate_dimension(dimension, version, i == 0)


def _strip_json_comments(text: str) -> str:
    out: list[str] = []
    i = 0
    n = len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
        elif ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end < 0 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                raise ValueError("Unterminated comment")
            out.append(" ")
            i = end + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def validate_custom_metadata(metadata: Optional[str]) -> bool:
    """True if ``metadata`` is non-empty JSON (comments allowed)."""
    if not metadata:
        return False
    try:
        json.loads(_strip_json_comments(metadata))
    except ValueError:
        logger.error("Invalid JSON: '%s'", metadata)
        return False
    return True


_CODEC_NAMES = {
    CompressionCodec.BLOSC_LZ4: "lz4",
    CompressionCodec.BLOSC_ZSTD: "zstd",
}


def blosc_codec_to_string(codec: int) -> str:
    """Blosc compressor name for ``codec``."""
    member = _member(CompressionCodec, codec)
    if member is None or member not in _CODEC_NAMES:
        raise ValueError(f"Invalid compression codec: {codec}")
    return _CODEC_NAMES[member]


def compression_params(settings: StreamSettings) -> Optional[CompressionParams]:
    """Blosc parameters for the stream, or None if uncompressed."""
    compression = settings.compression_settings
    if compression is None:
        return None
    return CompressionParams(
        codec_id=blosc_codec_to_string(compression.codec),
        clevel=compression.level,
        shuffle=compression.shuffle,
    )


def array_dimensions(settings: StreamSettings) -> ArrayDimensions:
    """The full-resolution array dimensions described by ``settings``."""
    dims = [
        ZarrDimension(
            name=dim.name or "",
            type=DimensionType(dim.type),
            array_size_px=dim.array_size_px,
            chunk_size_px=dim.chunk_size_px,
            shard_size_chunks=dim.shard_size_chunks,
        )
        for dim in settings.dimensions or ()
    ]
    return ArrayDimensions(dims, DataType(settings.data_type))