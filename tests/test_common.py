import pytest

from zarrstream.common import (
    CompressionParams,
    DataType,
    DimensionType,
    bytes_of_frame,
    bytes_of_type,
    chunks_along_dimension,
    is_empty_string,
    shards_along_dimension,
    trim,
)
from zarrstream.dimensions import ArrayDimensions, ZarrDimension


def _dims(height, width, dtype):
    return ArrayDimensions(
        [
            ZarrDimension("t", DimensionType.TIME, 0, 5, 1),
            ZarrDimension("y", DimensionType.SPACE, height, 16, 1),
            ZarrDimension("x", DimensionType.SPACE, width, 16, 1),
        ],
        dtype,
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  hello  ", "hello"),
        ("\t\nabc\r\n", "abc"),
        ("a b", "a b"),
        ("", ""),
        ("   ", ""),
    ],
)
def test_trim(raw, expected):
    assert trim(raw) == expected


def test_trim_is_idempotent():
    once = trim("  \v x y \f ")
    assert trim(once) == once


def test_is_empty_string_blank():
    assert is_empty_string("  \t ", "empty") is True
    assert is_empty_string("", "empty") is True


def test_is_empty_string_nonblank():
    assert is_empty_string(" s3 ", "empty") is False


@pytest.mark.parametrize(
    "dtype, size",
    [
        (DataType.INT8, 1),
        (DataType.UINT8, 1),
        (DataType.INT16, 2),
        (DataType.UINT16, 2),
        (DataType.INT32, 4),
        (DataType.UINT32, 4),
        (DataType.FLOAT32, 4),
        (DataType.INT64, 8),
        (DataType.UINT64, 8),
        (DataType.FLOAT64, 8),
    ],
)
def test_bytes_of_type(dtype, size):
    assert bytes_of_type(dtype) == size


def test_bytes_of_type_accepts_int_value():
    assert bytes_of_type(int(DataType.UINT16)) == bytes_of_type(DataType.UINT16)


def test_bytes_of_type_invalid():
    with pytest.raises(ValueError, match="Invalid data type"):
        bytes_of_type(99)


def test_bytes_of_frame_scales_with_type():
    dims = _dims(48, 64, DataType.UINT8)
    assert bytes_of_frame(dims, DataType.UINT16) == 2 * bytes_of_frame(
        dims, DataType.UINT8
    )
    assert bytes_of_frame(dims, DataType.FLOAT64) == 8 * bytes_of_frame(
        dims, DataType.INT8
    )


def test_bytes_of_frame_single_pixel():
    dims = _dims(1, 1, DataType.UINT64)
    assert bytes_of_frame(dims, DataType.UINT64) == bytes_of_type(DataType.UINT64)


def test_chunks_along_dimension_ragged():
    y = ZarrDimension("y", DimensionType.SPACE, 960, 320, 2)
    x = ZarrDimension("x", DimensionType.SPACE, 1080, 270, 3)
    assert chunks_along_dimension(y) == 3
    assert chunks_along_dimension(x) == 4


def test_chunks_along_dimension_zero_chunk_size():
    dim = ZarrDimension("x", DimensionType.SPACE, 64, 0, 1)
    with pytest.raises(ValueError, match="Invalid chunk size"):
        chunks_along_dimension(dim)


def test_shards_along_dimension_ragged():
    y = ZarrDimension("y", DimensionType.SPACE, 960, 320, 2)
    x = ZarrDimension("x", DimensionType.SPACE, 1080, 270, 3)
    assert shards_along_dimension(y) == 2
    assert shards_along_dimension(x) == 2


def test_shards_along_dimension_unsharded():
    dim = ZarrDimension("x", DimensionType.SPACE, 64, 16, 0)
    assert shards_along_dimension(dim) == 0


def test_compression_params_is_immutable():
    params = CompressionParams("zstd", 1, 1)
    assert params.codec_id == "zstd"
    with pytest.raises(AttributeError):
        params.clevel = 5