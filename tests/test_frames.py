import numpy as np
import pytest

from zarrstream.array_metadata import append_dimension_size
from zarrstream.common import DataType, DimensionType, bytes_of_frame
from zarrstream.dimensions import ArrayDimensions, ZarrDimension
from zarrstream.frames import (
    FrameAssembler,
    MultiscalePyramid,
    average_two_frames,
    scale_image,
)

ARRAY_WIDTH = 64
ARRAY_HEIGHT = 48
FRAMES_TO_ACQUIRE = 12
FRAMES_PER_APPEND = 3


def _collector():
    frames = []

    def write(frame):
        frames.append(frame)
        return len(frame)

    return frames, write


def test_multi_frame_append():
    dims = ArrayDimensions(
        [
            ZarrDimension("t", DimensionType.TIME, 0, 5, 2),
            ZarrDimension("y", DimensionType.SPACE, ARRAY_HEIGHT, 16, 2),
            ZarrDimension("x", DimensionType.SPACE, ARRAY_WIDTH, 16, 2),
        ],
        DataType.UINT16,
    )
    frame_size = bytes_of_frame(dims, DataType.UINT16)
    assert frame_size == ARRAY_WIDTH * ARRAY_HEIGHT * 2
    multi_frame_size = frame_size * FRAMES_PER_APPEND

    frames, write = _collector()
    assembler = FrameAssembler(frame_size, write)

    for i in range(0, FRAMES_TO_ACQUIRE, FRAMES_PER_APPEND):
        data = np.concatenate(
            [
                np.full(ARRAY_WIDTH * ARRAY_HEIGHT, i + f, dtype=np.uint16)
                for f in range(FRAMES_PER_APPEND)
            ]
        )
        assert assembler.append(data.tobytes()) == multi_frame_size

    assert len(frames) == FRAMES_TO_ACQUIRE
    assert assembler.pending() == 0
    for i, frame in enumerate(frames):
        values = np.frombuffer(frame, dtype=np.uint16)
        assert values.min() == i and values.max() == i
    assert append_dimension_size(dims, len(frames)) == FRAMES_TO_ACQUIRE


def test_partial_frames_are_buffered():
    frames, write = _collector()
    assembler = FrameAssembler(4, write)
    assert assembler.append(b"ab") == 2
    assert assembler.pending() == 2
    assert frames == []
    assert assembler.append(b"cdefg") == 5
    assert frames == [b"abcd"]
    assert assembler.pending() == 3
    assert assembler.append(b"h") == 1
    assert frames == [b"abcd", b"efgh"]
    assert assembler.pending() == 0


def test_empty_append_writes_nothing():
    frames, write = _collector()
    assembler = FrameAssembler(4, write)
    assert assembler.append(b"") == 0
    assert frames == []


def test_short_write_stops_append():
    assembler = FrameAssembler(4, lambda frame: 0)
    assert assembler.append(b"abcdefgh") == 0


def test_invalid_frame_size():
    with pytest.raises(ValueError):
        FrameAssembler(0, lambda frame: 0)


def test_scale_image_even():
    src = np.array([1, 2, 3, 4], dtype=np.uint8).tobytes()
    out, width, height = scale_image(src, 2, 2, DataType.UINT8)
    assert (width, height) == (1, 1)
    assert list(np.frombuffer(out, dtype=np.uint8)) == [2]


def test_scale_image_odd_pads_edges():
    src = np.arange(9, dtype=np.uint16).tobytes()
    out, width, height = scale_image(src, 3, 3, DataType.UINT16)
    assert (width, height) == (2, 2)
    assert list(np.frombuffer(out, dtype=np.uint16)) == [2, 3, 6, 8]


def test_scale_image_truncates_toward_zero():
    src = np.array([-1, -2, -3, -4], dtype=np.int8).tobytes()
    out, _, _ = scale_image(src, 2, 2, DataType.INT8)
    assert list(np.frombuffer(out, dtype=np.int8)) == [-2]


def test_scale_image_float():
    src = np.array([1, 2, 3, 4], dtype=np.float32).tobytes()
    out, _, _ = scale_image(src, 2, 2, DataType.FLOAT32)
    assert list(np.frombuffer(out, dtype=np.float32)) == [2.5]


def test_scale_image_too_short():
    with pytest.raises(ValueError):
        scale_image(b"\x00\x00\x00", 2, 2, DataType.UINT8)


def test_average_two_frames():
    a = np.array([10, 20], dtype=np.uint8).tobytes()
    b = np.array([20, 25], dtype=np.uint8).tobytes()
    out = average_two_frames(a, b, DataType.UINT8)
    assert list(np.frombuffer(out, dtype=np.uint8)) == [15, 22]


def test_average_two_frames_size_mismatch():
    with pytest.raises(ValueError):
        average_two_frames(b"\x00\x00", b"\x00", DataType.UINT8)


def test_pyramid_levels():
    pyramid = MultiscalePyramid(4, 4, DataType.UINT8, 3)
    low = bytes([8] * 16)
    high = bytes([16] * 16)

    assert pyramid.push(low) == []
    assert pyramid.push(high) == [(1, bytes([12] * 4))]
    assert pyramid.push(low) == []
    assert pyramid.push(high) == [(1, bytes([12] * 4)), (2, bytes([12]))]


def test_pyramid_single_level_emits_nothing():
    pyramid = MultiscalePyramid(4, 4, DataType.UINT8, 1)
    assert pyramid.push(bytes(16)) == []
    assert pyramid.push(bytes(16)) == []


def test_pyramid_invalid_levels():
    with pytest.raises(ValueError):
        MultiscalePyramid(4, 4, DataType.UINT8, 0)