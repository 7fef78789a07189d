"""Assembling frames from a byte stream and building the multiscale pyramid."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from .common import DataType

_NUMPY_TYPES = {
    DataType.UINT8: np.uint8,
    DataType.UINT16: np.uint16,
    DataType.UINT32: np.uint32,
    DataType.UINT64: np.uint64,
    DataType.INT8: np.int8,
    DataType.INT16: np.int16,
    DataType.INT32: np.int32,
    DataType.INT64: np.int64,
    DataType.FLOAT32: np.float32,
    DataType.FLOAT64: np.float64,
}

_DOWNSCALE = 2


def _numpy_type(data_type: int) -> np.dtype:
    try:
        return np.dtype(_NUMPY_TYPES[DataType(data_type)])
    except ValueError:
        raise ValueError(f"Invalid data type: {data_type}") from None


def scale_image(
    src: bytes | bytearray | memoryview, width: int, height: int, data_type: int
) -> tuple[bytes, int, int]:
    """Downscale a frame by two in each direction by averaging 2x2 blocks.

    Odd extents are padded by repeating the last row or column. Returns the
    scaled frame together with its new width and height.
    """
    dtype = _numpy_type(data_type)
    view = memoryview(src).cast("B")
    bytes_of_frame = width * height * dtype.itemsize
    if view.nbytes < bytes_of_frame:
        raise ValueError(
            f"Expecting at least {bytes_of_frame} bytes, got {view.nbytes}"
        )

    frame = np.frombuffer(view, dtype=dtype, count=width * height)
    frame = frame.reshape(height, width).astype(np.float64)

    w_pad = width + width % _DOWNSCALE
    h_pad = height + height % _DOWNSCALE
    padded = np.pad(frame, ((0, h_pad - height), (0, w_pad - width)), mode="edge")

    here = padded[0::2, 0::2]
    right = padded[0::2, 1::2]
    down = padded[1::2, 0::2]
    diag = padded[1::2, 1::2]
    scaled = 0.25 * (here + right + down + diag)

    return scaled.astype(dtype).tobytes(), w_pad // 2, h_pad // 2


def average_two_frames(
    dst: bytes | bytearray | memoryview,
    src: bytes | bytearray | memoryview,
    data_type: int,
) -> bytes:
    """Return the pixel-wise mean of two frames of equal size."""
    dtype = _numpy_type(data_type)
    dst_view = memoryview(dst).cast("B")
    src_view = memoryview(src).cast("B")
    if dst_view.nbytes != src_view.nbytes:
        raise ValueError(
            f"Expecting {src_view.nbytes} bytes in destination, "
            f"got {dst_view.nbytes}"
        )

    a = np.frombuffer(dst_view, dtype=dtype).astype(np.float64)
    b = np.frombuffer(src_view, dtype=dtype).astype(np.float64)
    return (0.5 * (a + b)).astype(dtype).tobytes()


class FrameAssembler:
    """Cut an arbitrary byte stream into whole frames.

    ``write_frame`` receives the bytes of one frame and returns the number of
    bytes it wrote; a short write stops the current append.
    """

    def __init__(self, bytes_of_frame: int, write_frame: Callable[[bytes], int]):
        if bytes_of_frame <= 0:
            raise ValueError(f"Invalid frame size: {bytes_of_frame}")
        self._bytes_of_frame = bytes_of_frame
        self._write_frame = write_frame
        self._buffer = bytearray(bytes_of_frame)
        self._offset = 0

    def pending(self) -> int:
        """Number of bytes held back waiting for the rest of a frame."""
        return self._offset

    def append(self, data: bytes | bytearray | memoryview) -> int:
        """Feed ``data`` into the stream; return the number of bytes consumed."""
        view = memoryview(data).cast("B")
        nbytes = view.nbytes
        frame_size = self._bytes_of_frame
        written = 0

        while written < nbytes:
            remaining = nbytes - written

            if self._offset > 0:
                to_copy = min(frame_size - self._offset, remaining)
                self._buffer[self._offset : self._offset + to_copy] = view[
                    written : written + to_copy
                ]
                self._offset += to_copy
                written += to_copy

                if self._offset == frame_size:
                    if self._write_frame(bytes(self._buffer)) < frame_size:
                        break
                    self._offset = 0
            elif remaining < frame_size:
                self._buffer[:remaining] = view[written:]
                self._offset = remaining
                written += remaining
            else:
                frame = bytes(view[written : written + frame_size])
                if self._write_frame(frame) < frame_size:
                    break
                written += frame_size

        return written


class MultiscalePyramid:
    """Produce downsampled frames for the lower-resolution levels.

    Level 0 is the full-resolution array and is not handled here. Each lower
    level averages two consecutive downscaled frames from the level above.
    """

    def __init__(self, width: int, height: int, data_type: int, levels: int):
        if levels < 1:
            raise ValueError(f"Invalid number of levels: {levels}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid frame size: {width}x{height}")
        _numpy_type(data_type)
        self._width = width
        self._height = height
        self._data_type = DataType(data_type)
        self._levels = levels
        self._held: dict[int, Optional[bytes]] = {
            level: None for level in range(1, levels)
        }

    def push(self, frame: bytes | bytearray | memoryview) -> list[tuple[int, bytes]]:
        """Take one full-resolution frame; return ``(level, frame)`` pairs ready
        to be written."""
        ready: list[tuple[int, bytes]] = []
        data: bytes | bytearray | memoryview = frame
        width, height = self._width, self._height

        for level in range(1, self._levels):
            scaled, width, height = scale_image(data, width, height, self._data_type)
            held = self._held[level]
            if held is None:
                self._held[level] = scaled
                break

            averaged = average_two_frames(scaled, held, self._data_type)
            ready.append((level, averaged))
            self._held[level] = None
            data = averaged

        return ready