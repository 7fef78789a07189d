"""Per-shard chunk index for sharded Zarr v3 arrays, with its CRC32C checksum."""

from __future__ import annotations

import struct
from typing import Iterable, MutableSequence

MISSING = 0xFFFF_FFFF_FFFF_FFFF
"""Sentinel marking an offset or size that has not been filled in."""

_CRC32C_POLY = 0x82F63B78


def _make_crc32c_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ _CRC32C_POLY if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC32C_TABLE = _make_crc32c_table()


def crc32c(data: bytes | bytearray | memoryview) -> int:
    """CRC-32C (Castagnoli) checksum of ``data``."""
    crc = 0xFFFFFFFF
    table = _CRC32C_TABLE
    for byte in bytes(data):
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


class ShardIndex:
    """Offset/size pairs for every chunk in one shard.

    Entries are laid out in the order chunks are streamed into the shard.
    Unset values hold :data:`MISSING`.
    """

    def __init__(self, chunks_per_shard: int) -> None:
        if chunks_per_shard < 0:
            raise ValueError(f"Invalid number of chunks per shard: {chunks_per_shard}")
        self._chunks_per_shard = chunks_per_shard
        self._table = [MISSING] * (2 * chunks_per_shard)

    def __len__(self) -> int:
        return self._chunks_per_shard

    def entries(self) -> list[tuple[int, int]]:
        """The ``(offset, nbytes)`` pair of each chunk, in shard order."""
        return list(zip(self._table[0::2], self._table[1::2]))

    def _check_index(self, internal_index: int) -> None:
        if not 0 <= internal_index < self._chunks_per_shard:
            raise IndexError(f"Chunk index out of range: {internal_index}")

    def record_chunk_size(self, internal_index: int, nbytes: int) -> None:
        """Store the (possibly compressed) size of a chunk."""
        self._check_index(internal_index)
        if not 0 <= nbytes < MISSING:
            raise ValueError(f"Invalid chunk size: {nbytes}")
        self._table[2 * internal_index + 1] = nbytes

    def _layer_start(self, layer: int, chunks_per_layer: int) -> int:
        if chunks_per_layer <= 0:
            raise ValueError(f"Invalid number of chunks per layer: {chunks_per_layer}")
        start = layer * chunks_per_layer
        if layer < 0 or start + chunks_per_layer > self._chunks_per_shard:
            raise IndexError(f"Layer out of range: {layer}")
        return start

    def compute_layer_offsets(
        self, layer: int, chunks_per_layer: int, file_offset: int
    ) -> int:
        """Assign file offsets to the chunks of ``layer``, packed back to back.

        The first chunk starts at ``file_offset``; chunks without a recorded
        size are skipped. Returns the number of bytes the layer occupies.
        """
        start = self._layer_start(layer, chunks_per_layer)
        table = self._table

        first_size = table[2 * start + 1]
        if first_size == MISSING:
            raise ValueError(f"First chunk of layer {layer} has no recorded size.")

        table[2 * start] = file_offset
        last_offset = file_offset
        last_size = first_size
        shard_size = first_size

        for i in range(start + 1, start + chunks_per_layer):
            size = table[2 * i + 1]
            if size == MISSING:
                continue
            table[2 * i] = last_offset + last_size
            last_offset = table[2 * i]
            last_size = size
            shard_size += size

        return shard_size

    def defragment(
        self,
        buffer: MutableSequence[int],
        layer: int,
        chunks_per_layer: int,
        bytes_per_chunk: int,
    ) -> int:
        """Compact the chunks of ``layer`` held in fixed-size slots of ``buffer``.

        Chunk data is moved so that chunks follow one another without gaps.
        Returns the number of bytes of compacted data at the start of ``buffer``.
        """
        start = self._layer_start(layer, chunks_per_layer)
        table = self._table

        first_size = table[2 * start + 1]
        if first_size == MISSING:
            raise ValueError(f"First chunk of layer {layer} has no recorded size.")

        slot = 1
        write_at = first_size
        for i in range(start + 1, start + chunks_per_layer):
            size = table[2 * i + 1]
            if size == MISSING:
                continue
            read_at = slot * bytes_per_chunk
            if read_at + size > len(buffer):
                raise ValueError("Chunk data runs past the end of the buffer.")
            buffer[write_at : write_at + size] = bytes(buffer[read_at : read_at + size])
            write_at += size
            slot += 1

        return write_at

    def to_bytes(self) -> bytes:
        """The index as little-endian uint64 pairs followed by its CRC32C."""
        table_bytes = struct.pack(f"<{len(self._table)}Q", *self._table)
        return table_bytes + struct.pack("<I", crc32c(table_bytes))

    def reset(self) -> None:
        """Mark every offset and size as missing."""
        self._table = [MISSING] * (2 * self._chunks_per_shard)

    @classmethod
    def from_entries(cls, entries: Iterable[tuple[int, int]]) -> "ShardIndex":
        """Build an index from ``(offset, nbytes)`` pairs."""
        pairs = list(entries)
        index = cls(len(pairs))
        index._table = [value for pair in pairs for value in pair]
        return index