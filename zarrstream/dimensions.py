"""Array dimensions and the chunk/shard lattice arithmetic over them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .common import (
    DataType,
    DimensionType,
    bytes_of_type,
    chunks_along_dimension,
    shards_along_dimension,
)


@dataclass
class ZarrDimension:
    """One dimension of an array: its extent, chunking and sharding."""

    name: str = ""
    type: DimensionType = DimensionType.SPACE
    array_size_px: int = 0
    chunk_size_px: int = 0
    shard_size_chunks: int = 0


class ArrayDimensions:
    """Ordered dimensions of an array, slowest-varying (append) first."""

    def __init__(self, dims: Iterable[ZarrDimension], dtype: DataType) -> None:
        self._dims = tuple(dims)
        self._dtype = DataType(dtype)
        if len(self._dims) <= 2:
            raise ValueError("Array must have at least three dimensions.")

        bytes_per_chunk = bytes_of_type(self._dtype)
        chunks_per_shard = 1
        chunks_in_memory = 1
        number_of_shards = 1
        for i, dim in enumerate(self._dims):
            bytes_per_chunk *= dim.chunk_size_px
            chunks_per_shard *= dim.shard_size_chunks
            if i > 0:
                chunks_in_memory *= chunks_along_dimension(dim)
                number_of_shards *= shards_along_dimension(dim)

        self._bytes_per_chunk = bytes_per_chunk
        self._chunks_per_shard = chunks_per_shard
        self._number_of_chunks_in_memory = chunks_in_memory
        self._number_of_shards = number_of_shards

        total = chunks_per_shard * number_of_shards
        self._shard_indices = {i: self._compute_shard_index(i) for i in range(total)}
        self._shard_internal_indices = {
            i: self._compute_shard_internal_index(i) for i in range(total)
        }

    def __len__(self) -> int:
        return len(self._dims)

    def __getitem__(self, idx: int) -> ZarrDimension:
        return self._dims[idx]

    def __iter__(self) -> Iterator[ZarrDimension]:
        return iter(self._dims)

    def ndims(self) -> int:
        return len(self._dims)

    def dtype(self) -> DataType:
        return self._dtype

    def final_dim(self) -> ZarrDimension:
        """The append (slowest-varying) dimension."""
        return self._dims[0]

    def height_dim(self) -> ZarrDimension:
        return self._dims[-2]

    def width_dim(self) -> ZarrDimension:
        return self._dims[-1]

    def chunk_lattice_index(self, frame_id: int, dim_index: int) -> int:
        """Index in the chunk lattice along ``dim_index`` for a frame."""
        n = self.ndims()
        if not 0 <= dim_index < n - 2:
            raise ValueError(f"Invalid dimension index: {dim_index}")

        if dim_index == 0:
            divisor = self._dims[0].chunk_size_px
            for dim in self._dims[1 : n - 2]:
                divisor *= dim.array_size_px
            if not divisor:
                raise ValueError("Chunk lattice divisor is zero.")
            return frame_id // divisor

        mod_divisor = 1
        div_divisor = 1
        for i in range(dim_index, n - 2):
            dim = self._dims[i]
            mod_divisor *= dim.array_size_px
            div_divisor *= dim.chunk_size_px if i == dim_index else dim.array_size_px
        if not mod_divisor or not div_divisor:
            raise ValueError("Chunk lattice divisor is zero.")
        return (frame_id % mod_divisor) // div_divisor

    def tile_group_offset(self, frame_id: int) -> int:
        """Offset into the in-memory chunk buffers for a frame."""
        n = self.ndims()
        strides = [1] * n
        for i in range(n - 1, 0, -1):
            strides[i - 1] = strides[i] * chunks_along_dimension(self._dims[i])

        return sum(
            self.chunk_lattice_index(frame_id, i) * strides[i]
            for i in range(n - 3, 0, -1)
        )

    def chunk_internal_offset(self, frame_id: int) -> int:
        """Byte offset inside a chunk at which a frame's tile begins."""
        n = self.ndims()
        tile_size = (
            bytes_of_type(self._dtype)
            * self.width_dim().chunk_size_px
            * self.height_dim().chunk_size_px
        )

        array_strides = [1] * (n - 2)
        chunk_strides = [1] * (n - 2)
        offset = 0
        for i in range(n - 3, 0, -1):
            dim = self._dims[i]
            internal_idx = (
                (frame_id // array_strides[i]) % dim.array_size_px % dim.chunk_size_px
            )
            array_strides[i - 1] = array_strides[i] * dim.array_size_px
            chunk_strides[i - 1] = chunk_strides[i] * dim.chunk_size_px
            offset += internal_idx * chunk_strides[i]

        final = self._dims[0]
        internal_idx = (frame_id // array_strides[0]) % final.chunk_size_px
        offset += internal_idx * chunk_strides[0]

        return offset * tile_size

    def number_of_chunks_in_memory(self) -> int:
        return self._number_of_chunks_in_memory

    def bytes_per_chunk(self) -> int:
        return self._bytes_per_chunk

    def number_of_shards(self) -> int:
        return self._number_of_shards

    def chunks_per_shard(self) -> int:
        return self._chunks_per_shard

    def chunk_layers_per_shard(self) -> int:
        return self._dims[0].shard_size_chunks

    def shard_index_for_chunk(self, chunk_index: int) -> int:
        """Index of the shard holding the given chunk."""
        try:
            return self._shard_indices[chunk_index]
        except KeyError:
            raise IndexError(f"Chunk index out of range: {chunk_index}") from None

    def shard_internal_index(self, chunk_index: int) -> int:
        """Streaming position of the given chunk within its shard."""
        try:
            return self._shard_internal_indices[chunk_index]
        except KeyError:
            raise IndexError(f"Chunk index out of range: {chunk_index}") from None

    def _chunk_strides(self) -> list[int]:
        n = self.ndims()
        strides = [1] * n
        for i in range(n - 1, 0, -1):
            strides[i - 1] = strides[i] * chunks_along_dimension(self._dims[i])
        return strides

    def _chunk_lattice_indices(self, chunk_index: int, strides: list[int]) -> list[int]:
        n = self.ndims()
        indices = [0] * n
        for i in range(n - 1, 0, -1):
            indices[i] = chunk_index % strides[i - 1] // strides[i]
        return indices

    def _compute_shard_index(self, chunk_index: int) -> int:
        n = self.ndims()
        chunk_strides = self._chunk_strides()
        lattice = self._chunk_lattice_indices(chunk_index, chunk_strides)

        shard_strides = [1] * n
        for i in range(n - 1, 0, -1):
            shard_strides[i - 1] = shard_strides[i] * shards_along_dimension(
                self._dims[i]
            )

        return sum(
            (idx // dim.shard_size_chunks) * stride
            for idx, dim, stride in zip(lattice, self._dims, shard_strides)
        )

    def _compute_shard_internal_index(self, chunk_index: int) -> int:
        n = self.ndims()
        chunk_strides = self._chunk_strides()
        lattice = self._chunk_lattice_indices(chunk_index, chunk_strides)
        lattice[0] = chunk_index // chunk_strides[0]

        internal_strides = [1] * n
        for i in range(n - 1, 0, -1):
            internal_strides[i - 1] = (
                internal_strides[i] * self._dims[i].shard_size_chunks
            )

        return sum(
            (idx % dim.shard_size_chunks) * stride
            for idx, dim, stride in zip(lattice, self._dims, internal_strides)
        )