# zarrstream

Building blocks for streaming image frames into chunked Zarr arrays. It covers
Zarr v2, where every chunk is its own file, and Zarr v3, where chunks are
grouped into shard files with a trailing index. It also builds OME-NGFF
multiscale metadata.

## Installation

```
pip install zarrstream
```

To run the tests:

```
pip install "zarrstream[test]"
pytest
```

## Modules

- `zarrstream.common`: the enums `DataType`, `DimensionType`, `ZarrVersion`,
  `Compressor` and `CompressionCodec`, the frozen dataclass
  `CompressionParams`, and the helpers `trim`, `is_empty_string`,
  `bytes_of_type`, `bytes_of_frame`, `chunks_along_dimension` and
  `shards_along_dimension`.
- `zarrstream.dimensions`: `ZarrDimension` and `ArrayDimensions`. An
  `ArrayDimensions` needs at least three dimensions, ordered with the append
  dimension first and height and width last. It maps a frame number to its
  chunk lattice index (`chunk_lattice_index`), its offset among the in-memory
  chunk buffers (`tile_group_offset`) and its byte offset inside a chunk
  (`chunk_internal_offset`). It also maps a chunk to its shard
  (`shard_index_for_chunk`) and to its position inside that shard
  (`shard_internal_index`).
- `zarrstream.array_metadata`: the `.zarray` document (`v2_array_metadata`)
  and the sharded v3 `zarr.json` document (`v3_array_metadata`), dtype names
  (`v2_dtype`, `v3_dtype`), `shuffle_to_string`, `append_dimension_size`,
  metadata and data paths (`v2_metadata_path`, `v3_metadata_path`,
  `v2_data_root`, `v3_data_root`), and `v3_should_rollover`, which says when a
  full layer of shards has been written.
- `zarrstream.shard_index`: `ShardIndex` is the offset/size table stored at the
  end of every v3 shard. It records chunk sizes, packs a layer's chunks back to
  back (`compute_layer_offsets`, `defragment`) and serialises itself as
  little-endian uint64 pairs followed by a CRC-32C checksum (`to_bytes`,
  `crc32c`). Offsets and sizes not yet filled in hold `MISSING`.
- `zarrstream.settings`: the dataclasses `StreamSettings`, `S3Settings`,
  `CompressionSettings` and `DimensionProperties`. The `validate_*` functions
  raise `SettingsError` with a message that names the first problem found.
  `validate_custom_metadata` returns whether a string is non-empty JSON, with
  comments allowed. `compression_params` and `array_dimensions` turn the
  settings into the objects used by the other modules.
- `zarrstream.ome`: OME-NGFF multiscale metadata (`make_ome_metadata`), root
  base and group documents (`base_metadata`, `group_metadata`), the names of
  the root metadata files (`metadata_keys`), and `dump_metadata`, which writes
  JSON with sorted keys and a 4-space indent.
- `zarrstream.frames`: `FrameAssembler` splits an incoming byte stream into
  whole frames and passes each one to a callback. `MultiscalePyramid`
  downscales each frame 2× in width and height per level and averages pairs of
  consecutive frames. `scale_image` and `average_two_frames` are the operations
  it uses.

## Example

```python
from zarrstream.common import DataType, DimensionType
from zarrstream.dimensions import ArrayDimensions, ZarrDimension

dims = ArrayDimensions(
    [
        ZarrDimension("t", DimensionType.TIME, 0, 32, 1),
        ZarrDimension("y", DimensionType.SPACE, 960, 320, 2),
        ZarrDimension("x", DimensionType.SPACE, 1080, 270, 3),
    ],
    DataType.UINT64,
)

print(dims.number_of_shards())        # 4
print(dims.shard_index_for_chunk(7))  # 1
print(dims.shard_internal_index(7))   # 3
```

Building array metadata for a v3 array after 5 frames:

```python
from zarrstream.array_metadata import v3_array_metadata
from zarrstream.ome import dump_metadata

print(dump_metadata(v3_array_metadata(dims, 5, None)))
```

Cutting a byte stream into frames:

```python
from zarrstream.frames import FrameAssembler

frames = []

def write_frame(frame: bytes) -> int:
    frames.append(frame)
    return len(frame)

assembler = FrameAssembler(bytes_of_frame=8, write_frame=write_frame)
assembler.append(b"\x00" * 12)  # returns 12; one frame written
print(assembler.pending())      # 4
```

## What it does not do

The package computes layouts, metadata and frame data. It does not put them
anywhere. There is no stream object that opens a store, and there is no writer
that creates chunk or shard files on disk or uploads them to S3-compatible
storage. Chunk data is not compressed: `CompressionParams` and the compression
settings are only validated and written into metadata. There is no command-line
program.