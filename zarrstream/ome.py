"""OME-NGFF multiscale metadata and group-level documents."""

from __future__ import annotations

import json
from typing import Any

from .common import DimensionType, ZarrVersion
from .dimensions import ArrayDimensions

_V3_PROTOCOL = "https://purl.org/zarr/spec/protocol/core/3.0"

_TYPE_NAMES = {
    DimensionType.TIME: "time",
    DimensionType.CHANNEL: "channel",
    DimensionType.SPACE: "space",
    DimensionType.OTHER: "other",
}


def dimension_type_to_string(dimension_type: int) -> str:
    """OME axis type name for a dimension type."""
    try:
        return _TYPE_NAMES[DimensionType(dimension_type)]
    except (ValueError, KeyError):
        return "(unknown)"


def _dataset(path: str, scales: list[float]) -> dict[str, Any]:
    return {
        "path": path,
        "coordinateTransformations": [{"type": "scale", "scale": scales}],
    }


def make_ome_metadata(
    dimensions: ArrayDimensions, version: int, levels: int = 1
) -> Any:
    """OME multiscale metadata for a pyramid of ``levels`` resolutions.

    For Zarr v2 this is the ``multiscales`` list; for v3 the ``ome`` object.
    """
    version = ZarrVersion(version)
    if levels < 1:
        raise ValueError(f"Invalid number of levels: {levels}")

    ndims = dimensions.ndims()
    axes = []
    for i, dim in enumerate(dimensions):
        axis = {"name": dim.name, "type": dimension_type_to_string(dim.type)}
        if i >= ndims - 2:
            axis["unit"] = "micrometer"
        axes.append(axis)

    datasets = [_dataset("0", [1.0] * ndims)]
    entry: dict[str, Any] = {"axes": axes, "datasets": datasets}

    for level in range(1, levels):
        factor = float(2**level)
        scales = [factor] + [1.0] * (ndims - 3) + [factor, factor]
        datasets.append(_dataset(str(level), scales))

    if levels > 1:
        entry["type"] = "local_mean"
        entry["metadata"] = {
            "description": "The fields in the metadata describe how to reproduce "
            "this multiscaling in scikit-image. The method and its parameters "
            "are given here.",
            "method": "skimage.transform.downscale_local_mean",
            "version": "0.21.0",
            "args": "[2]",
            "kwargs": ["cval", 0],
        }

    multiscales = [entry]
    if version == ZarrVersion.V2:
        entry["version"] = "0.4"
        entry["name"] = "/"
        return multiscales

    return {"version": "0.5", "name": "/", "multiscales": multiscales}


def base_metadata(
    dimensions: ArrayDimensions, version: int, levels: int = 1
) -> dict[str, Any]:
    """Per-acquisition metadata written when the stream opens."""
    if ZarrVersion(version) == ZarrVersion.V2:
        return {"multiscales": make_ome_metadata(dimensions, version, levels)}
    return {
        "extensions": [],
        "metadata_encoding": _V3_PROTOCOL,
        "metadata_key_suffix": ".json",
        "zarr_format": _V3_PROTOCOL,
    }


def group_metadata(
    dimensions: ArrayDimensions, version: int, levels: int = 1
) -> dict[str, Any]:
    """Zarr group metadata for the dataset root."""
    if ZarrVersion(version) == ZarrVersion.V2:
        return {"zarr_format": 2}
    return {
        "attributes": {"ome": make_ome_metadata(dimensions, version, levels)},
        "zarr_format": 3,
        "consolidated_metadata": None,
        "node_type": "group",
    }


def metadata_keys(version: int) -> tuple[str, ...]:
    """Names of the root metadata documents for a Zarr version."""
    if ZarrVersion(version) == ZarrVersion.V2:
        return (".zattrs", ".zgroup")
    return ("zarr.json",)


def dump_metadata(metadata: Any) -> str:
    """Serialise a metadata document with sorted keys and 4-space indent."""
    return json.dumps(metadata, indent=4, sort_keys=True, ensure_ascii=False)