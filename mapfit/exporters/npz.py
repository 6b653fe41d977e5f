"""
NPZ format export/import for raster maps.

A raster map is stored as one array per layer (buffer order, key
``layer_<name>``) plus a JSON ``metadata`` string holding the geometry.

Examples:
    >>> save_raster(reference, "reference.npz")
    >>> reference = load_raster("reference.npz")
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from mapfit.core.raster import RasterMap
from mapfit.exceptions import MapFitDataError

logger = logging.getLogger(__name__)

LAYER_PREFIX = "layer_"


def raster_metadata(raster: RasterMap) -> Dict[str, Any]:
    """Geometry of a raster map as JSON-serializable values."""
    return {
        "resolution": raster.resolution,
        "position": [float(v) for v in raster.position],
        "start_index": [int(v) for v in raster.start_index],
        "frame_id": raster.frame_id,
        "layers": raster.layers,
    }


def save_raster(
    raster: RasterMap,
    output_path: Union[str, Path],
    compress: bool = True,
    extra_arrays: Optional[Dict[str, np.ndarray]] = None,
) -> str:
    """
    Save a raster map to NumPy .npz format.

    Args:
        raster: Raster map to save
        output_path: Path of the .npz file
        compress: Whether to use compression (default: True)
        extra_arrays: Additional arrays stored next to the layers

    Returns:
        Path to the saved file

    Raises:
        OSError: If the output directory cannot be created or the file written
    """
    output_path = os.path.abspath(str(output_path))
    try:
        os.makedirs(os.path.dirname(output_path), exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create output directory: {e}")
        raise

    arrays = {f"{LAYER_PREFIX}{name}": raster[name] for name in raster.layers}
    if extra_arrays:
        arrays.update(extra_arrays)
    metadata_str = json.dumps(raster_metadata(raster))

    if compress:
        np.savez_compressed(output_path, metadata=metadata_str, **arrays)
    else:
        np.savez(output_path, metadata=metadata_str, **arrays)

    logger.info(f"Raster map saved to {output_path}" + (" (compressed)" if compress else ""))
    return output_path


def load_raster(file_path: Union[str, Path]) -> RasterMap:
    """
    Load a raster map from a .npz file written by save_raster.

    Args:
        file_path: Path to the .npz file

    Returns:
        RasterMap with the stored layers and geometry

    Raises:
        FileNotFoundError: If the file doesn't exist
        MapFitDataError: If the file is not an NPZ archive or lacks metadata or layers
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        npz_data = np.load(file_path, allow_pickle=False)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading NPZ file: {e}")
        raise MapFitDataError(f"Could not read {file_path} as an NPZ archive: {e}") from e
    if not hasattr(npz_data, "files"):
        raise MapFitDataError(f"{file_path} holds a single array, not an NPZ archive")

    with npz_data:
        if "metadata" not in npz_data:
            raise MapFitDataError(f"NPZ file {file_path} does not contain raster metadata")
        try:
            metadata = json.loads(str(npz_data["metadata"]))
        except json.JSONDecodeError as e:
            raise MapFitDataError(f"Could not parse metadata from {file_path}: {e}") from e

        layers = {
            key[len(LAYER_PREFIX):]: np.array(npz_data[key])
            for key in npz_data.files
            if key.startswith(LAYER_PREFIX)
        }

    if not layers:
        raise MapFitDataError(f"NPZ file {file_path} does not contain any layer")
    if "resolution" not in metadata:
        raise MapFitDataError(f"NPZ file {file_path} metadata lacks a resolution")

    # Keep the stored layer order when available
    order = [name for name in metadata.get("layers", []) if name in layers]
    order += [name for name in layers if name not in order]

    return RasterMap(
        {name: layers[name] for name in order},
        metadata["resolution"],
        position=metadata.get("position", (0.0, 0.0)),
        start_index=metadata.get("start_index", (0, 0)),
        frame_id=metadata.get("frame_id", "map"),
    )
