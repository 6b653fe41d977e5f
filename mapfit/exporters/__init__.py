"""
Exporters for mapfit: raster files, search results and accumulator snapshots.
"""

from .npz import save_raster, load_raster
from .results import export_result
from .sinks import MemorySnapshotSink, NpzSnapshotSink, PlotSnapshotSink, CompositeSnapshotSink

__all__ = [
    'save_raster',
    'load_raster',
    'export_result',
    'MemorySnapshotSink',
    'NpzSnapshotSink',
    'PlotSnapshotSink',
    'CompositeSnapshotSink',
]
