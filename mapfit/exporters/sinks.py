"""
Snapshot sinks receiving the accumulator state after every rotation.

Any callable taking an AccumulatorSnapshot can be passed to MapFitter; the
classes here keep snapshots in memory, write them as .npz files or render
them as images.
"""

import logging
import os
from pathlib import Path
from typing import List, Union

from mapfit.exporters.npz import save_raster
from mapfit.search.accumulator import AccumulatorSnapshot

logger = logging.getLogger(__name__)


def snapshot_name(rotation: float) -> str:
    """File stem of the snapshot of a rotation, e.g. rotation_090 or rotation_022_50."""
    if float(rotation).is_integer():
        return f"rotation_{int(rotation):03d}"
    return f"rotation_{rotation:06.2f}".replace(".", "_")


class MemorySnapshotSink:
    """Keeps every snapshot in a list."""

    def __init__(self) -> None:
        self.snapshots: List[AccumulatorSnapshot] = []

    def __call__(self, snapshot: AccumulatorSnapshot) -> None:
        self.snapshots.append(snapshot)

    def __len__(self) -> int:
        return len(self.snapshots)

    @property
    def latest(self) -> AccumulatorSnapshot:
        return self.snapshots[-1]


class NpzSnapshotSink:
    """Writes each snapshot to <directory>/rotation_<deg>.npz with its vote counts."""

    def __init__(self, directory: Union[str, Path], compress: bool = True) -> None:
        self.directory = Path(directory)
        self.compress = compress
        self.paths: List[str] = []

    def __call__(self, snapshot: AccumulatorSnapshot) -> None:
        path = self.directory / f"{snapshot_name(snapshot.rotation)}.npz"
        self.paths.append(
            save_raster(snapshot.grid, path, compress=self.compress, extra_arrays={"votes": snapshot.votes})
        )


class PlotSnapshotSink:
    """Renders each snapshot of one metric to <directory>/rotation_<deg>_<metric>.png."""

    def __init__(self, directory: Union[str, Path], metric: str = "ncc", dpi: int = 100) -> None:
        self.directory = Path(directory)
        self.metric = metric
        self.dpi = dpi
        self.paths: List[str] = []

    def __call__(self, snapshot: AccumulatorSnapshot) -> None:
        from mapfit.plotters.matplotlib import plot_accumulator, save_figure

        fig = plot_accumulator(snapshot, self.metric)
        path = os.path.join(str(self.directory), f"{snapshot_name(snapshot.rotation)}_{self.metric}.png")
        self.paths.append(save_figure(fig, path, dpi=self.dpi))


class CompositeSnapshotSink:
    """Forwards each snapshot to several sinks."""

    def __init__(self, *sinks) -> None:
        self.sinks = [sink for sink in sinks if sink is not None]

    def __call__(self, snapshot: AccumulatorSnapshot) -> None:
        for sink in self.sinks:
            sink(snapshot)
