"""
Accumulation of candidate scores across a rotation sweep.

The AccumulatorGrid keeps, for every coarse cell of the reference map and
every metric, the best score found over all rotations together with the
rotation and the fine reference index that produced it. A fine-resolution
vote array counts, for each reference cell, how many rotations produced a
successful match there.

The comparator deciding whether a new score replaces a stored one is a pure
function of the two records, so the final grid does not depend on the order
in which rotations are merged.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from mapfit.core.raster import RasterMap
from mapfit.search.metrics import Metric

# Set up logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellScore:
    """Raw score of a candidate with the rotation and fine index that produced it."""
    score: float
    rotation: float
    index: Tuple[int, int]


def is_improvement(metric: Metric, existing: Optional[CellScore], candidate: CellScore) -> bool:
    """
    Decide whether a candidate record replaces an existing one.

    The candidate wins if nothing is stored yet, if its score is strictly
    better, or on equal scores if its (rotation, index) is smaller.
    """
    if existing is None:
        return True
    if metric.is_better(candidate.score, existing.score):
        return True
    if candidate.score == existing.score:
        return (candidate.rotation, candidate.index) < (existing.rotation, existing.index)
    return False


@dataclass
class RotationBest:
    """Best record per metric within a single rotation."""
    rotation: float
    best: Dict[str, Optional[CellScore]] = field(default_factory=dict)

    @classmethod
    def start(cls, rotation: float, metrics: Iterable[Metric]) -> "RotationBest":
        return cls(rotation, {metric.name: None for metric in metrics})

    def offer(self, metric: Metric, record: CellScore) -> bool:
        """Keep the record if it beats the current best; returns True if kept."""
        if is_improvement(metric, self.best.get(metric.name), record):
            self.best[metric.name] = record
            return True
        return False


@dataclass
class AccumulatorSnapshot:
    """
    Copy of the accumulator state exported after one rotation.

    Attributes:
        rotation: Rotation (degrees) that was just completed
        grid: Coarse raster with display score and rotation layers
        votes: Fine vote counts in logical reference order
    """
    rotation: float
    grid: RasterMap
    votes: np.ndarray


class AccumulatorGrid:
    """
    Coarse raster of best scores and winning rotations per metric.

    The coarse grid covers the reference extent at the reference resolution
    times the position search stride. Display layers hold rescaled scores
    (NCC + 1.5, SSD/SAD * 5); the raw records are kept separately for the
    selector.
    """

    def __init__(self, reference: RasterMap, stride: int, metrics: List[Metric]) -> None:
        """
        Initialize an empty accumulator.

        Args:
            reference: Reference map the candidates are anchored in
            stride: Position search stride (coarsening factor)
            metrics: Metrics to accumulate
        """
        self.reference = reference
        self.metrics = list(metrics)
        layers: List[str] = []
        for metric in self.metrics:
            layers.extend([metric.layer, metric.rotation_layer])

        self.grid = RasterMap.from_geometry(
            reference.length,
            reference.resolution * stride,
            position=reference.position,
            layers=layers,
            frame_id=reference.frame_id,
        )
        self.votes = np.zeros(tuple(reference.size), dtype=np.int64)
        self._records: Dict[str, Dict[Tuple[int, int], CellScore]] = {
            metric.name: {} for metric in self.metrics
        }

    def add_vote(self, index: Tuple[int, int]) -> None:
        """Count one more rotation with a successful match at a fine index."""
        self.votes[index[0], index[1]] += 1

    def vote_count(self, index: Tuple[int, int]) -> int:
        return int(self.votes[index[0], index[1]])

    def update(self, metric: Metric, record: CellScore) -> bool:
        """
        Offer a candidate record to the coarse cell under its fine index.

        Args:
            metric: Metric of the score
            record: Raw score, rotation and fine reference index

        Returns:
            True if the cell was updated.
        """
        position = self.reference.get_position(record.index)
        cell = self.grid.get_index(position)
        if cell is None:
            return False

        cells = self._records[metric.name]
        if not is_improvement(metric, cells.get(cell), record):
            return False

        cells[cell] = record
        self.grid.set_at(metric.layer, cell, metric.display(record.score))
        self.grid.set_at(metric.rotation_layer, cell, record.rotation)
        return True

    def records(self, metric: Metric) -> Iterator[Tuple[Tuple[int, int], CellScore]]:
        """Stored (coarse index, record) pairs of a metric in row-major order."""
        cells = self._records[metric.name]
        for cell in sorted(cells):
            yield cell, cells[cell]

    def record_at(self, metric: Metric, cell: Tuple[int, int]) -> Optional[CellScore]:
        return self._records[metric.name].get(cell)

    def snapshot(self, rotation: float) -> AccumulatorSnapshot:
        """Deep copy of the current state for export."""
        return AccumulatorSnapshot(rotation=rotation, grid=self.grid.copy(), votes=self.votes.copy())
