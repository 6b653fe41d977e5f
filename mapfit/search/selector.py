"""
Selection of the global best pose per metric.

A coarse cell is eligible only if the fine reference cell its winning
candidate landed on produced a successful match at every tested rotation.
Among eligible cells passing the metric threshold, the best raw score wins;
ties keep the first cell in row-major order.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from mapfit.core.config import SearchConfig
from mapfit.search.accumulator import AccumulatorGrid, CellScore

# Set up logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoseEstimate:
    """
    Best pose found for one metric.

    Attributes:
        metric: Metric name
        x, y: World position of the anchor cell in the reference frame
        rotation: Rotation in degrees
        score: Raw metric score
        index: Logical reference index of the anchor cell
    """
    metric: str
    x: float
    y: float
    rotation: float
    score: float
    index: Tuple[int, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "score": self.score,
            "index": list(self.index),
        }


def select_best_poses(
    accumulator: AccumulatorGrid,
    total_rotations: int,
    config: SearchConfig,
) -> Dict[str, Optional[PoseEstimate]]:
    """
    Resolve the global best pose of every accumulated metric.

    Args:
        accumulator: Accumulator filled by a complete rotation sweep
        total_rotations: Number of rotations tested
        config: Search configuration (thresholds)

    Returns:
        Dictionary metric name -> PoseEstimate, or None if no cell is
        eligible for that metric.
    """
    poses: Dict[str, Optional[PoseEstimate]] = {}

    for metric in accumulator.metrics:
        threshold = config.threshold_for(metric.name)
        best: Optional[CellScore] = None

        for _, record in accumulator.records(metric):
            # Every tested rotation must have matched at this cell
            if accumulator.vote_count(record.index) != total_rotations:
                continue
            if not metric.passes(record.score, threshold):
                continue
            if best is None or metric.is_better(record.score, best.score):
                best = record

        if best is None:
            logger.info(f"No eligible pose for {metric.label}")
            poses[metric.name] = None
            continue

        x, y = accumulator.reference.get_position(best.index)
        poses[metric.name] = PoseEstimate(
            metric=metric.name,
            x=float(x),
            y=float(y),
            rotation=float(best.rotation),
            score=float(best.score),
            index=(int(best.index[0]), int(best.index[1])),
        )
        logger.info(
            f"Best {metric.label} {best.score:.6g} at ({x:.3f}, {y:.3f}) "
            f"and rotation {best.rotation:g}"
        )

    return poses
