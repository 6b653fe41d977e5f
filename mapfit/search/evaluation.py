"""
Running accuracy statistics against a known true pose.

When the true pose of the live map is known (e.g. for maps cropped from the
reference, or recorded with ground truth), FitStatistics accumulates the
position error of every metric over successive searches and counts how many
searches found the correct pose.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Sequence

from mapfit.search.engine import SearchResult

# Set up logging
logger = logging.getLogger(__name__)


def angular_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two angles in degrees."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


@dataclass
class MetricTally:
    """Accumulated accuracy of one metric."""
    evaluations: int = 0
    found: int = 0
    correct_matches: int = 0
    cumulative_error: float = 0.0

    @property
    def mean_error(self) -> Optional[float]:
        return self.cumulative_error / self.found if self.found else None


class FitStatistics:
    """
    Accuracy bookkeeping over a series of searches.

    A pose counts as correct when it lies within position_tolerance of the
    true position and its rotation is closer than one angle increment to the
    true rotation.
    """

    def __init__(self, position_tolerance: float = 0.5) -> None:
        self.position_tolerance = position_tolerance
        self.tallies: Dict[str, MetricTally] = {}

    def record(
        self,
        result: SearchResult,
        true_position: Sequence[float],
        true_rotation: float,
        angle_increment: float,
    ) -> Dict[str, Optional[float]]:
        """
        Add one search result.

        Args:
            result: Result of a search
            true_position: True world (x, y) of the live map
            true_rotation: True rotation in degrees
            angle_increment: Rotation step used by the search

        Returns:
            Position error per metric (None where no pose was found).
        """
        errors: Dict[str, Optional[float]] = {}
        for name, pose in result.poses.items():
            tally = self.tallies.setdefault(name, MetricTally())
            tally.evaluations += 1
            if pose is None:
                errors[name] = None
                continue

            error = math.hypot(pose.x - true_position[0], pose.y - true_position[1])
            tally.found += 1
            tally.cumulative_error += error
            if error < self.position_tolerance and angular_difference(pose.rotation, true_rotation) < angle_increment:
                tally.correct_matches += 1
            errors[name] = error

        logger.info(
            "Cumulative error "
            + ", ".join(f"{name.upper()}: {t.cumulative_error:.3f} ({t.correct_matches} correct)"
                        for name, t in self.tallies.items())
        )
        return errors

    def summary(self) -> Dict[str, Dict[str, Any]]:
        """Tallies per metric as plain dictionaries (with the mean error)."""
        return {
            name: dict(asdict(tally), mean_error=tally.mean_error)
            for name, tally in self.tallies.items()
        }
