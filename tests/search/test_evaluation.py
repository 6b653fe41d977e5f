"""
Tests for accuracy statistics against a known pose.
"""

import pytest

from mapfit.search.engine import SearchResult
from mapfit.search.evaluation import FitStatistics, angular_difference
from mapfit.search.selector import PoseEstimate


def make_result(ncc_pose=None, ssd_pose=None):
    return SearchResult(poses={"ncc": ncc_pose, "ssd": ssd_pose}, z_offset=None, z_offset_metric=None, rotations=[0.0])


@pytest.mark.parametrize(
    "a,b,expected",
    [(90.0, 90.0, 0.0), (350.0, 10.0, 20.0), (0.0, 180.0, 180.0), (-90.0, 270.0, 0.0)],
)
def test_angular_difference(a, b, expected):
    assert angular_difference(a, b) == pytest.approx(expected)


class TestFitStatistics:
    """Tests for FitStatistics."""

    def setup_method(self):
        self.statistics = FitStatistics(position_tolerance=0.5)

    def test_correct_match(self):
        pose = PoseEstimate("ncc", 1.0, 2.0, 90.0, 0.9, (0, 0))
        errors = self.statistics.record(make_result(pose), (1.0, 2.3), 90.0, 90.0)

        assert errors["ncc"] == pytest.approx(0.3)
        assert errors["ssd"] is None

        summary = self.statistics.summary()
        assert summary["ncc"]["correct_matches"] == 1
        assert summary["ncc"]["mean_error"] == pytest.approx(0.3)
        assert summary["ssd"]["evaluations"] == 1
        assert summary["ssd"]["found"] == 0
        assert summary["ssd"]["mean_error"] is None

    def test_cumulative_error(self):
        self.statistics.record(make_result(PoseEstimate("ncc", 0.0, 0.0, 0.0, 0.9, (0, 0))), (0.3, 0.0), 0.0, 90.0)
        self.statistics.record(make_result(PoseEstimate("ncc", 0.0, 0.0, 0.0, 0.9, (0, 0))), (1.0, 0.0), 0.0, 90.0)

        tally = self.statistics.tallies["ncc"]
        assert tally.evaluations == 2
        assert tally.correct_matches == 1
        assert tally.cumulative_error == pytest.approx(1.3)
        assert tally.mean_error == pytest.approx(0.65)

    def test_wrong_rotation(self):
        """A rotation one full increment off is not a correct match."""
        pose = PoseEstimate("ncc", 0.0, 0.0, 180.0, 0.9, (0, 0))
        self.statistics.record(make_result(pose), (0.0, 0.0), 90.0, 90.0)
        assert self.statistics.tallies["ncc"].correct_matches == 0
