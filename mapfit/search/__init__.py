"""
mapfit search package: candidate matching, scoring, accumulation and pose selection.
"""

import logging

# Set up logging
logger = logging.getLogger(__name__)

from .matching import Candidate, LiveSamples, MatchSet, sample_live_map, match_samples, extract_matches
from .metrics import (
    Metric,
    METRICS,
    get_metrics,
    evaluate_metrics,
    normalized_cross_correlation,
    mean_squared_difference,
    mean_absolute_difference,
    mutual_information,
)
from .accumulator import AccumulatorGrid, AccumulatorSnapshot, CellScore, RotationBest, is_improvement
from .selector import PoseEstimate, select_best_poses
from .zoffset import estimate_z_offset
from .engine import MapFitter, SearchResult, SearchState, RotationSweep, search
from .evaluation import FitStatistics, MetricTally

__all__ = [
    'Candidate', 'LiveSamples', 'MatchSet', 'sample_live_map', 'match_samples', 'extract_matches',
    'Metric', 'METRICS', 'get_metrics', 'evaluate_metrics',
    'normalized_cross_correlation', 'mean_squared_difference', 'mean_absolute_difference', 'mutual_information',
    'AccumulatorGrid', 'AccumulatorSnapshot', 'CellScore', 'RotationBest', 'is_improvement',
    'PoseEstimate', 'select_best_poses',
    'estimate_z_offset',
    'MapFitter', 'SearchResult', 'SearchState', 'RotationSweep', 'search',
    'FitStatistics', 'MetricTally',
]
