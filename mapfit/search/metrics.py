"""
Similarity metrics for matched elevation samples.

Every metric is described by a Metric record (ordering, threshold, display
rescaling and compute function) so that the search engine, the accumulator
and the selector treat all of them the same way. SSD and SAD share one
difference-metric builder parameterized by the pairwise error function;
each metric optionally weights samples by the inverse live variance.

A compute function returns None when the metric is undefined for a match
set (e.g. NCC of a flat patch); such candidates are never accumulated for
that metric.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
from scipy.stats import entropy

from mapfit.core.config import SearchConfig
from mapfit.search.matching import MatchSet

# Set up logging
logger = logging.getLogger(__name__)

MetricFunction = Callable[[MatchSet, Optional[np.ndarray], SearchConfig], Optional[float]]


def sample_weights(match_set: MatchSet) -> Optional[np.ndarray]:
    """
    Inverse-variance weights of a match set.

    Non-finite weights (unknown or zero variance) are set to 0.

    Returns:
        Weight array, or None if every weight is 0.
    """
    weights = np.where(np.isfinite(match_set.live_inverse_variance), match_set.live_inverse_variance, 0.0)
    weights = np.clip(weights, 0.0, None)
    if not np.any(weights > 0):
        return None
    return weights


def _centered(match_set: MatchSet):
    return match_set.live - match_set.live_mean, match_set.reference - match_set.reference_mean


def normalized_cross_correlation(
    match_set: MatchSet, weights: Optional[np.ndarray] = None, config: Optional[SearchConfig] = None
) -> Optional[float]:
    """
    Normalized cross-correlation of mean-centered elevations.

    Returns:
        Correlation in [-1, 1], or None if either side has zero variance.
    """
    live, reference = _centered(match_set)
    w = np.ones_like(live) if weights is None else weights

    live_norm = float(np.sum(w * live * live))
    reference_norm = float(np.sum(w * reference * reference))
    if live_norm <= 0.0 or reference_norm <= 0.0:
        return None

    correlation = float(np.sum(w * live * reference)) / np.sqrt(live_norm * reference_norm)
    return float(np.clip(correlation, -1.0, 1.0))


def difference_metric(error: Callable[[np.ndarray], np.ndarray]) -> MetricFunction:
    """
    Build a mean-difference metric from a pairwise error function.

    Both elevations are mean-centered and divided by the elevation range
    before differencing; the errors are averaged (weighted if weights are
    given).
    """

    def compute(
        match_set: MatchSet, weights: Optional[np.ndarray] = None, config: Optional[SearchConfig] = None
    ) -> Optional[float]:
        scale = config.elevation_range if config is not None else SearchConfig().elevation_range
        live, reference = _centered(match_set)
        errors = error(live / scale - reference / scale)
        if weights is None:
            return float(np.mean(errors))
        total = float(np.sum(weights))
        if total <= 0.0:
            return None
        return float(np.sum(weights * errors) / total)

    return compute


mean_squared_difference = difference_metric(np.square)
mean_absolute_difference = difference_metric(np.abs)


def _histogram_bins(values: np.ndarray, scale: float, bins: int) -> np.ndarray:
    half = bins // 2 - 1
    indices = np.floor(values / scale * half).astype(np.int64) + half
    return np.clip(indices, 0, bins - 1)


def mutual_information(
    match_set: MatchSet, weights: Optional[np.ndarray] = None, config: Optional[SearchConfig] = None
) -> Optional[float]:
    """
    Mutual information between live and reference elevations.

    Mean-centered elevations are quantized into a fixed number of bins
    relative to the elevation range; marginal and joint histograms are
    normalized by the match count and combined as
    H(live) + H(reference) - H(joint). Weights are not used.
    """
    config = config or SearchConfig()
    bins = int(config.mutual_information_bins)
    live, reference = _centered(match_set)

    live_bins = _histogram_bins(live, config.elevation_range, bins)
    reference_bins = _histogram_bins(reference, config.elevation_range, bins)

    matches = float(match_set.matches)
    live_hist = np.bincount(live_bins, minlength=bins) / matches
    reference_hist = np.bincount(reference_bins, minlength=bins) / matches
    joint_hist = np.bincount(live_bins * bins + reference_bins, minlength=bins * bins) / matches

    # scipy's entropy skips empty bins (0 * log 0 = 0)
    information = entropy(live_hist) + entropy(reference_hist) - entropy(joint_hist)
    return float(information)


@dataclass(frozen=True)
class Metric:
    """
    Description of one similarity metric.

    Attributes:
        name: Key used in results and configuration ("ncc", "ssd", ...)
        label: Display name
        higher_is_better: Ordering of the raw score
        layer: Accumulator layer holding the display score
        rotation_layer: Accumulator layer holding the winning rotation
        display_offset: Added to the raw score before storing for display
        display_scale: Multiplies the raw score before storing for display
        compute: Function (match_set, weights, config) -> score or None
    """
    name: str
    label: str
    higher_is_better: bool
    layer: str
    rotation_layer: str
    compute: MetricFunction
    display_offset: float = 0.0
    display_scale: float = 1.0

    def is_better(self, new: float, old: float) -> bool:
        """Strict comparison under the metric's ordering."""
        return new > old if self.higher_is_better else new < old

    def passes(self, score: float, threshold: float) -> bool:
        """True if the score satisfies the acceptance threshold."""
        return score >= threshold if self.higher_is_better else score <= threshold

    def display(self, score: float) -> float:
        return score * self.display_scale + self.display_offset


METRICS: Dict[str, Metric] = {
    "ncc": Metric("ncc", "NCC", True, "correlation", "rotationNCC",
                  normalized_cross_correlation, display_offset=1.5),
    "ssd": Metric("ssd", "SSD", False, "SSD", "rotationSSD",
                  mean_squared_difference, display_scale=5.0),
    "sad": Metric("sad", "SAD", False, "SAD", "rotationSAD",
                  mean_absolute_difference, display_scale=5.0),
    "mi": Metric("mi", "MI", True, "MI", "rotationMI", mutual_information),
}


def get_metrics(names: Iterable[str]) -> List[Metric]:
    """Metric records for the given names, in the given order."""
    try:
        return [METRICS[name] for name in names]
    except KeyError as e:
        raise ValueError(f"Unknown metric {e}; valid metrics are {list(METRICS)}") from None


def evaluate_metrics(match_set: MatchSet, config: SearchConfig) -> Dict[str, Optional[float]]:
    """
    Evaluate every active metric on a match set.

    Args:
        match_set: Paired samples of one candidate
        config: Search configuration (active metrics, weighting, scales)

    Returns:
        Dictionary metric name -> score (None where undefined).
    """
    weights = sample_weights(match_set) if config.weighted else None
    if config.weighted and weights is None:
        logger.debug("All sample weights are zero; weighted metrics undefined for this candidate")

    scores: Dict[str, Optional[float]] = {}
    for metric in get_metrics(config.active_metrics):
        if config.weighted and weights is None and metric.name != "mi":
            scores[metric.name] = None
            continue
        score = metric.compute(match_set, weights, config)
        if score is not None and not np.isfinite(score):
            score = None
        scores[metric.name] = score
    return scores
