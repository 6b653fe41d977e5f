"""
Exhaustive rotation/translation search of a live map in a reference map.

The MapFitter sweeps every tested rotation, anchors the live map at every
sparse reference cell, scores each successful match with the active metrics,
accumulates per-cell bests across rotations and finally selects the best
pose per metric and the vertical offset at the NCC pose.

Each rotation sweep is side-effect free and returns a RotationSweep; the
sweeps are merged into the accumulator on the calling thread, optionally
after being computed in a thread pool.
"""

import concurrent.futures
import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from mapfit.core.config import SearchConfig
from mapfit.core.raster import RasterMap, sparse_indices
from mapfit.exceptions import MapFitDataError, MapFitException, ZOffsetError
from mapfit.search.accumulator import AccumulatorGrid, AccumulatorSnapshot, CellScore, RotationBest
from mapfit.search.matching import Candidate, LiveSamples, match_samples, sample_live_map
from mapfit.search.metrics import Metric, evaluate_metrics, get_metrics
from mapfit.search.selector import PoseEstimate, select_best_poses
from mapfit.search.zoffset import estimate_z_offset

# Set up logging
logger = logging.getLogger(__name__)

SnapshotSink = Callable[[AccumulatorSnapshot], None]

# Pose used for the vertical offset, in order of preference
Z_OFFSET_PREFERENCE = ("ncc", "ssd", "sad", "mi")


class SearchState(enum.Enum):
    """Activity state of a MapFitter."""
    IDLE = "idle"
    SEARCHING = "searching"


@dataclass
class CandidateHit:
    """Scores of one candidate that passed the overlap requirement."""
    index: Tuple[int, int]
    scores: Dict[str, Optional[float]]


@dataclass
class RotationSweep:
    """Outcome of sweeping all candidate positions at one rotation."""
    rotation: float
    hits: List[CandidateHit]
    best: RotationBest
    candidates: int
    duration: float = 0.0


@dataclass
class SearchResult:
    """
    Outcome of one complete search.

    Attributes:
        poses: Best pose per metric, None where nothing was eligible
        z_offset: Reference minus live elevation at the chosen pose, or None
        z_offset_metric: Metric whose pose was used for the z offset
        rotations: Rotations (degrees) that were tested
        rotation_bests: Best record per metric for each rotation
        candidates_evaluated: Number of (rotation, position) hypotheses tried
        successful_matches: Hypotheses that satisfied the overlap requirement
        duration: Wall-clock seconds spent searching
    """
    poses: Dict[str, Optional[PoseEstimate]]
    z_offset: Optional[float]
    z_offset_metric: Optional[str]
    rotations: List[float]
    rotation_bests: List[RotationBest] = field(default_factory=list)
    candidates_evaluated: int = 0
    successful_matches: int = 0
    duration: float = 0.0

    @property
    def best_pose(self) -> Optional[PoseEstimate]:
        """Pose of the first metric (NCC, SSD, SAD, MI) that found one."""
        for name in Z_OFFSET_PREFERENCE:
            pose = self.poses.get(name)
            if pose is not None:
                return pose
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poses": {name: (pose.to_dict() if pose else None) for name, pose in self.poses.items()},
            "z_offset": self.z_offset,
            "z_offset_metric": self.z_offset_metric,
            "rotations": list(self.rotations),
            "candidates_evaluated": self.candidates_evaluated,
            "successful_matches": self.successful_matches,
            "duration": self.duration,
        }


class MapFitter:
    """
    Search engine matching live elevation maps against a reference map.

    At most one search runs at a time: a search requested while another is
    in progress is dropped (not queued) and returns None.
    """

    def __init__(self, config: Optional[SearchConfig] = None, snapshot_sink: Optional[SnapshotSink] = None) -> None:
        """
        Initialize the map fitter.

        Args:
            config: Search configuration (defaults to SearchConfig())
            snapshot_sink: Callable receiving one AccumulatorSnapshot per rotation
        """
        self.config = config or SearchConfig()
        self.snapshot_sink = snapshot_sink
        self.metrics: List[Metric] = get_metrics(self.config.active_metrics)
        self._lock = threading.Lock()
        self._state = SearchState.IDLE

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SearchState.SEARCHING

    def search(self, live: RasterMap, reference: RasterMap) -> Optional[SearchResult]:
        """
        Find the pose of the live map in the reference map.

        Args:
            live: Live map with an "elevation" layer (and "variance" when
                weighted metrics are enabled)
            reference: Reference map with an "elevation" layer

        Returns:
            SearchResult, or None if another search was already running.

        Raises:
            MapFitDataError: If a required layer is missing.
        """
        if not self._lock.acquire(blocking=False):
            logger.info("Search already in progress, dropping new request")
            return None

        self._state = SearchState.SEARCHING
        try:
            return self._run(live, reference)
        finally:
            self._state = SearchState.IDLE
            self._lock.release()

    def _validate_inputs(self, live: RasterMap, reference: RasterMap) -> None:
        live.require_layers("elevation")
        reference.require_layers("elevation")
        if self.config.weighted and not live.has_layer("variance"):
            raise MapFitDataError("Weighted metrics require a 'variance' layer in the live map")

    def _run(self, live: RasterMap, reference: RasterMap) -> SearchResult:
        self._validate_inputs(live, reference)
        config = self.config
        start_time = time.perf_counter()

        rotations = config.rotations()
        logger.info(
            f"Starting search of {tuple(live.size)} live map in {tuple(reference.size)} reference map "
            f"over {len(rotations)} rotation(s)"
        )

        samples = sample_live_map(live, config.correlation_stride)
        candidates = list(sparse_indices(reference.size, config.position_search_stride))
        accumulator = AccumulatorGrid(reference, config.position_search_stride, self.metrics)

        rotation_bests: List[RotationBest] = []
        successes = 0
        for sweep in self._sweeps(rotations, samples, reference, candidates):
            self._merge(sweep, accumulator)
            rotation_bests.append(sweep.best)
            successes += len(sweep.hits)

        poses = select_best_poses(accumulator, len(rotations), config)
        z_offset, z_metric = self._estimate_z(live, reference, poses)

        result = SearchResult(
            poses=poses,
            z_offset=z_offset,
            z_offset_metric=z_metric,
            rotations=rotations,
            rotation_bests=rotation_bests,
            candidates_evaluated=len(candidates) * len(rotations),
            successful_matches=successes,
            duration=time.perf_counter() - start_time,
        )
        logger.info(
            f"Search done in {result.duration:.2f} s: {result.successful_matches} of "
            f"{result.candidates_evaluated} candidates matched"
        )
        return result

    def _sweep_rotation(
        self,
        rotation: float,
        samples: LiveSamples,
        reference: RasterMap,
        candidates: List[Tuple[int, int]],
    ) -> RotationSweep:
        """Score every candidate position at one rotation."""
        start_time = time.perf_counter()
        best = RotationBest.start(rotation, self.metrics)
        displacements = samples.index_displacements(rotation)
        hits: List[CandidateHit] = []

        for index in candidates:
            match_set = match_samples(
                samples, reference, Candidate(rotation, index), self.config.required_overlap,
                displacements=displacements,
            )
            if match_set is None:
                continue

            scores = evaluate_metrics(match_set, self.config)
            hits.append(CandidateHit(index=index, scores=scores))
            for metric in self.metrics:
                score = scores.get(metric.name)
                if score is not None:
                    best.offer(metric, CellScore(score, rotation, index))

        return RotationSweep(
            rotation=rotation,
            hits=hits,
            best=best,
            candidates=len(candidates),
            duration=time.perf_counter() - start_time,
        )

    def _sweeps(
        self,
        rotations: List[float],
        samples: LiveSamples,
        reference: RasterMap,
        candidates: List[Tuple[int, int]],
    ) -> Iterator[RotationSweep]:
        """Yield rotation sweeps in rotation order, threaded if configured."""
        if self.config.num_threads > 1 and len(rotations) > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.config.num_threads) as executor:
                yield from executor.map(
                    lambda theta: self._sweep_rotation(theta, samples, reference, candidates),
                    rotations,
                )
        else:
            for theta in rotations:
                yield self._sweep_rotation(theta, samples, reference, candidates)

    def _merge(self, sweep: RotationSweep, accumulator: AccumulatorGrid) -> None:
        """Apply one rotation sweep to the accumulator and export a snapshot."""
        for hit in sweep.hits:
            accumulator.add_vote(hit.index)
            for metric in self.metrics:
                score = hit.scores.get(metric.name)
                if score is not None:
                    accumulator.update(metric, CellScore(score, sweep.rotation, hit.index))

        logger.info(f"Rotation {sweep.rotation:g}: {len(sweep.hits)} of {sweep.candidates} candidates matched")
        logger.debug(f"Rotation {sweep.rotation:g} swept in {sweep.duration:.3f} s")

        if self.snapshot_sink is not None:
            self.snapshot_sink(accumulator.snapshot(sweep.rotation))

    def _estimate_z(
        self,
        live: RasterMap,
        reference: RasterMap,
        poses: Dict[str, Optional[PoseEstimate]],
    ) -> Tuple[Optional[float], Optional[str]]:
        for name in Z_OFFSET_PREFERENCE:
            pose = poses.get(name)
            if pose is None:
                continue
            try:
                z = estimate_z_offset(live, reference, (pose.x, pose.y), pose.rotation, self.config.correlation_stride)
            except ZOffsetError as e:
                logger.warning(f"Z offset estimation failed at the {name.upper()} pose: {e}")
                return None, None
            logger.info(f"Z offset {z:.4f} at the {name.upper()} pose")
            return z, name

        logger.warning("No pose found, z offset not estimated")
        return None, None


def search(
    live: RasterMap,
    reference: RasterMap,
    config: Optional[SearchConfig] = None,
    snapshot_sink: Optional[SnapshotSink] = None,
) -> SearchResult:
    """
    Run a single search with a fresh MapFitter.

    Args:
        live: Live raster map
        reference: Reference raster map
        config: Search configuration
        snapshot_sink: Callable receiving one AccumulatorSnapshot per rotation

    Returns:
        SearchResult of the search.

    Raises:
        MapFitException: If the fitter dropped the request.
    """
    fitter = MapFitter(config, snapshot_sink=snapshot_sink)
    result = fitter.search(live, reference)
    if result is None:
        raise MapFitException("Search request was dropped by a busy map fitter")
    return result
