"""
Configuration for the exhaustive map search.

This module provides the SearchConfig dataclass with validation, defaults,
alias handling and JSON serialization.
"""

import json
import logging
import math
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Union

from mapfit.exceptions import MapFitConfigError

# Set up logging
logger = logging.getLogger(__name__)

METRIC_NAMES = ("ncc", "ssd", "sad", "mi")

# Largest value of the unsigned 16-bit elevation encoding
DEFAULT_ELEVATION_RANGE = 65535.0


@dataclass
class SearchConfig:
    """
    Parameters of one exhaustive rotation/translation search.

    A value of 360 for angle_increment disables the rotation search (only
    0 degrees is tested).
    """
    # Search discretization
    angle_increment: float = 360.0
    position_search_stride: int = 5
    correlation_stride: int = 5
    required_overlap: float = 0.75

    # Acceptance thresholds per metric
    corr_threshold: float = 0.0
    ssd_threshold: float = 10.0
    sad_threshold: float = 10.0
    mi_threshold: float = -10.0

    # Metric evaluation
    weighted: bool = False
    active_metrics: List[str] = field(default_factory=lambda: list(METRIC_NAMES))
    elevation_range: float = DEFAULT_ELEVATION_RANGE
    mutual_information_bins: int = 256

    # Execution
    num_threads: int = 1

    # Unrecognized parameters
    extra: Dict[str, Any] = field(default_factory=dict)

    ALIASES: ClassVar[Dict[str, str]] = {
        "angleIncrementDegrees": "angle_increment",
        "position_increment_search": "position_search_stride",
        "positionSearchStride": "position_search_stride",
        "position_increment_correlation": "correlation_stride",
        "correlationStride": "correlation_stride",
        "requiredOverlapRatio": "required_overlap",
        "correlation_threshold": "corr_threshold",
        "corrThreshold": "corr_threshold",
        "SSD_threshold": "ssd_threshold",
        "SSDThreshold": "ssd_threshold",
        "SAD_threshold": "sad_threshold",
        "SADThreshold": "sad_threshold",
        "MI_threshold": "mi_threshold",
        "MIThreshold": "mi_threshold",
    }

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.active_metrics, str):
            self.active_metrics = [part.strip() for part in self.active_metrics.split(",") if part.strip()]
        self.active_metrics = [str(name).lower() for name in self.active_metrics]
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            MapFitConfigError: If configuration is invalid
        """
        if not (0 < self.angle_increment <= 360):
            raise MapFitConfigError(
                f"angle_increment must be in (0, 360], got {self.angle_increment}"
            )
        if int(self.position_search_stride) != self.position_search_stride or self.position_search_stride < 1:
            raise MapFitConfigError(
                f"position_search_stride must be a positive integer, got {self.position_search_stride}"
            )
        if int(self.correlation_stride) != self.correlation_stride or self.correlation_stride < 1:
            raise MapFitConfigError(
                f"correlation_stride must be a positive integer, got {self.correlation_stride}"
            )
        self.position_search_stride = int(self.position_search_stride)
        self.correlation_stride = int(self.correlation_stride)

        if self.required_overlap < 0:
            raise MapFitConfigError(f"required_overlap cannot be negative, got {self.required_overlap}")
        if self.elevation_range <= 0:
            raise MapFitConfigError(f"elevation_range must be positive, got {self.elevation_range}")
        if self.mutual_information_bins < 2:
            raise MapFitConfigError(
                f"mutual_information_bins must be at least 2, got {self.mutual_information_bins}"
            )
        if self.num_threads < 1:
            raise MapFitConfigError(f"num_threads must be at least 1, got {self.num_threads}")

        unknown = [name for name in self.active_metrics if name not in METRIC_NAMES]
        if unknown:
            raise MapFitConfigError(
                f"Unknown metric(s) {unknown}; valid metrics are {list(METRIC_NAMES)}"
            )
        if not self.active_metrics:
            raise MapFitConfigError("At least one metric must be active")

    def rotations(self) -> List[float]:
        """
        Rotation angles (degrees) tested by the search.

        Returns:
            [0, inc, 2*inc, ...] for every multiple below 360.
        """
        count = int(math.ceil(360.0 / self.angle_increment - 1e-9))
        return [k * float(self.angle_increment) for k in range(count)]

    def threshold_for(self, metric: str) -> float:
        """Acceptance threshold of a metric ("ncc", "ssd", "sad" or "mi")."""
        key = "corr_threshold" if metric == "ncc" else f"{metric}_threshold"
        try:
            return float(getattr(self, key))
        except AttributeError:
            raise MapFitConfigError(f"Unknown metric '{metric}'") from None

    def as_dict(self) -> Dict[str, Any]:
        """
        Get configuration as a dictionary.

        Returns:
            Dictionary representation of configuration
        """
        result = asdict(self)
        if not result["extra"]:
            del result["extra"]
        return result

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SearchConfig":
        """
        Create configuration from a dictionary.

        Original node parameter names (e.g. ``position_increment_search``)
        and camel-case names (e.g. ``angleIncrementDegrees``) are accepted.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            New SearchConfig instance
        """
        names = [f.name for f in fields(cls)]
        known_params: Dict[str, Any] = {}
        extra_params: Dict[str, Any] = dict(config_dict.get("extra", {}) or {})

        for key, value in config_dict.items():
            if key == "extra":
                continue
            target = cls.ALIASES.get(key, key)
            if target in names:
                known_params[target] = value
            else:
                extra_params[key] = value

        try:
            config = cls(**known_params)
        except TypeError as e:
            raise MapFitConfigError(f"Invalid configuration: {e}") from e

        config.extra.update(extra_params)
        if extra_params:
            logger.debug(f"Ignoring unrecognized configuration keys: {sorted(extra_params)}")
        return config

    def updated(self, **overrides: Any) -> "SearchConfig":
        """Copy of this configuration with some values replaced (None values are skipped)."""
        values = self.as_dict()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return SearchConfig.from_dict(values)


def load_config(path: Union[str, Path]) -> SearchConfig:
    """
    Load a search configuration from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        SearchConfig instance

    Raises:
        MapFitConfigError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise MapFitConfigError(f"Configuration file not found: {path}") from None
    except (OSError, json.JSONDecodeError) as e:
        raise MapFitConfigError(f"Could not read configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise MapFitConfigError(f"Configuration file {path} must contain a JSON object")
    return SearchConfig.from_dict(data)


def save_config(config: SearchConfig, path: Union[str, Path]) -> Path:
    """
    Save a search configuration to a JSON file.

    Args:
        config: Configuration to save
        path: Destination path

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config.as_dict(), f, indent=2)
    logger.info(f"Configuration saved to {path}")
    return path
