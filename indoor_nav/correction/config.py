"""Correction pipeline configuration.

All distances are campus units (1 unit = 2 cm) and all angles radians.
Configurations are immutable; swapping one into a running engine goes
through ``StepCorrectionEngine.update_config``.
"""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union


@dataclass(frozen=True)
class CorrectionConfig:
    """
    Tunable parameters of the correction pipeline.

    Attributes:
        buffer_size: Steps held back before the oldest one is committed.
            Larger buffers see turns earlier but delay the committed path.
        entrance_snap_radius: Search radius for entrance snapping. Matches
            farther than half of it are rejected.
        entrance_direction_tolerance: Maximum deviation (rad) between the
            pre-turn heading and the bearing to an entrance (~45 deg).
        turn_detection_threshold: Heading deviation (rad) that counts as a
            turn (~30 deg).
        wall_epsilon: Stand-off distance kept from a wall after a hit.
        heading_correction_factor: Gain on the heading nudge derived from
            wall slides. 0 disables the nudge.
        wall_search_radius: Radius of the wall query around each step.
        max_wall_iterations: Stop-and-slide rounds per step (corners need 2).
        retroactive_smooth_steps: Committed points that share an entrance
            snap correction.
        max_stride_adjustment: Clamp on the stride calibration adjustment
            derived from one snap (0.08 = +/-8 %).

    Example:
        >>> config = CorrectionConfig(buffer_size=5)
        >>> CorrectionConfig.from_dict(config.to_dict()) == config
        True
    """

    buffer_size: int = 3
    entrance_snap_radius: float = 75.0
    entrance_direction_tolerance: float = 0.785
    turn_detection_threshold: float = 0.523
    wall_epsilon: float = 1.0
    heading_correction_factor: float = 0.0
    wall_search_radius: float = 150.0
    max_wall_iterations: int = 3
    retroactive_smooth_steps: int = 3
    max_stride_adjustment: float = 0.08

    def __post_init__(self) -> None:
        """Validate parameter ranges."""
        if self.buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {self.buffer_size}")
        if self.entrance_snap_radius < 0:
            raise ValueError(
                f"entrance_snap_radius must be non-negative, got {self.entrance_snap_radius}"
            )
        if not 0 <= self.entrance_direction_tolerance <= 3.141592653589793:
            raise ValueError(
                "entrance_direction_tolerance must be in [0, π], "
                f"got {self.entrance_direction_tolerance}"
            )
        if self.turn_detection_threshold <= 0:
            raise ValueError(
                f"turn_detection_threshold must be positive, got {self.turn_detection_threshold}"
            )
        if self.wall_epsilon < 0:
            raise ValueError(f"wall_epsilon must be non-negative, got {self.wall_epsilon}")
        if self.wall_search_radius < 0:
            raise ValueError(
                f"wall_search_radius must be non-negative, got {self.wall_search_radius}"
            )
        if self.max_wall_iterations < 1:
            raise ValueError(
                f"max_wall_iterations must be >= 1, got {self.max_wall_iterations}"
            )
        if self.retroactive_smooth_steps < 0:
            raise ValueError(
                f"retroactive_smooth_steps must be >= 0, got {self.retroactive_smooth_steps}"
            )
        if not 0 <= self.max_stride_adjustment < 1:
            raise ValueError(
                f"max_stride_adjustment must be in [0, 1), got {self.max_stride_adjustment}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CorrectionConfig":
        """
        Build a config from a dictionary, e.g. a parsed JSON file.

        Missing keys take their defaults.

        Raises:
            ValueError: If ``data`` contains keys that are not parameters.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown correction config keys: {unknown}")
        return cls(**data)


def load_config(path: Union[str, Path]) -> CorrectionConfig:
    """Load a CorrectionConfig from a JSON file."""
    with open(path, "r") as f:
        return CorrectionConfig.from_dict(json.load(f))


def save_config(config: CorrectionConfig, path: Union[str, Path]) -> None:
    """Write a CorrectionConfig to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
