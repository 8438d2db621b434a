"""
Entrance snapping.

A turn is usually made at a doorway. When the buffer shows one, the turn
step is pulled onto the closest entrance that lies ahead of the user along
the pre-turn heading, and the along-track part of the correction becomes a
stride calibration hint.
"""

from typing import Optional

import numpy as np

from indoor_nav.floorplan.provider import FloorConstraintProvider
from indoor_nav.utils.geometry import distance, heading_to_unit_vector
from .config import CorrectionConfig
from .types import SnapResult


class EntranceSnapper:
    """
    Snaps turn positions onto nearby entrances.

    Candidates come from the provider filtered by radius and by direction
    from the turn position. The closest wins but is rejected if it is more
    than half the snap radius away, which guards against jumping to the
    wrong door.
    """

    def __init__(self, config: Optional[CorrectionConfig] = None):
        self.config = config or CorrectionConfig()

    def snap(
        self,
        turn_position: np.ndarray,
        pre_heading: float,
        stride_length: float,
        provider: FloorConstraintProvider,
    ) -> SnapResult:
        """
        Try to snap ``turn_position`` onto an entrance.

        Args:
            turn_position: Buffered position of the turn step.
            pre_heading: Heading before the turn (rad).
            stride_length: Stride of the turn step (campus units).
            provider: Geometry of the active floor.

        Returns:
            SnapResult; ``was_snapped`` is False when no entrance qualifies.
        """
        turn_position = np.asarray(turn_position, dtype=np.float64)
        no_snap = SnapResult(snapped_position=turn_position, was_snapped=False)

        candidates = provider.get_entrances_near(
            turn_position,
            self.config.entrance_snap_radius,
            heading=pre_heading,
            tolerance=self.config.entrance_direction_tolerance,
        )
        if not candidates:
            return no_snap

        closest = min(candidates, key=lambda e: distance(turn_position, e.position))
        if distance(turn_position, closest.position) > 0.5 * self.config.entrance_snap_radius:
            return no_snap

        target = np.asarray(closest.position, dtype=np.float64)
        delta = target - turn_position
        if stride_length > 0:
            along_track = float(np.dot(delta, heading_to_unit_vector(pre_heading)))
            max_adj = self.config.max_stride_adjustment
            factor = 1.0 + float(np.clip(along_track / stride_length, -max_adj, max_adj))
        else:
            factor = 1.0

        return SnapResult(
            snapped_position=target,
            was_snapped=True,
            correction_delta=delta,
            stride_calibration_factor=factor,
            entrance_id=closest.id,
        )
