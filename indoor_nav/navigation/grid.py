"""
Wall distance-transform grid.

Every cell of the grid stores the distance, in cell units, from its centre
to the nearest wall segment. The distance drives both hard blocking and the
movement cost used by A*.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from indoor_nav.floorplan.types import CampusBoundary, CampusWall
from indoor_nav.utils.geometry import distances_to_segments


logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


@dataclass(frozen=True)
class GridConfig:
    """
    Tunables of the distance-transform grid.

    Thresholds are in cell units, ``cell_size`` in campus units.

    Attributes:
        cell_size: Side of one cell. Fine enough that standard doorways
            span at least two passable cells.
        origin_padding: Empty cells kept before the minimum coordinate.
        extent_padding: Empty cells kept after the maximum coordinate.
        block_threshold: Cells closer than this to a wall are impassable.
        buffer_threshold: Cells closer than this are the costly buffer zone
            and are never crossed by a smoothed segment.
        near_wall_threshold: Cells closer than this get the moderate cost.
        buffer_cost: Cost of stepping onto a buffer cell.
        near_wall_cost: Cost of stepping onto a near-wall cell.
        open_cost: Cost of stepping onto an open cell.
        snap_radius: Ring radius, in cells, searched for a passable cell
            around a blocked start or goal.
        sight_step: Line-of-sight sample spacing as a fraction of a cell.
    """

    cell_size: float = 15.0
    origin_padding: int = 2
    extent_padding: int = 4
    block_threshold: float = 0.55
    buffer_threshold: float = 1.5
    near_wall_threshold: float = 3.0
    buffer_cost: float = 5.0
    near_wall_cost: float = 2.0
    open_cost: float = 1.0
    snap_radius: int = 20
    sight_step: float = 0.4

    def __post_init__(self):
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if self.origin_padding < 0 or self.extent_padding < 0:
            raise ValueError("grid padding must be non-negative")
        if not 0 <= self.block_threshold <= self.buffer_threshold <= self.near_wall_threshold:
            raise ValueError(
                "thresholds must satisfy 0 <= block <= buffer <= near_wall, got "
                f"{self.block_threshold}, {self.buffer_threshold}, {self.near_wall_threshold}"
            )
        if not 0 < self.open_cost <= self.near_wall_cost <= self.buffer_cost:
            raise ValueError(
                "costs must satisfy 0 < open <= near_wall <= buffer, got "
                f"{self.open_cost}, {self.near_wall_cost}, {self.buffer_cost}"
            )
        if self.snap_radius < 0:
            raise ValueError(f"snap_radius must be non-negative, got {self.snap_radius}")
        if not 0 < self.sight_step <= 1:
            raise ValueError(f"sight_step must be in (0, 1], got {self.sight_step}")


class WallDistanceGrid:
    """
    Distance transform over a rectangular patch of campus space.

    Cell ``(i, j)`` covers ``[origin + (i, j) * cell_size, origin + (i + 1, j + 1) * cell_size)``
    and ``distances[i, j]`` is the distance from its centre to the nearest
    wall in cell units.

    Args:
        distances: Array of shape (nx, ny).
        origin: Campus position of the corner of cell (0, 0).
        config: Grid tunables.

    Example:
        >>> grid = WallDistanceGrid(np.full((10, 10), np.inf), origin=(0.0, 0.0),
        ...                         config=GridConfig(cell_size=1.0))
        >>> grid.is_blocked((3, 3))
        False
    """

    def __init__(
        self,
        distances: np.ndarray,
        origin: Sequence[float] = (0.0, 0.0),
        config: Optional[GridConfig] = None,
    ):
        distances = np.asarray(distances, dtype=np.float64)
        if distances.ndim != 2 or distances.shape[0] == 0 or distances.shape[1] == 0:
            raise ValueError(f"distances must be a non-empty 2-D array, got shape {distances.shape}")
        self.config = config or GridConfig()
        self.distances = distances
        self.origin = np.asarray(origin, dtype=np.float64).reshape(2)

        cfg = self.config
        self.blocked = distances < cfg.block_threshold
        self.buffered = distances < cfg.buffer_threshold
        self.costs = np.where(
            self.buffered,
            cfg.buffer_cost,
            np.where(distances < cfg.near_wall_threshold, cfg.near_wall_cost, cfg.open_cost),
        )
        self.costs[self.blocked] = np.inf

    @classmethod
    def from_walls(
        cls,
        walls: Sequence[CampusWall],
        extra_points: Sequence[np.ndarray] = (),
        boundaries: Sequence[CampusBoundary] = (),
        config: Optional[GridConfig] = None,
    ) -> "WallDistanceGrid":
        """
        Build the grid covering the walls and any extra points.

        Args:
            walls: Campus walls of one floor.
            extra_points: Points that must fall inside the grid, such as
                stair and destination entrances.
            boundaries: Floor outline polygons. When given, cells whose
                centre lies outside all of them are hard-blocked.
            config: Grid tunables.

        Returns:
            The distance-transform grid.
        """
        config = config or GridConfig()
        segments = np.array([w.as_row() for w in walls], dtype=np.float64).reshape(-1, 4)
        extras = np.asarray(list(extra_points), dtype=np.float64).reshape(-1, 2)
        coords = np.vstack([segments[:, :2], segments[:, 2:], extras])
        if coords.shape[0] == 0:
            raise ValueError("cannot build a grid without walls or extra points")

        g = config.cell_size
        min_xy = coords.min(axis=0)
        max_xy = coords.max(axis=0)
        origin = np.floor(min_xy / g - config.origin_padding) * g
        nx, ny = ((max_xy - origin) / g + config.extent_padding).astype(int)

        centres = _cell_centres(origin, nx, ny, g)
        distances = distances_to_segments(centres, segments) / g
        distances = distances.reshape(nx, ny)

        if boundaries:
            inside = np.zeros(centres.shape[0], dtype=bool)
            for boundary in boundaries:
                inside |= boundary.contains_points(centres)
            exterior = ~inside.reshape(nx, ny)
            distances[exterior] = 0.0
            logger.debug(f"Blocked {int(exterior.sum())} exterior cells "
                         f"using {len(boundaries)} boundary polygon(s)")

        logger.debug(f"Grid: origin({origin[0]:.1f}, {origin[1]:.1f}), size {nx}x{ny}, "
                     f"walls={segments.shape[0]}, cell_size={g}")
        return cls(distances, origin=origin, config=config)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.distances.shape

    def in_bounds(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.distances.shape[0] and 0 <= y < self.distances.shape[1]

    def is_blocked(self, cell: Cell) -> bool:
        """Out-of-bounds cells count as blocked."""
        return not self.in_bounds(cell) or bool(self.blocked[cell])

    def is_buffered(self, cell: Cell) -> bool:
        """True inside the wall buffer zone, or out of bounds."""
        return not self.in_bounds(cell) or bool(self.buffered[cell])

    def movement_cost(self, cell: Cell) -> float:
        """Cost of stepping onto ``cell``, infinite when blocked."""
        if not self.in_bounds(cell):
            return math.inf
        return float(self.costs[cell])

    def world_to_cell(self, point: np.ndarray) -> Cell:
        rel = (np.asarray(point, dtype=np.float64) - self.origin) / self.config.cell_size
        return int(math.floor(rel[0])), int(math.floor(rel[1]))

    def cell_to_world(self, cell: Cell) -> np.ndarray:
        """Campus position of the cell centre."""
        return self.origin + (np.array(cell, dtype=np.float64) + 0.5) * self.config.cell_size

    def nearest_passable_cell(self, cell: Cell) -> Optional[Cell]:
        """
        The cell itself when passable, otherwise the first passable cell on
        expanding square rings around it.

        The query is clamped into the grid first so that points outside the
        grid still snap to its edge.
        """
        nx, ny = self.distances.shape
        cx = min(max(cell[0], 0), nx - 1)
        cy = min(max(cell[1], 0), ny - 1)
        if not self.blocked[cx, cy]:
            return cx, cy

        for r in range(1, self.config.snap_radius + 1):
            for dx in range(-r, r + 1):
                for dy in range(-r, r + 1):
                    if abs(dx) != r and abs(dy) != r:
                        continue
                    candidate = (cx + dx, cy + dy)
                    if self.in_bounds(candidate) and not self.blocked[candidate]:
                        return candidate

        logger.warning(f"No passable cell near {cell} (clamped ({cx}, {cy}), grid {nx}x{ny})")
        return None


def _cell_centres(origin: np.ndarray, nx: int, ny: int, cell_size: float) -> np.ndarray:
    """Centres of all cells, shape (nx * ny, 2), ordered to reshape as (nx, ny)."""
    xs = origin[0] + (np.arange(nx) + 0.5) * cell_size
    ys = origin[1] + (np.arange(ny) + 0.5) * cell_size
    gx, gy = np.meshgrid(xs, ys, indexing="ij")
    return np.column_stack([gx.ravel(), gy.ravel()])
