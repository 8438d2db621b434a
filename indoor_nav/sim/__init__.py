"""
Simulation utilities for demos, datasets and tests.

Modules:
    floor_plans: Synthetic corridor building with a switchback stairwell
    walks: Step sequences with heading and stride errors along a polyline
"""

from .floor_plans import (
    corridor_walls,
    corridor_floor_plan,
    corridor_building,
    stair_ends,
)
from .walks import SimulatedWalk, simulate_walk

__all__ = [
    "corridor_walls",
    "corridor_floor_plan",
    "corridor_building",
    "stair_ends",
    "SimulatedWalk",
    "simulate_walk",
]
