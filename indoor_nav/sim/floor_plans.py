"""
Synthetic floor plans.

A corridor building used by the demos, the dataset generator and the tests:
an 800 x 400 unit outline with an east-west corridor (y in [150, 250]),
four rooms to the north, three to the south, and a switchback stairwell
whose two ends sit in the corridor.

Floor-local layout (y grows downwards)::

    0      200     400     600     800
    +-------+-------+-------+-------+  0
    |  x01  |  x02  |  x03  |  x04  |
    +--d----+--d----+--d----+--d----+  150
    |          A=====stairs=====B   |
    +-----d-------+---d---+----d----+  250
    |     x05     |  x06  |   x07   |
    +-------------+-------+---------+  400

Going up from an odd floor the stairs run A -> B, from an even floor
B -> A.
"""

from typing import List, Sequence, Tuple

import numpy as np

from indoor_nav.floorplan.types import (
    BoundaryPolygon,
    Entrance,
    FloorPlan,
    STAIRS_BOTTOM,
    STAIRS_TOP,
    Wall,
    floor_id_for_number,
)


WIDTH = 800.0
HEIGHT = 400.0
CORRIDOR_TOP = 150.0
CORRIDOR_BOTTOM = 250.0
CORRIDOR_CENTRE = 0.5 * (CORRIDOR_TOP + CORRIDOR_BOTTOM)
DOOR_HALF_WIDTH = 30.0

NORTH_DIVIDERS = (200.0, 400.0, 600.0)
SOUTH_DIVIDERS = (300.0, 500.0)
NORTH_DOORS = (100.0, 300.0, 500.0, 700.0)
SOUTH_DOORS = (150.0, 400.0, 650.0)

STAIR_A = (620.0, CORRIDOR_CENTRE)
STAIR_B = (760.0, CORRIDOR_CENTRE)


def _wall_with_gaps(y: float, gaps: Sequence[float]) -> List[Wall]:
    """Horizontal wall across the building with a door gap around each x."""
    walls = []
    x = 0.0
    for centre in sorted(gaps):
        walls.append(Wall(x, y, centre - DOOR_HALF_WIDTH, y))
        x = centre + DOOR_HALF_WIDTH
    walls.append(Wall(x, y, WIDTH, y))
    return walls


def corridor_walls() -> List[Wall]:
    """Walls shared by every floor of the corridor building."""
    walls = [
        Wall(0.0, 0.0, WIDTH, 0.0),
        Wall(WIDTH, 0.0, WIDTH, HEIGHT),
        Wall(WIDTH, HEIGHT, 0.0, HEIGHT),
        Wall(0.0, HEIGHT, 0.0, 0.0),
    ]
    walls += _wall_with_gaps(CORRIDOR_TOP, NORTH_DOORS)
    walls += _wall_with_gaps(CORRIDOR_BOTTOM, SOUTH_DOORS)
    walls += [Wall(x, 0.0, x, CORRIDOR_TOP) for x in NORTH_DIVIDERS]
    walls += [Wall(x, CORRIDOR_BOTTOM, x, HEIGHT) for x in SOUTH_DIVIDERS]
    return walls


def stair_ends(floor_number: int) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """(start, end) of the flight going up from ``floor_number``."""
    return (STAIR_A, STAIR_B) if floor_number % 2 == 1 else (STAIR_B, STAIR_A)


def corridor_floor_plan(
    floor_number: int,
    num_floors: int = 2,
    building_id: str = "building_1",
) -> FloorPlan:
    """
    One floor of the corridor building.

    Args:
        floor_number: Level, 1 is the ground floor.
        num_floors: Number of levels of the building.
        building_id: Building the floor belongs to.

    Returns:
        FloorPlan with walls, room doors, stair entrances and the outline.
    """
    if not 1 <= floor_number <= num_floors:
        raise ValueError(f"floor_number must be in [1, {num_floors}], got {floor_number}")

    entrances = []
    doors = [(x, CORRIDOR_TOP) for x in NORTH_DOORS] + [(x, CORRIDOR_BOTTOM) for x in SOUTH_DOORS]
    for i, (x, y) in enumerate(doors, start=1):
        room_no = f"{floor_number}{i:02d}"
        entrances.append(Entrance(id=i, x=x, y=y, name=f"Room {room_no}", room_no=room_no))

    next_id = len(entrances) + 1
    if floor_number < num_floors:
        start, end = stair_ends(floor_number)
        entrances.append(Entrance(id=next_id, x=start[0], y=start[1], name="Stairs",
                                  stairs=STAIRS_BOTTOM, floor=float(floor_number)))
        entrances.append(Entrance(id=next_id + 1, x=end[0], y=end[1], name="Stairs",
                                  stairs=STAIRS_TOP, floor=float(floor_number + 1)))
        next_id += 2
    if floor_number > 1:
        start, end = stair_ends(floor_number - 1)
        entrances.append(Entrance(id=next_id, x=end[0], y=end[1], name="Stairs",
                                  stairs=STAIRS_TOP, floor=float(floor_number)))
        entrances.append(Entrance(id=next_id + 1, x=start[0], y=start[1], name="Stairs",
                                  stairs=STAIRS_BOTTOM, floor=float(floor_number - 1)))

    outline = BoundaryPolygon(
        name="outline",
        points=np.array([[0.0, 0.0], [WIDTH, 0.0], [WIDTH, HEIGHT], [0.0, HEIGHT]]),
    )
    return FloorPlan(
        floor_id=floor_id_for_number(floor_number),
        building_id=building_id,
        walls=corridor_walls(),
        entrances=entrances,
        boundary_polygons=[outline],
    )


def corridor_building(num_floors: int = 2, building_id: str = "building_1") -> List[FloorPlan]:
    """Every floor of the corridor building, bottom to top."""
    if num_floors < 1:
        raise ValueError(f"num_floors must be >= 1, got {num_floors}")
    return [corridor_floor_plan(n, num_floors, building_id) for n in range(1, num_floors + 1)]
