"""
Stair pair construction.

Stair entrances are authored per floor. A ``"bottom"`` entrance whose
``floor`` equals its own floor's number marks where a stairwell starts going
up; a ``"top"`` entrance on the same floor file whose ``floor`` is higher
marks where it arrives. The mirror case (a ``"top"`` entrance at the floor's
own number plus a lower ``"bottom"``) describes a stairwell going down.
Matching is by nearest position, since several stairwells can lead to the
same destination floor.
"""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

from indoor_nav.floorplan.types import CampusEntrance, CampusFloor, floor_id_for_number
from indoor_nav.utils.geometry import distance
from .types import StairPair


logger = logging.getLogger(__name__)

# Two pairs closer than this at both ends describe the same stairwell
DUPLICATE_PAIR_DISTANCE = 5.0


def _nearest(origin: CampusEntrance, candidates: List[CampusEntrance]) -> Optional[CampusEntrance]:
    if not candidates:
        return None
    return min(candidates, key=lambda c: distance(origin.position, c.position))


def build_stair_pairs(floors: Iterable[CampusFloor]) -> List[StairPair]:
    """
    Build every stair pair of a campus.

    Args:
        floors: All transformed floors of every building.

    Returns:
        List of StairPair, up pairs of a floor before its down pairs. A down
        pair already produced from the lower floor's up pass is skipped.
    """
    floors = sorted(floors, key=lambda f: (f.building_id, f.floor_number))
    floor_ids: Dict[str, Dict[float, str]] = {}
    for floor in floors:
        floor_ids.setdefault(floor.building_id, {})[floor.floor_number] = floor.floor_id

    def resolve(building_id: str, number: float) -> str:
        return floor_ids.get(building_id, {}).get(number, floor_id_for_number(number))

    pairs: List[StairPair] = []
    for floor in floors:
        number = floor.floor_number
        stairs = [e for e in floor.entrances if e.is_stairs and e.connected_floor is not None]

        tops_above = [e for e in stairs if e.is_stairs_top and e.connected_floor > number]
        for bottom in (e for e in stairs if e.is_stairs_bottom and e.connected_floor == number):
            top = _nearest(bottom, tops_above)
            if top is None:
                continue
            pairs.append(StairPair(
                bottom_position=bottom.position,
                top_position=top.position,
                bottom_floor_id=floor.floor_id,
                top_floor_id=resolve(floor.building_id, top.connected_floor),
                bottom_floor_number=number,
                top_floor_number=top.connected_floor,
            ))

        bottoms_below = [e for e in stairs if e.is_stairs_bottom and e.connected_floor < number]
        for top in (e for e in stairs if e.is_stairs_top and e.connected_floor == number):
            bottom = _nearest(top, bottoms_below)
            if bottom is None:
                continue
            dest_id = resolve(floor.building_id, bottom.connected_floor)
            if _already_paired(pairs, dest_id, floor.floor_id, bottom.position, top.position):
                continue
            pairs.append(StairPair(
                bottom_position=bottom.position,
                top_position=top.position,
                bottom_floor_id=dest_id,
                top_floor_id=floor.floor_id,
                bottom_floor_number=bottom.connected_floor,
                top_floor_number=number,
            ))

    logger.debug(f"Built {len(pairs)} stair pairs from {len(floors)} floors")
    return pairs


def _already_paired(
    pairs: List[StairPair],
    bottom_floor_id: str,
    top_floor_id: str,
    bottom_position: np.ndarray,
    top_position: np.ndarray,
) -> bool:
    return any(
        p.bottom_floor_id == bottom_floor_id
        and p.top_floor_id == top_floor_id
        and distance(p.bottom_position, bottom_position) < DUPLICATE_PAIR_DISTANCE
        and distance(p.top_position, top_position) < DUPLICATE_PAIR_DISTANCE
        for p in pairs
    )
