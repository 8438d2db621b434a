"""
Unit tests for indoor_nav/floorplan/provider.py and buildings.py.

Run with: pytest tests/floorplan/test_constraint_provider.py -v
"""

import math
import unittest

import numpy as np

from indoor_nav.floorplan import (
    BuildingDetector,
    Entrance,
    FloorConstraintProvider,
    FloorPlacement,
    FloorPlan,
    Wall,
    transform_floor,
)
from indoor_nav.sim import corridor_floor_plan


def _simple_plan() -> FloorPlan:
    return FloorPlan(
        floor_id="floor_1",
        building_id="building_1",
        walls=[Wall(0.0, 0.0, 100.0, 0.0), Wall(0.0, 500.0, 100.0, 500.0)],
        entrances=[Entrance(id=1, x=50.0, y=-40.0), Entrance(id=2, x=90.0, y=0.0)],
    )


class TestFloorConstraintProvider(unittest.TestCase):

    def setUp(self) -> None:
        self.provider = FloorConstraintProvider()
        self.provider.load_floor(_simple_plan(), 1.0, 0.0, 0.0, 0.0)

    def test_empty_provider(self) -> None:
        provider = FloorConstraintProvider()

        assert not provider.is_loaded()
        assert provider.get_walls_near(np.zeros(2), 1000.0) == []
        assert provider.get_entrances_near(np.zeros(2), 1000.0) == []

    def test_walls_near(self) -> None:
        walls = self.provider.get_walls_near(np.array([50.0, 20.0]), 150.0)

        assert len(walls) == 1
        np.testing.assert_allclose(walls[0].start, [0.0, 0.0])

    def test_entrances_filtered_by_radius(self) -> None:
        near = self.provider.get_entrances_near(np.array([50.0, 0.0]), 45.0)

        assert sorted(e.id for e in near) == [1, 2]
        assert [e.id for e in self.provider.get_entrances_near(np.array([50.0, 0.0]), 39.0)] == []

    def test_entrances_filtered_by_heading(self) -> None:
        position = np.array([50.0, 0.0])

        # Heading 0 is screen-up: only entrance 1 at (50, -40) lies ahead
        ahead = self.provider.get_entrances_near(position, 100.0, heading=0.0)
        assert [e.id for e in ahead] == [1]

        # Heading east: only entrance 2
        east = self.provider.get_entrances_near(position, 100.0, heading=math.pi / 2)
        assert [e.id for e in east] == [2]

    def test_entrance_at_position_skips_direction_check(self) -> None:
        found = self.provider.get_entrances_near(np.array([90.0, 0.5]), 10.0, heading=math.pi)

        assert [e.id for e in found] == [2]

    def test_load_replaces_previous_floor(self) -> None:
        self.provider.load_floor(corridor_floor_plan(2), 1.0, 0.0, 0.0, 0.0)

        assert self.provider.floor_id == "floor_2"
        assert len(self.provider.all_walls()) > 2

        self.provider.clear()
        assert not self.provider.is_loaded()
        assert self.provider.floor_id is None


class TestBuildingDetector(unittest.TestCase):

    def test_detect_building_change(self) -> None:
        inside = transform_floor(corridor_floor_plan(1, 1, "building_1"), FloorPlacement())
        other = transform_floor(corridor_floor_plan(1, 1, "building_2"),
                                FloorPlacement(offset_x=2000.0))
        detector = BuildingDetector()
        detector.load_buildings([inside, other])
        detector.set_initial("building_1", "floor_1")

        same = detector.detect(np.array([100.0, 200.0]))
        assert same.building_id == "building_1"
        assert not same.changed

        moved = detector.detect(np.array([2100.0, 200.0]))
        assert moved.building_id == "building_2"
        assert moved.changed

        outdoors = detector.detect(np.array([1500.0, 200.0]))
        assert outdoors.building_id is None
        assert outdoors.changed
