"""
Unit tests for indoor_nav/campus.py.

Run with: pytest tests/test_campus.py -v
"""

import unittest

import numpy as np
import pytest

from indoor_nav.campus import CampusGeometry
from indoor_nav.floorplan import FloorPlacement, transform_floor
from indoor_nav.sim import corridor_building


def _floors(building_id="building_1", offset_x=0.0):
    placement = FloorPlacement(offset_x=offset_x)
    return [transform_floor(p, placement) for p in corridor_building(2, building_id)]


class TestCampusGeometry(unittest.TestCase):

    def setUp(self) -> None:
        self.geometry = CampusGeometry.from_floors(
            _floors() + _floors("building_2", offset_x=1000.0)
        )

    def test_floors_merged_by_id(self) -> None:
        single = len(_floors()[0].walls)

        assert self.geometry.floor_ids == ["floor_1", "floor_2"]
        assert len(self.geometry.walls_by_floor["floor_1"]) == 2 * single
        assert {e.building_id for e in self.geometry.entrances_by_floor["floor_2"]} == {
            "building_1", "building_2"
        }

    def test_stair_pairs_per_building(self) -> None:
        pairs = self.geometry.stair_pairs

        assert len(pairs) == 2
        assert sorted(p.bottom_position[0] for p in pairs) == [620.0, 1620.0]

    def test_campus_floor(self) -> None:
        floor = self.geometry.campus_floor("floor_2")

        assert floor.floor_id == "floor_2"
        assert len(floor.boundaries) == 2
        assert self.geometry.campus_floor("floor_7").walls == []

    def test_floor_lookup(self) -> None:
        floor = self.geometry.floor("building_2", "floor_1")

        assert floor.building_id == "building_2"
        assert self.geometry.floor("building_3", "floor_1") is None

    def test_invalidate(self) -> None:
        self.geometry.router_cache.get_or_build("floor_1", self.geometry.walls_by_floor,
                                                self.geometry.boundary_by_floor)

        self.geometry.invalidate()

        assert not self.geometry.is_loaded
        assert self.geometry.stair_pairs == []
        assert "floor_1" not in self.geometry.router_cache

    def test_refresh_needs_source(self) -> None:
        with pytest.raises(ValueError, match="no source"):
            self.geometry.refresh()

    def test_all_entrances_in_campus_space(self) -> None:
        xs = [e.position[0] for e in self.geometry.all_entrances if e.building_id == "building_2"]

        assert min(xs) >= 1000.0
        np.testing.assert_allclose(max(xs), 1760.0)
