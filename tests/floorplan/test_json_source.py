"""
Unit tests for indoor_nav/floorplan/source.py and campus loading.

Run with: pytest tests/floorplan/test_json_source.py -v
"""

import json

import numpy as np
import pytest

from indoor_nav.campus import CampusGeometry
from indoor_nav.floorplan import JsonFloorPlanSource, floor_plan_to_dict
from indoor_nav.floorplan.source import entrance_from_dict, parse_stairs
from indoor_nav.sim import corridor_building


def _write_campus(root, num_floors=2, metadata=None):
    building_dir = root / "building_1"
    for plan in corridor_building(num_floors):
        floor_dir = building_dir / plan.floor_id
        floor_dir.mkdir(parents=True)
        docs = floor_plan_to_dict(plan)
        for kind in ("walls", "entrances", "boundary"):
            (floor_dir / f"{plan.floor_id}_{kind}.json").write_text(json.dumps(docs[kind]))
    meta = metadata or {
        "building_id": "building_1",
        "building_name": "Corridor Building",
        "scale": 1.0,
        "rotation": 0.0,
        "relative_position": {"x": 100.0, "y": 0.0},
    }
    (building_dir / "building_1_metadata.json").write_text(json.dumps(meta))


def test_parse_stairs_legacy_boolean():
    assert parse_stairs(True) == "bottom"
    assert parse_stairs(False) is None
    assert parse_stairs(" top ") == "top"
    assert parse_stairs("") is None
    assert parse_stairs(None) is None


def test_entrance_from_dict_defaults():
    entrance = entrance_from_dict({"id": "3", "x": 1, "y": 2})

    assert entrance.id == 3
    assert entrance.floor is None
    assert entrance.available


def test_round_trip_through_files(tmp_path):
    _write_campus(tmp_path)
    source = JsonFloorPlanSource(tmp_path)

    assert source.available_buildings() == ["building_1"]
    assert source.available_floors("building_1") == ["floor_1", "floor_2"]

    original = corridor_building(2)[1]
    loaded = source.load_floor_plan("building_1", "floor_2")
    assert loaded.walls == original.walls
    assert loaded.entrances == original.entrances
    np.testing.assert_allclose(loaded.boundary_polygons[0].points,
                               original.boundary_polygons[0].points)


def test_missing_optional_file_loads_empty(tmp_path):
    _write_campus(tmp_path, num_floors=1)
    (tmp_path / "building_1" / "floor_1" / "floor_1_boundary.json").unlink()
    (tmp_path / "building_1" / "floor_1" / "floor_1_walls.json").write_text("{not json")

    plan = JsonFloorPlanSource(tmp_path).load_floor_plan("building_1", "floor_1")

    assert plan.walls == []
    assert plan.boundary_polygons == []
    assert len(plan.entrances) > 0


def test_missing_root_raises(tmp_path):
    with pytest.raises(ValueError, match="not found"):
        JsonFloorPlanSource(tmp_path / "nowhere")


def test_campus_geometry_from_source(tmp_path):
    _write_campus(tmp_path)

    geometry = CampusGeometry.from_source(JsonFloorPlanSource(tmp_path))

    assert geometry.is_loaded
    assert geometry.floor_ids == ["floor_1", "floor_2"]
    assert geometry.metadata["building_1"].building_name == "Corridor Building"
    assert len(geometry.stair_pairs) == 1
    # Building offset applied to every entrance
    assert min(e.position[0] for e in geometry.all_entrances) >= 100.0


def test_parse_stairs_unknown_values_are_regular_entrances():
    assert parse_stairs("Top") == "top"
    assert parse_stairs("BOTTOM ") == "bottom"
    assert parse_stairs("middle") is None
    assert parse_stairs(3) is None


def test_malformed_records_are_skipped(tmp_path, caplog):
    floor_dir = tmp_path / "building_1" / "floor_1"
    floor_dir.mkdir(parents=True)
    (floor_dir / "floor_1_walls.json").write_text(json.dumps([
        {"x1": 0, "y1": 0, "x2": 100, "y2": 0},
        {"y1": 0, "x2": 100, "y2": 50},
        {"x1": "a", "y1": 0, "x2": 1, "y2": 1},
    ]))
    (floor_dir / "floor_1_entrances.json").write_text(json.dumps({"entrances": [
        {"id": 1, "x": 0, "y": 0, "stairs": "middle"},
        {"id": 2, "x": 10, "y": 0, "stairs": "Top"},
        {"x": 20, "y": 0},
        "not a record",
    ]}))
    (floor_dir / "floor_1_boundary.json").write_text(json.dumps({"polygons": [
        {"name": "outline", "points": [{"id": 0, "x": 0, "y": 0}, {"id": 1, "x": 1}]},
    ]}))

    with caplog.at_level("WARNING", logger="indoor_nav.floorplan.source"):
        plan = JsonFloorPlanSource(tmp_path).load_floor_plan("building_1", "floor_1")

    assert len(plan.walls) == 1
    assert [e.id for e in plan.entrances] == [1, 2]
    assert plan.entrances[0].stairs is None
    assert plan.entrances[1].stairs == "top"
    assert plan.boundary_polygons == []
    assert sum("Skipping" in r.getMessage() for r in caplog.records) == 5


def test_wrong_document_shape_loads_empty(tmp_path):
    floor_dir = tmp_path / "building_1" / "floor_1"
    floor_dir.mkdir(parents=True)
    (floor_dir / "floor_1_walls.json").write_text(json.dumps({"walls": []}))
    (floor_dir / "floor_1_entrances.json").write_text(json.dumps([1, 2]))

    plan = JsonFloorPlanSource(tmp_path).load_floor_plan("building_1", "floor_1")

    assert plan.walls == []
    assert plan.entrances == []
