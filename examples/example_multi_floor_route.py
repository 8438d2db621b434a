"""
Example: Multi-Floor Routing with Live Route Maintenance

Routes from the west end of the ground-floor corridor to a room on an
upper floor of the synthetic building, then walks a user along the route
(with one detour) while a RouteTracker trims and reroutes it.

Can run with:
    - Default (room 205):     python example_multi_floor_route.py
    - Another destination:    python example_multi_floor_route.py --room 303 --floors 3
    - Placed on the campus:   python example_multi_floor_route.py --rotation 30 --scale 1.25

Demonstrates:
    - Per-floor wall-distance grids with A* and line-of-sight smoothing
    - Stair pairing across floors and shortest-candidate route selection
    - Background rerouting when the user leaves the route

Author: Navigation Engineering Team
"""

import argparse
import logging
import time
from pathlib import Path

import numpy as np

from indoor_nav.campus import CampusGeometry
from indoor_nav.eval import plot_route, save_figure
from indoor_nav.floorplan import FloorPlacement, raw_to_campus_array, transform_floor
from indoor_nav.navigation import MultiFloorPathfinder, RouteTracker, find_entrance_for_room
from indoor_nav.sim import corridor_building
from indoor_nav.sim.floor_plans import CORRIDOR_CENTRE


def run_example(
    room: str = "205",
    num_floors: int = 2,
    scale: float = 1.0,
    rotation: float = 0.0,
    output_dir: str = None,
) -> None:
    print("\n" + "=" * 70)
    print("Multi-Floor Routing")
    print("=" * 70)

    placement = FloorPlacement(scale=scale, rotation_degrees=rotation)
    floors = [transform_floor(plan, placement) for plan in corridor_building(num_floors)]
    geometry = CampusGeometry.from_floors(floors)
    print(f"\nCampus: {len(geometry.floor_ids)} floors, "
          f"{len(geometry.all_entrances)} entrances, {len(geometry.stair_pairs)} stair pairs")

    goal = find_entrance_for_room(geometry.all_entrances, room_no=room)
    if goal is None:
        print(f"\n[ERROR] Room {room} not found")
        return
    start = raw_to_campus_array(np.array([40.0, CORRIDOR_CENTRE]), placement)[0]
    print(f"Start: floor_1 ({start[0]:.1f}, {start[1]:.1f})")
    print(f"Goal:  {goal.floor_id} room {goal.room_no} "
          f"({goal.position[0]:.1f}, {goal.position[1]:.1f})")

    # 1. Direct query
    pathfinder = MultiFloorPathfinder(geometry.router_cache)
    t0 = time.perf_counter()
    path = pathfinder.find_multi_floor_path(
        start, "floor_1", goal,
        geometry.all_entrances, geometry.walls_by_floor, geometry.boundary_by_floor,
    )
    elapsed_ms = (time.perf_counter() - t0) * 1000.0

    print("\n" + "=" * 70)
    print("ROUTE")
    print("=" * 70)
    if path.is_empty:
        print("No route found")
        return
    for segment in path.segments:
        print(f"  {segment.floor_id}: {len(segment.points)} waypoints, "
              f"{segment.length():.1f} units")
    print(f"  Total: {path.total_length():.1f} units over {path.total_floors} floors "
          f"({elapsed_ms:.1f} ms, grids built on first use)")

    # 2. Live maintenance: follow the first leg, then step off it
    print("\nTracking user along the route...")
    with RouteTracker(pathfinder) as tracker:
        tracker.request_route(start, "floor_1", goal, geometry)
        tracker.wait(timeout=30.0)

        first_leg = tracker.current_path.segments[0]
        waypoint = first_leg.points[min(1, len(first_leg.points) - 1)]
        midway = 0.5 * (np.asarray(first_leg.points[0]) + np.asarray(waypoint))
        progress = tracker.update_user_position(midway, "floor_1")
        print(f"  On route:  deviation {progress.deviation:.1f}, "
              f"remaining {progress.path.total_length():.1f} units")

        detour = raw_to_campus_array(np.array([100.0, 30.0]), placement)[0]
        progress = tracker.update_user_position(detour, "floor_1")
        print(f"  Detour:    deviation {progress.deviation:.1f}, rerouting={progress.rerouting}")
        rerouted = tracker.wait(timeout=30.0)
        print(f"  Rerouted:  {rerouted.total_length():.1f} units, "
              f"starts at ({rerouted.all_points[0][0]:.1f}, {rerouted.all_points[0][1]:.1f})")

    # 3. Plot
    print("\nGenerating plots...")
    fig = plot_route(path, floors=[geometry.campus_floor(fid) for fid in geometry.floor_ids],
                     title=f"Route to room {goal.room_no}")
    figs_dir = Path(output_dir) if output_dir else Path(__file__).parent / "figs"
    for saved in save_figure(fig, figs_dir, f"route_room_{goal.room_no}"):
        print(f"  [OK] Saved: {saved}")

    print("\n" + "=" * 70)
    print("KEY INSIGHT: Every stair leading the right way is tried; the")
    print("             shortest complete route wins.")
    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(
        description="Multi-floor routing in the synthetic corridor building"
    )
    parser.add_argument("--room", type=str, default="205",
                        help="Destination room number (default: 205)")
    parser.add_argument("--floors", type=int, default=2,
                        help="Floors of the building (default: 2)")
    parser.add_argument("--scale", type=float, default=1.0,
                        help="Building scale on the campus (default: 1.0)")
    parser.add_argument("--rotation", type=float, default=0.0,
                        help="Building rotation in degrees (default: 0.0)")
    parser.add_argument("--output", type=str, default=None,
                        help="Figure directory (default: figs/ next to this script)")
    parser.add_argument("--verbose", action="store_true",
                        help="Show debug logging from the pathfinder")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    run_example(args.room, args.floors, args.scale, args.rotation, args.output)


if __name__ == "__main__":
    main()
