"""
Example: Corrected Dead Reckoning in a Corridor

Walks a simulated pedestrian down the corridor of the synthetic building
and into a room, once with raw step-and-heading dead reckoning and once
through the buffered correction pipeline.

Can run with:
    - Inline data (default): python example_corridor_walk.py
    - Custom compass bias:   python example_corridor_walk.py --heading-bias-deg 8

Demonstrates:
    - Wall clamping keeps the corrected track inside the corridor
    - Entrance snapping at the turn into the room pulls the track back
      onto the door and recalibrates the stride

Author: Navigation Engineering Team
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from indoor_nav.campus import CampusGeometry
from indoor_nav.correction import CorrectionConfig, StepCorrectionEngine
from indoor_nav.eval import (
    compute_error_stats,
    compute_position_errors,
    count_wall_crossings,
    plot_tracked_path,
    save_figure,
)
from indoor_nav.floorplan import FloorConstraintProvider, FloorPlacement, transform_floor
from indoor_nav.sim import corridor_building, simulate_walk
from indoor_nav.sim.floor_plans import CORRIDOR_CENTRE
from indoor_nav.utils.geometry import advance


def dead_reckon(origin: np.ndarray, headings: np.ndarray, strides: np.ndarray) -> np.ndarray:
    """Uncorrected step-and-heading track, origin first."""
    track = [np.asarray(origin, dtype=np.float64)]
    for heading, stride in zip(headings, strides):
        track.append(advance(track[-1], heading, stride))
    return np.array(track)


def run_example(heading_bias_deg: float = 4.0, seed: int = 7, output_dir: str = None) -> None:
    print("\n" + "=" * 70)
    print("Corrected Dead Reckoning in a Corridor")
    print("=" * 70)

    # 1. Geometry: ground floor of the corridor building, placed at the origin
    floors = [transform_floor(plan, FloorPlacement()) for plan in corridor_building(2)]
    geometry = CampusGeometry.from_floors(floors)
    floor = geometry.campus_floor("floor_1")
    print(f"\nFloor geometry: {len(floor.walls)} walls, {len(floor.entrances)} entrances")

    # 2. Simulated walk: east along the corridor, then north into room 102
    waypoints = [[40.0, CORRIDOR_CENTRE], [300.0, CORRIDOR_CENTRE], [300.0, 100.0]]
    walk = simulate_walk(
        waypoints,
        stride=35.0,
        heading_bias=np.deg2rad(heading_bias_deg),
        heading_noise_std=np.deg2rad(2.0),
        stride_noise_std=1.5,
        rng=np.random.default_rng(seed),
    )
    print(f"Simulated walk: {walk.num_steps} steps, heading bias {heading_bias_deg:.1f} deg")

    # 3. Raw dead reckoning
    raw = dead_reckon(walk.truth[0], walk.headings, walk.strides)

    # 4. Correction pipeline
    provider = FloorConstraintProvider()
    provider.load_campus_floor(floor)
    engine = StepCorrectionEngine(CorrectionConfig(), provider)
    engine.set_origin(walk.truth[0], walk.headings[0])
    snaps = 0
    for heading, stride in zip(walk.headings, walk.strides):
        result = engine.process_step(float(heading), float(stride))
        if result.snap is not None:
            snaps += 1
    engine.flush()
    corrected = np.array([p.position for p in engine.committed_path])

    # 5. Metrics
    raw_stats = compute_error_stats(compute_position_errors(walk.truth, raw))
    corr_stats = compute_error_stats(compute_position_errors(walk.truth, corrected))

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"{'':20s} {'RMSE':>10s} {'Final':>10s} {'Wall crossings':>16s}")
    print(f"{'Raw DR':20s} {raw_stats['rmse']:10.1f} "
          f"{np.linalg.norm(raw[-1] - walk.truth[-1]):10.1f} "
          f"{count_wall_crossings(raw, floor.walls):16d}")
    print(f"{'Corrected':20s} {corr_stats['rmse']:10.1f} "
          f"{np.linalg.norm(corrected[-1] - walk.truth[-1]):10.1f} "
          f"{count_wall_crossings(corrected, floor.walls):16d}")
    print(f"\nEntrance snaps: {snaps}, stride calibration: {engine.stride_calibration_factor:.3f}")

    # 6. Plot
    print("\nGenerating plots...")
    fig = plot_tracked_path(
        {"Raw DR": raw, "Corrected": corrected},
        floor=floor,
        truth=walk.truth,
        title="Corridor Walk: Raw vs Corrected",
    )
    figs_dir = Path(output_dir) if output_dir else Path(__file__).parent / "figs"
    for path in save_figure(fig, figs_dir, "corridor_walk"):
        print(f"  [OK] Saved: {path}")

    print("\n" + "=" * 70)
    print("KEY INSIGHT: Walls bound the lateral drift of a biased compass;")
    print("             entrances at turns remove the accumulated error.")
    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(
        description="Raw vs corrected dead reckoning in the synthetic corridor building"
    )
    parser.add_argument("--heading-bias-deg", type=float, default=4.0,
                        help="Constant compass bias in degrees (default: 4.0)")
    parser.add_argument("--seed", type=int, default=7,
                        help="Random seed (default: 7)")
    parser.add_argument("--output", type=str, default=None,
                        help="Figure directory (default: figs/ next to this script)")
    parser.add_argument("--verbose", action="store_true",
                        help="Show debug logging from the correction pipeline")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    run_example(args.heading_bias_deg, args.seed, args.output)


if __name__ == "__main__":
    main()
