"""Generate a synthetic campus dataset for the tracking and routing examples.

Creates a multi-floor corridor building with:
    - Walls, room doors and boundary outline per floor
    - A switchback stairwell with top/bottom stair entrances
    - Building metadata placing the building on the campus
    - A simulated corridor walk with heading and stride errors

Saves to: data/campus/<preset>/ in the layout read by JsonFloorPlanSource:

    building_1/building_1_metadata.json
    building_1/floor_1/floor_1_{walls,entrances,boundary}.json
    walk.json
    config.json

Author: Navigation Engineer
"""

import argparse
import json
from pathlib import Path
from typing import Dict, List

import numpy as np

from indoor_nav.floorplan import BuildingMetadata, FloorPlan, floor_plan_to_dict
from indoor_nav.sim import corridor_building, simulate_walk
from indoor_nav.sim.floor_plans import CORRIDOR_CENTRE, WIDTH


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS = {
    'baseline': {
        'description': 'Two floors, building at the campus origin, mild sensor errors',
        'num_floors': 2,
        'scale': 1.0,
        'rotation': 0.0,
        'offset_x': 0.0,
        'offset_y': 0.0,
        'heading_bias_deg': 3.0,
        'heading_noise_deg': 2.0,
        'stride_noise': 1.5,
    },
    'placed': {
        'description': 'Three floors, scaled, rotated and offset on the campus',
        'num_floors': 3,
        'scale': 1.25,
        'rotation': 30.0,
        'offset_x': 500.0,
        'offset_y': 300.0,
        'heading_bias_deg': 3.0,
        'heading_noise_deg': 2.0,
        'stride_noise': 1.5,
    },
    'noisy': {
        'description': 'Two floors with a strongly biased compass',
        'num_floors': 2,
        'scale': 1.0,
        'rotation': 0.0,
        'offset_x': 0.0,
        'offset_y': 0.0,
        'heading_bias_deg': 8.0,
        'heading_noise_deg': 5.0,
        'stride_noise': 4.0,
    },
}


# ============================================================================
# DATA GENERATION FUNCTIONS
# ============================================================================

def write_floor_plan(building_dir: Path, floor_plan: FloorPlan) -> None:
    """Write the three JSON files of one floor."""
    floor_dir = building_dir / floor_plan.floor_id
    floor_dir.mkdir(parents=True, exist_ok=True)
    documents = floor_plan_to_dict(floor_plan)
    for kind in ("walls", "entrances", "boundary"):
        with open(floor_dir / f"{floor_plan.floor_id}_{kind}.json", "w") as f:
            json.dump(documents[kind], f, indent=2)


def metadata_to_dict(meta: BuildingMetadata) -> Dict:
    return {
        "building_id": meta.building_id,
        "building_name": meta.building_name,
        "available_floors": list(meta.available_floors),
        "scale": meta.scale,
        "rotation": meta.rotation,
        "relative_position": {"x": meta.relative_position[0], "y": meta.relative_position[1]},
    }


def corridor_walk_waypoints() -> List[List[float]]:
    """Floor-local walk: west end of the corridor to the second north door."""
    return [[40.0, CORRIDOR_CENTRE], [300.0, CORRIDOR_CENTRE], [300.0, 110.0]]


def generate_dataset(
    output_dir: str = "data/campus/baseline",
    seed: int = 42,
    num_floors: int = 2,
    scale: float = 1.0,
    rotation: float = 0.0,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
    stride: float = 35.0,
    heading_bias_deg: float = 3.0,
    heading_noise_deg: float = 2.0,
    stride_noise: float = 1.5,
) -> None:
    """Generate and save the campus dataset.

    Args:
        output_dir: Output directory path.
        seed: Random seed for reproducibility.
        num_floors: Floors of the corridor building.
        scale: Floor plan to campus scale factor.
        rotation: Building rotation on the campus (degrees).
        offset_x: Building campus offset, x (campus units).
        offset_y: Building campus offset, y (campus units).
        stride: True stride of the simulated walk (floor plan units).
        heading_bias_deg: Constant compass bias (degrees).
        heading_noise_deg: Per-step heading noise std (degrees).
        stride_noise: Per-step stride noise std (floor plan units).
    """
    rng = np.random.default_rng(seed)

    print(f"\n{'='*70}")
    print(f"Generating Campus Dataset")
    print(f"{'='*70}")

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    # 1. Floor plans
    print(f"\n1. Writing floor plans...")
    building_id = "building_1"
    building_dir = output_path / building_id
    floors = corridor_building(num_floors, building_id)
    for floor_plan in floors:
        write_floor_plan(building_dir, floor_plan)
        print(f"   {floor_plan.floor_id}: {len(floor_plan.walls)} walls, "
              f"{len(floor_plan.entrances)} entrances")

    meta = BuildingMetadata(
        building_id=building_id,
        building_name="Corridor Building",
        available_floors=tuple(f.floor_id for f in floors),
        scale=scale,
        rotation=rotation,
        relative_position=(offset_x, offset_y),
    )
    with open(building_dir / f"{building_id}_metadata.json", "w") as f:
        json.dump(metadata_to_dict(meta), f, indent=2)
    print(f"   Saved: {building_id}_metadata.json")

    # 2. Simulated walk (floor plan coordinates, ground floor)
    print(f"\n2. Simulating corridor walk...")
    walk = simulate_walk(
        corridor_walk_waypoints(),
        stride=stride,
        heading_bias=np.deg2rad(heading_bias_deg),
        heading_noise_std=np.deg2rad(heading_noise_deg),
        stride_noise_std=stride_noise,
        rng=rng,
    )
    with open(output_path / "walk.json", "w") as f:
        json.dump({
            "floor_id": floors[0].floor_id,
            "truth": walk.truth.tolist(),
            "headings": walk.headings.tolist(),
            "strides": walk.strides.tolist(),
        }, f, indent=2)
    print(f"   {walk.num_steps} steps, saved: walk.json")

    # 3. Configuration
    print(f"\n3. Saving configuration...")
    config = {
        "dataset_info": {
            "description": "Synthetic corridor building with switchback stairs",
            "seed": seed,
            "num_floors": num_floors,
            "num_steps": walk.num_steps,
        },
        "placement": {
            "scale": scale,
            "rotation_deg": rotation,
            "offset": [offset_x, offset_y],
        },
        "walk": {
            "stride": stride,
            "heading_bias_deg": heading_bias_deg,
            "heading_noise_deg": heading_noise_deg,
            "stride_noise": stride_noise,
        },
        "coordinate_frame": {
            "description": "Screen space, y grows downwards, heading 0 = up, clockwise",
            "building_extent": [WIDTH, 400.0],
            "units": "campus units (1 unit = 2 cm)",
        },
    }
    with open(output_path / "config.json", "w") as f:
        json.dump(config, f, indent=2)
    print(f"   Saved: config.json")

    print(f"\n{'='*70}")
    print(f"Dataset generation complete!")
    print(f"{'='*70}")
    print(f"Output directory: {output_path.absolute()}")
    print(f"\n")


# ============================================================================
# COMMAND-LINE INTERFACE
# ============================================================================

def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Generate a synthetic campus dataset for tracking and routing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate with default parameters
  python %(prog)s

  # Use a preset configuration
  python %(prog)s --preset placed --output data/campus/placed

Available presets: """ + ", ".join(PRESETS.keys())
    )

    parser.add_argument(
        '--preset',
        type=str,
        choices=PRESETS.keys(),
        help='Use preset configuration (overrides individual parameters)'
    )
    parser.add_argument(
        '--output',
        type=str,
        default='data/campus/baseline',
        help='Output directory (default: data/campus/baseline)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for reproducibility (default: 42)'
    )

    building_group = parser.add_argument_group('Building Parameters')
    building_group.add_argument('--num-floors', type=int, default=2,
                                help='Number of floors (default: 2)')
    building_group.add_argument('--scale', type=float, default=1.0,
                                help='Floor plan to campus scale (default: 1.0)')
    building_group.add_argument('--rotation', type=float, default=0.0,
                                help='Building rotation in degrees (default: 0.0)')
    building_group.add_argument('--offset-x', type=float, default=0.0,
                                help='Campus offset x (default: 0.0)')
    building_group.add_argument('--offset-y', type=float, default=0.0,
                                help='Campus offset y (default: 0.0)')

    walk_group = parser.add_argument_group('Walk Parameters')
    walk_group.add_argument('--stride', type=float, default=35.0,
                            help='True stride length (default: 35.0)')
    walk_group.add_argument('--heading-bias-deg', type=float, default=3.0,
                            help='Compass bias in degrees (default: 3.0)')
    walk_group.add_argument('--heading-noise-deg', type=float, default=2.0,
                            help='Heading noise std in degrees (default: 2.0)')
    walk_group.add_argument('--stride-noise', type=float, default=1.5,
                            help='Stride noise std (default: 1.5)')

    args = parser.parse_args()

    if args.preset:
        preset_config = PRESETS[args.preset]
        print(f"\nUsing preset: '{args.preset}'")
        print(f"Description: {preset_config['description']}")
        for key, value in preset_config.items():
            if key != 'description' and hasattr(args, key):
                setattr(args, key, value)

    if args.num_floors < 1:
        parser.error("num-floors must be at least 1")
    if args.scale <= 0:
        parser.error("scale must be positive")
    if args.stride <= 0:
        parser.error("stride must be positive")

    generate_dataset(
        output_dir=args.output,
        seed=args.seed,
        num_floors=args.num_floors,
        scale=args.scale,
        rotation=args.rotation,
        offset_x=args.offset_x,
        offset_y=args.offset_y,
        stride=args.stride,
        heading_bias_deg=args.heading_bias_deg,
        heading_noise_deg=args.heading_noise_deg,
        stride_noise=args.stride_noise,
    )


if __name__ == "__main__":
    main()
