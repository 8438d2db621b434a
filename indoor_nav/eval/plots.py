"""
Visualization Utilities for Indoor Tracking and Routing.

This module provides plotting functions for floor geometry, tracked walks
and computed routes. Campus coordinates grow downwards (screen space), so
every axis is inverted in y.

All functions return matplotlib Figure objects for flexible display/saving.

Author: Navigation Engineering Team
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np

from indoor_nav.floorplan.types import CampusFloor
from indoor_nav.navigation.types import MultiFloorPath


def _draw_floor(ax: plt.Axes, floor: CampusFloor, show_labels: bool = True) -> None:
    for boundary in floor.boundaries:
        pts = np.vstack([boundary.points, boundary.points[:1]])
        ax.fill(pts[:, 0], pts[:, 1], color="0.95", zorder=0)
        ax.plot(pts[:, 0], pts[:, 1], color="0.7", linewidth=1.0, zorder=1)

    for wall in floor.walls:
        ax.plot(
            [wall.start[0], wall.end[0]],
            [wall.start[1], wall.end[1]],
            "k-",
            linewidth=2,
            zorder=2,
        )

    for entrance in floor.entrances:
        marker = "^" if entrance.is_stairs else "o"
        color = "purple" if entrance.is_stairs else "orange"
        ax.plot(entrance.position[0], entrance.position[1], marker,
                color=color, markersize=7, zorder=3)
        label = entrance.name or entrance.room_no
        if show_labels and label:
            ax.annotate(str(label), entrance.position, textcoords="offset points",
                        xytext=(4, 4), fontsize=8)


def _finish(ax: plt.Axes, title: str) -> None:
    ax.set_xlabel("X (campus units)", fontsize=12)
    ax.set_ylabel("Y (campus units)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.3)
    ax.set_aspect("equal")
    if not ax.yaxis_inverted():
        ax.invert_yaxis()
    handles, _ = ax.get_legend_handles_labels()
    if handles:
        ax.legend(fontsize=10)


def plot_floor_geometry(
    floor: CampusFloor,
    title: Optional[str] = None,
    show_labels: bool = True,
) -> plt.Figure:
    """
    Plot walls, entrances and boundary polygons of one floor.

    Args:
        floor: Floor in campus coordinates
        title: Plot title (defaults to the floor id)
        show_labels: Annotate entrances with their name or room number

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))
    _draw_floor(ax, floor, show_labels)
    _finish(ax, title or f"{floor.building_id} {floor.floor_id}".strip())
    plt.tight_layout()
    return fig


def plot_tracked_path(
    tracks: Dict[str, np.ndarray],
    floor: Optional[CampusFloor] = None,
    truth: Optional[np.ndarray] = None,
    title: str = "Tracked Walk",
) -> plt.Figure:
    """
    Plot one or more tracked walks over a floor.

    Args:
        tracks: Dictionary of tracks {name: array of shape (N, 2)}
        floor: Floor geometry drawn underneath (optional)
        truth: True walk, shape (M, 2) (optional)
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))
    if floor is not None:
        _draw_floor(ax, floor, show_labels=False)

    if truth is not None:
        truth = np.asarray(truth)
        ax.plot(truth[:, 0], truth[:, 1], "k--", linewidth=1.5,
                label="Ground Truth", zorder=10)

    colors = ["blue", "red", "green", "orange", "purple"]
    for i, (name, track) in enumerate(tracks.items()):
        track = np.asarray(track).reshape(-1, 2)
        color = colors[i % len(colors)]
        ax.plot(track[:, 0], track[:, 1], ".-", color=color, linewidth=1.5,
                markersize=4, label=name, alpha=0.8, zorder=11)
        if len(track) > 0:
            ax.plot(track[0, 0], track[0, 1], "go", markersize=10, zorder=12)
            ax.plot(track[-1, 0], track[-1, 1], "ro", markersize=10, zorder=12)

    _finish(ax, title)
    plt.tight_layout()
    return fig


def plot_route(
    path: MultiFloorPath,
    floors: Sequence[CampusFloor] = (),
    title: str = "Route",
) -> plt.Figure:
    """
    Plot a route with one panel per floor it crosses.

    Args:
        path: Route to draw
        floors: Floor geometry; floors matching a segment's floor id are
                drawn under that segment
        title: Figure title

    Returns:
        fig: Matplotlib figure
    """
    segments = list(path.segments)
    n = max(1, len(segments))
    fig, axes = plt.subplots(1, n, figsize=(7 * n, 6), squeeze=False)

    for ax, segment in zip(axes[0], segments):
        for floor in floors:
            if floor.floor_id == segment.floor_id:
                _draw_floor(ax, floor, show_labels=False)
        pts = np.asarray(segment.points).reshape(-1, 2)
        ax.plot(pts[:, 0], pts[:, 1], "b-", linewidth=2.5, label="Route", zorder=10)
        if len(pts) > 0:
            ax.plot(pts[0, 0], pts[0, 1], "go", markersize=10, label="Start", zorder=11)
            ax.plot(pts[-1, 0], pts[-1, 1], "r*", markersize=14, label="End", zorder=11)
        _finish(ax, f"{segment.floor_id} ({segment.length():.0f} units)")

    if not segments:
        axes[0][0].text(0.5, 0.5, "No route", ha="center", va="center",
                        transform=axes[0][0].transAxes, fontsize=14)

    fig.suptitle(title, fontsize=16, fontweight="bold")
    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Tuple[str, ...] = ("svg", "png"),
) -> List[Path]:
    """
    Save figure in multiple formats.

    Args:
        fig: Matplotlib figure to save
        out_dir: Output directory
        name: Base filename (without extension)
        formats: Tuple of format extensions

    Returns:
        paths: List of saved file paths
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        filepath = out_dir / f"{name}.{fmt}"
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        paths.append(filepath)

    return paths
