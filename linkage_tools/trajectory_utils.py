"""
trajectory_utils.py - Target path utilities.

This module provides tools for preparing and inspecting point sequences:
  - Bounds: Extent and centre of a drawn path (drives candidate scaling)
  - Thinning: Minimum-spacing filter applied to freehand gestures
  - Reference paths: Analytic targets for demos and tests
  - Analysis: Statistics about a curve

For fitness scoring, see trajectory_scoring.py.

=============================================================================
CRITICAL PARAMETERS
=============================================================================

MIN_SPACING (gesture thinning):
    A drawn point is kept only if it lies farther than MIN_SPACING from the
    previously kept point.

    EFFECTS:
    - Smaller spacing = more target points, slower fitness (O(n * m))
    - Larger spacing = coarser target, sharp features may be lost

    The drawing canvas samples at 5 units.

=============================================================================
"""
from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

Trajectory = list[tuple[float, float]]

DEFAULT_MIN_SPACING = 5.0

# Extent used when no path is available (e.g. seeding without a drawing)
DEFAULT_PATH_SIZE = 200.0


class PathBounds(NamedTuple):
    """Axis-aligned extent of a point set: width, height and centre."""
    w: float
    h: float
    cx: float
    cy: float

    @property
    def size(self) -> float:
        return max(self.w, self.h)


def get_bounds(points) -> PathBounds:
    """
    Bounding box of a point sequence.

    Args:
        points: Array-like of shape (n, 2), n >= 1

    Returns:
        PathBounds(w, h, cx, cy)
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0:
        raise ValueError('get_bounds requires at least one point')
    x_min, y_min = pts.min(axis=0)
    x_max, y_max = pts.max(axis=0)
    return PathBounds(
        w=float(x_max - x_min),
        h=float(y_max - y_min),
        cx=float((x_min + x_max) / 2),
        cy=float((y_min + y_max) / 2),
    )


def thin_drawn_path(points, min_spacing: float = DEFAULT_MIN_SPACING) -> Trajectory:
    """
    Drop gesture samples that crowd the previously kept point.

    The first point is always kept; each later point is kept only if its
    distance to the last kept point exceeds `min_spacing`.

    Example:
        >>> thin_drawn_path([(0, 0), (1, 0), (6, 0), (8, 0), (12, 0)])
        [(0.0, 0.0), (6.0, 0.0), (12.0, 0.0)]
    """
    if min_spacing < 0:
        raise ValueError(f'min_spacing must be >= 0, got {min_spacing}')

    kept: Trajectory = []
    for x, y in points:
        x, y = float(x), float(y)
        if not kept or math.hypot(x - kept[-1][0], y - kept[-1][1]) > min_spacing:
            kept.append((x, y))
    return kept


def circle_path(
    radius: float = 100.0,
    n_points: int = 60,
    center: tuple[float, float] = (0.0, 0.0),
) -> Trajectory:
    """Uniformly sampled circle, counter-clockwise from angle 0 (closure implicit)."""
    if n_points < 1:
        raise ValueError(f'n_points must be >= 1, got {n_points}')
    t = np.arange(n_points) / n_points * 2 * np.pi
    return [
        (float(center[0] + radius * math.cos(a)), float(center[1] + radius * math.sin(a)))
        for a in t
    ]


def analyze_curve(points) -> dict:
    """
    Compute statistics about a curve.

    Useful for checking a drawn target before optimization.

    Args:
        points: Array-like of shape (n, 2), n >= 1

    Returns:
        Dictionary with curve statistics
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    bounds = get_bounds(pts)
    n = len(pts)

    diffs = np.diff(pts, axis=0)
    total_length = float(np.sum(np.hypot(diffs[:, 0], diffs[:, 1])))
    closure_gap = float(np.hypot(*(pts[0] - pts[-1])))
    centroid = pts.mean(axis=0)

    return {
        'n_points': int(n),
        'centroid': (float(centroid[0]), float(centroid[1])),
        'bounding_box': {
            'width': bounds.w,
            'height': bounds.h,
            'cx': bounds.cx,
            'cy': bounds.cy,
        },
        'total_path_length': total_length,
        'closure_gap': closure_gap,
        'is_closed': bool(n > 2 and closure_gap < total_length * 0.05),
        'avg_segment_length': total_length / (n - 1) if n > 1 else 0.0,
    }


def print_curve_info(points, name: str = 'Curve') -> None:
    """Print formatted curve statistics."""
    stats = analyze_curve(points)

    print(f"\n{'='*50}")
    print(f'  {name} Analysis')
    print(f"{'='*50}")
    print(f"  Points:        {stats['n_points']}")
    print(f"  Centroid:      ({stats['centroid'][0]:.2f}, {stats['centroid'][1]:.2f})")
    print(f"  Bounding box:  {stats['bounding_box']['width']:.2f} x {stats['bounding_box']['height']:.2f}")
    print(f"  Path length:   {stats['total_path_length']:.2f}")
    print(f"  Closed curve:  {'Yes' if stats['is_closed'] else 'No'} (gap: {stats['closure_gap']:.4f})")
    print(f"{'='*50}\n")
