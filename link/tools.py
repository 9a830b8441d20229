"""
tools.py - Planar geometry primitives shared by every linkage solver.

All linkage "locked/broken" detection in the solver comes from
intersect_circles: when two link circles cannot meet, the joint does not exist.
Both a scalar form (one drive angle, used for per-frame rendering) and an
array form (a whole revolution at once, used for curve sampling) are provided;
the scalar form delegates to the array form so both branch identically.
"""
from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

# Forgiving margin for near-tangent circles (floating point and UI jitter).
CIRCLE_EPSILON = 0.1


class Point(NamedTuple):
    """Immutable planar coordinate."""
    x: float
    y: float


def get_cart_distance(pos1, pos2):
    """
    Calculate the distance between two points in Cartesian coordinates.

    Parameters:
    pos1, pos2: (x, y) coordinates of the two points

    Returns:
    float: Distance between the two points
    """
    return math.hypot(pos2[0] - pos1[0], pos2[1] - pos1[1])


def polar_point(origin, length: float, angle: float) -> Point:
    """Point at `length` from `origin` in direction `angle` (radians)."""
    return Point(
        origin[0] + length * math.cos(angle),
        origin[1] + length * math.sin(angle),
    )


def to_track_frame(points: np.ndarray, origin, angle: float) -> np.ndarray:
    """
    Express world points in a frame centred on `origin` and rotated by `angle`.

    Args:
        points: Array of shape (n, 2)
        origin: Frame origin (x, y)
        angle: Frame rotation in radians

    Returns:
        Local coordinates, shape (n, 2)
    """
    d = np.asarray(points, dtype=np.float64) - np.asarray(origin, dtype=np.float64)
    c, s = math.cos(-angle), math.sin(-angle)
    return np.column_stack((d[:, 0] * c - d[:, 1] * s, d[:, 0] * s + d[:, 1] * c))


def from_track_frame(local: np.ndarray, origin, angle: float) -> np.ndarray:
    """Inverse of to_track_frame."""
    local = np.asarray(local, dtype=np.float64)
    c, s = math.cos(angle), math.sin(angle)
    return np.column_stack((
        origin[0] + local[:, 0] * c - local[:, 1] * s,
        origin[1] + local[:, 0] * s + local[:, 1] * c,
    ))


def intersect_circles_array(
    center0: np.ndarray,
    r0: float,
    center1: np.ndarray,
    r1: float,
    flip: bool = False,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Vectorized circle-circle intersection (radical line construction).

    Args:
        center0: Centres of the first circles, shape (n, 2) or (2,)
        r0: Radius of the first circles
        center1: Centres of the second circles, shape (n, 2) or (2,)
        r1: Radius of the second circles
        flip: Select the other of the two algebraic solutions

    Returns:
        (points, valid) where points has shape (n, 2) and valid is a boolean
        mask. Rows where the circles do not meet hold NaN.
    """
    p0 = np.atleast_2d(np.asarray(center0, dtype=np.float64))
    p1 = np.atleast_2d(np.asarray(center1, dtype=np.float64))
    p0, p1 = np.broadcast_arrays(p0, p1)

    dx = p1[:, 0] - p0[:, 0]
    dy = p1[:, 1] - p0[:, 1]
    d = np.hypot(dx, dy)

    valid = (
        (d <= r0 + r1 + CIRCLE_EPSILON)
        & (d >= abs(r0 - r1) - CIRCLE_EPSILON)
        & (d != 0)
    )

    points = np.full(p0.shape, np.nan)
    if not np.any(valid):
        return points, valid

    dv, dxv, dyv = d[valid], dx[valid], dy[valid]
    a = (r0 * r0 - r1 * r1 + dv * dv) / (2 * dv)
    h = np.sqrt(np.maximum(0.0, r0 * r0 - a * a))
    x2 = p0[valid, 0] + dxv * a / dv
    y2 = p0[valid, 1] + dyv * a / dv

    if flip:
        points[valid, 0] = x2 - h * dyv / dv
        points[valid, 1] = y2 + h * dxv / dv
    else:
        points[valid, 0] = x2 + h * dyv / dv
        points[valid, 1] = y2 - h * dxv / dv

    return points, valid


def intersect_circles(center0, r0: float, center1, r1: float, flip: bool = False) -> Point | None:
    """
    Intersection of two circles, or None if they do not meet.

    Circles farther apart than r0 + r1, nested beyond |r0 - r1|, or sharing a
    centre have no solution. Boundaries are widened by CIRCLE_EPSILON so that
    tangent configurations still assemble.

    Args:
        center0: (x, y) centre of the first circle
        r0: Radius of the first circle
        center1: (x, y) centre of the second circle
        r1: Radius of the second circle
        flip: Choose the other assembly branch

    Returns:
        Point or None
    """
    points, valid = intersect_circles_array(center0, r0, center1, r1, flip=flip)
    if not valid[0]:
        return None
    return Point(float(points[0, 0]), float(points[0, 1]))
