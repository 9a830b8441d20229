"""
trajectory_scoring.py - Fitness of a mechanism against a target path.

Key functions:
  - chamfer_distance: Bidirectional mean squared nearest-point distance
  - closure_penalty: Penalty for an open trace (geared five-bars only)
  - evaluate_fitness: Full fitness of a configuration (lower is better)

Scoring rules, in order:
  1. Any invalid drive angle -> INVALID_PENALTY scaled by the invalid share.
     Intermittent locking ranks below every shape mismatch.
  2. Fewer than MIN_CURVE_POINTS samples -> INVALID_PENALTY.
  3. Otherwise chamfer distance, plus closure_penalty for five-bars.

The penalty constants are empirically tuned; changing them changes how the
optimizer ranks partially valid candidates.

Performance Notes:
  - Nearest-point search is brute force through scipy's cdist. Both curves
    hold at most a few hundred points so the (n, m) matrix stays small.
"""
from __future__ import annotations

import numpy as np
from scipy.spatial.distance import cdist

from linkage_tools.kinematic import sample_curve
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.optimization_types import TargetPath

INVALID_PENALTY = 1e9
# Scores at or above this are treated as "invalid" when filtering seeds
INVALID_THRESHOLD = 1e8
MIN_CURVE_POINTS = 10

# Squared first/last gap above which an open five-bar trace is penalized
CLOSURE_GAP_LIMIT = 50.0
CLOSURE_WEIGHT = 20.0

FIVE_BAR_RESOLUTION = 120
DEFAULT_RESOLUTION = 60


def scoring_resolution(config: MechanismConfig) -> int:
    """Samples per revolution used when scoring `config`."""
    return FIVE_BAR_RESOLUTION if config.mech_type == '5bar' else DEFAULT_RESOLUTION


def _as_points(points) -> np.ndarray:
    if isinstance(points, TargetPath):
        return points.positions_array
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def chamfer_distance(generated, target) -> float:
    """
    Bidirectional chamfer distance between two point sets.

    For every generated point the squared distance to its nearest target
    point, averaged; plus the same from the target side. Order of points
    does not matter.

    Args:
        generated: Array-like of shape (n, 2)
        target: Array-like of shape (m, 2) or TargetPath

    Returns:
        Sum of both directional means (squared units)
    """
    a = _as_points(generated)
    b = _as_points(target)
    if len(a) == 0 or len(b) == 0:
        raise ValueError('chamfer_distance requires two non-empty point sets')

    sq = cdist(a, b, 'sqeuclidean')
    forward = float(np.mean(sq.min(axis=1)))
    backward = float(np.mean(sq.min(axis=0)))
    return forward + backward


def closure_penalty(points) -> float:
    """
    CLOSURE_WEIGHT * squared first/last gap, when that gap exceeds
    CLOSURE_GAP_LIMIT; 0 otherwise.
    """
    pts = _as_points(points)
    if len(pts) < 2:
        return 0.0
    gap_sq = float(np.sum((pts[0] - pts[-1]) ** 2))
    if gap_sq > CLOSURE_GAP_LIMIT:
        return gap_sq * CLOSURE_WEIGHT
    return 0.0


def evaluate_fitness(config: MechanismConfig, target_path: TargetPath) -> float:
    """
    Score how well `config` retraces `target_path`.

    Args:
        config: Candidate mechanism
        target_path: Non-empty target curve

    Returns:
        Non-negative score, lower is better. Values >= INVALID_PENALTY mean
        the mechanism breaks somewhere in its cycle or traces almost nothing.

    Raises:
        ValueError: If target_path is empty
    """
    target = _as_points(target_path)
    if len(target) == 0:
        raise ValueError('Target path must contain at least one point')

    curve = sample_curve(config, scoring_resolution(config))
    if curve.valid_fraction < 1.0:
        return INVALID_PENALTY + (1.0 - curve.valid_fraction) * INVALID_PENALTY
    if curve.n_valid < MIN_CURVE_POINTS:
        return INVALID_PENALTY

    score = chamfer_distance(curve.points, target)
    if config.mech_type == '5bar':
        score += closure_penalty(curve.points)
    return score
