"""
kinematic.py - Forward kinematics and curve sampling.

This module provides the two operations everything else is built on:
  - solve_linkage: joint positions of a configuration at one drive angle
  - sample_curve: the effector curve over one or more full revolutions

Design notes:
  - Pure functions: a configuration is turned into its linkage variant and
    solved; nothing is cached or mutated.
  - Geometric failure is reported through JointState.is_valid and the
    valid fraction of a sampled curve, never raised.
  - Geared five-bars run several drive revolutions so that non-integer speed
    ratios have time to retrace their figure.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from linkage_tools.mechanism import build_linkage
from linkage_tools.mechanism import JointState
from linkage_tools.mechanism import JointTrajectory
from linkage_tools.mechanism import MechanismConfig

# Drive revolutions sampled per curve
FIVE_BAR_LOOPS = 8
DEFAULT_LOOPS = 1


@dataclass(frozen=True)
class CurveSample:
    """
    Effector curve of one configuration.

    Attributes:
        points: Effector positions of the valid samples, shape (n_valid, 2)
        valid_fraction: valid samples / total samples (0-1)
        n_samples: Total number of drive angles evaluated
    """
    points: np.ndarray
    valid_fraction: float
    n_samples: int

    @property
    def n_valid(self) -> int:
        return len(self.points)

    def to_list(self) -> list[list[float]]:
        return [[float(x), float(y)] for x, y in self.points]


def get_loops(config: MechanismConfig) -> int:
    """Number of drive revolutions needed for the curve to close."""
    return FIVE_BAR_LOOPS if config.mech_type == '5bar' else DEFAULT_LOOPS


def drive_angles(resolution: int, loops: int = 1) -> np.ndarray:
    """Evenly spaced drive angles i / resolution * 2pi, i in [0, resolution * loops)."""
    if resolution <= 0:
        raise ValueError(f'resolution must be positive, got {resolution}')
    return np.arange(resolution * loops, dtype=np.float64) / resolution * 2 * math.pi


def solve_linkage(config: MechanismConfig, drive_angle: float) -> JointState:
    """
    Joint positions of `config` at `drive_angle` (radians).

    Args:
        config: Mechanism configuration
        drive_angle: Primary crank angle before speed1 is applied

    Returns:
        JointState; is_valid is False when the mechanism cannot assemble
    """
    return build_linkage(config).solve(drive_angle)


def simulate(config: MechanismConfig, resolution: int = 36) -> JointTrajectory:
    """
    Solve every joint over the sampling angles used by sample_curve.

    Useful for animation frames and exporters that need all joints, not only
    the effector.
    """
    angles = drive_angles(resolution, get_loops(config))
    return build_linkage(config).solve_many(angles)


def sample_curve(config: MechanismConfig, resolution: int = 36) -> CurveSample:
    """
    Effector curve over one revolution (eight for geared five-bars).

    Only valid samples contribute points; the share of valid samples is
    returned alongside so callers can penalize locking mechanisms.

    Args:
        config: Mechanism configuration
        resolution: Samples per drive revolution

    Returns:
        CurveSample
    """
    frames = simulate(config, resolution)
    n_samples = len(frames)
    points = frames.effector[frames.valid]
    return CurveSample(
        points=points,
        valid_fraction=float(np.count_nonzero(frames.valid)) / n_samples,
        n_samples=n_samples,
    )
