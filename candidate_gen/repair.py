"""
repair.py - Feasibility repair applied after synthesis and mutation.

  - clamp_link_lengths: Link lengths become max(MIN_LINK_LENGTH, |v|)
  - enforce_five_bar_constraints: Arm lengths of a geared five-bar are
    adjusted so the two arms can meet across the whole gear cycle

Both functions modify the configuration in place and return it.
"""
from __future__ import annotations

from candidate_gen.variation_config import MIN_LINK_LENGTH
from linkage_tools.mechanism import LENGTH_FIELDS
from linkage_tools.mechanism import MechanismConfig

# Combined arm length must exceed the widest pivot separation by this factor
ARM_MARGIN = 1.15


def clamp_link_lengths(config: MechanismConfig, minimum: float = MIN_LINK_LENGTH) -> MechanismConfig:
    """Apply max(minimum, |v|) to every field in LENGTH_FIELDS."""
    for name in LENGTH_FIELDS:
        setattr(config, name, max(minimum, abs(getattr(config, name))))
    return config


def enforce_five_bar_constraints(config: MechanismConfig) -> MechanismConfig:
    """
    Make a five-bar's arms long and balanced enough to close.

    The arm tips ride on circles whose centres are at most
    |ground| + |crank| + |rocker| apart. Coupler and rod grow equally until
    their sum is ARM_MARGIN times that span. If the arms then differ by more
    than the smallest possible separation, each moves halfway to their mean.

    No-op for other mechanism types. Deterministic.
    """
    if config.mech_type != '5bar':
        return config

    max_separation = abs(config.ground_length) + abs(config.crank_length) + abs(config.rocker_length)
    total_arm = abs(config.coupler_length) + abs(config.rod_length)
    min_total_arm = max_separation * ARM_MARGIN

    if total_arm < min_total_arm:
        half = (min_total_arm - total_arm) / 2
        config.coupler_length += half
        config.rod_length += half

    arm_diff = abs(config.coupler_length - config.rod_length)
    min_separation = max(
        0.0,
        abs(config.ground_length) - abs(config.crank_length) - abs(config.rocker_length),
    )
    if arm_diff > min_separation:
        avg = (config.coupler_length + config.rod_length) / 2
        config.coupler_length = (config.coupler_length + avg) / 2
        config.rod_length = (config.rod_length + avg) / 2

    return config
