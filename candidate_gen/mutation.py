"""
mutation.py - Temperature-scaled mutation of mechanism configurations.

mutate_config() returns a perturbed copy; the input is never modified.
Temperature T in (0, 1] scales every noise magnitude, and structural
(type-changing) mutation is only possible while T is high.

Steps, each gated by its own probability (see MutationConfig):
    1. Structural: switch to another allowed mechanism type
    2. Global scale: one common factor on every length-valued field
    3. Position: anchor x/y and ground angle, additive noise
    4. Dimensions: ground/coupler/rocker/coupler-point/crank, relative noise
    5. Five-bar: rod (relative), phase (additive), speed2 (sign-preserving nudge)
    6. Slider offset and coupler-point angle, additive noise
    7. Post: clamp link lengths, repair five-bars
"""
from __future__ import annotations

import numpy as np

from candidate_gen.repair import clamp_link_lengths
from candidate_gen.repair import enforce_five_bar_constraints
from candidate_gen.sampling import allowed_types
from candidate_gen.variation_config import MutationConfig
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.mechanism import MechanismType

# Dimension fields mutated with relative noise, in draw order
_DIMENSION_FIELDS = (
    'ground_length',
    'coupler_length',
    'rocker_length',
    'coupler_point_dist',
    'crank_length',
)


def mutate_config(
    config: MechanismConfig,
    temperature: float,
    rng: np.random.Generator,
    fixed_type: bool = False,
    excluded_type: MechanismType | None = None,
    mutation_config: MutationConfig | None = None,
) -> MechanismConfig:
    """
    Return a mutated copy of `config`.

    Args:
        config: Parent configuration (left unchanged)
        temperature: Annealing temperature, scales all magnitudes
        rng: Random generator
        fixed_type: Never change the mechanism type
        excluded_type: Type a structural mutation may not switch to
        mutation_config: Probabilities and magnitudes

    Returns:
        New MechanismConfig; every link length is >= MIN_LINK_LENGTH
    """
    cfg = mutation_config or MutationConfig()
    t = temperature
    child = config.copy()

    def relative(value: float) -> float:
        return value + value * cfg.dimension_relative * t * (rng.random() - 0.5) * 2

    def absolute(value: float, span: float) -> float:
        return value + (rng.random() - 0.5) * span * t

    # Structural
    if not fixed_type and t > cfg.structural_min_temp and rng.random() < cfg.structural_prob:
        types = [m for m in allowed_types(excluded_type=excluded_type) if m != config.mech_type]
        if types:
            child.mech_type = types[int(rng.integers(len(types)))]
            if child.mech_type == '5bar':
                child.speed1 = 1.0
                child.speed2 = 1.0 if rng.random() > 0.5 else -1.0
                child.rod_length = child.coupler_length

    # Global scale
    if rng.random() < cfg.scale_prob:
        child.scale(1.0 + (rng.random() - 0.5) * cfg.scale_span * t)

    # Position and orientation
    if rng.random() < cfg.position_prob:
        child.anchor_x = absolute(child.anchor_x, cfg.position_span)
    if rng.random() < cfg.position_prob:
        child.anchor_y = absolute(child.anchor_y, cfg.position_span)
    if rng.random() < cfg.position_prob:
        child.ground_angle = absolute(child.ground_angle, cfg.ground_angle_span)

    # Dimensions
    for name in _DIMENSION_FIELDS:
        if rng.random() < cfg.dimension_prob:
            setattr(child, name, relative(getattr(child, name)))

    if child.mech_type == '5bar':
        if rng.random() < cfg.dimension_prob:
            child.rod_length = relative(child.rod_length)
        if rng.random() < cfg.phase_prob:
            child.phase = absolute(child.phase, cfg.phase_span)
        if rng.random() < cfg.speed_prob:
            child.speed2 = _nudge_speed2(child.speed1, child.speed2, rng, cfg)

    if rng.random() < cfg.slider_prob:
        child.slider_offset = absolute(child.slider_offset, cfg.slider_span)
    if rng.random() < cfg.point_angle_prob:
        child.coupler_point_angle = absolute(child.coupler_point_angle, cfg.point_angle_span)

    clamp_link_lengths(child)
    return enforce_five_bar_constraints(child)


def _nudge_speed2(speed1: float, speed2: float, rng: np.random.Generator, cfg: MutationConfig) -> float:
    """
    Jitter speed2, then keep it within speed_tolerance of +speed1 or -speed1,
    whichever matches its sign (synchronized vs counter-rotating gears).
    """
    new_speed2 = speed2 + (rng.random() - 0.5) * cfg.speed_jitter
    counter = (speed1 > 0 and new_speed2 < 0) or (speed1 < 0 and new_speed2 > 0)
    base = -speed1 if counter else speed1
    if abs(new_speed2 - base) > cfg.speed_tolerance:
        new_speed2 = base + (cfg.speed_tolerance if new_speed2 > base else -cfg.speed_tolerance)
    return new_speed2
