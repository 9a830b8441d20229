"""
sampling.py - Random candidate mechanisms for the path optimizer.

Two sources of candidates:
    - synthesize_config(): a fresh mechanism of a random (or forced) type,
      sized and placed from the target path's bounding box
    - place_seed_variations(): randomized placements and sizes of a template
      mechanism (e.g. a preset) spread across the target region

All randomness comes from the np.random.Generator passed in, so a seeded
generator reproduces the same candidates.
"""
from __future__ import annotations

import logging
import math

import numpy as np

from candidate_gen.repair import clamp_link_lengths
from candidate_gen.repair import enforce_five_bar_constraints
from candidate_gen.variation_config import SeedPlacementConfig
from candidate_gen.variation_config import SynthesisConfig
from linkage_tools.mechanism import MECHANISM_TYPES
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.mechanism import MechanismType
from linkage_tools.optimization_types import TargetPath
from linkage_tools.trajectory_utils import DEFAULT_PATH_SIZE
from linkage_tools.trajectory_utils import get_bounds

logger = logging.getLogger(__name__)

_ID_ALPHABET = list('0123456789abcdefghijklmnopqrstuvwxyz')
_ID_LENGTH = 9


def new_mechanism_id(rng: np.random.Generator) -> str:
    """Random 9-character base-36 identity token."""
    return ''.join(rng.choice(_ID_ALPHABET, size=_ID_LENGTH))


def allowed_types(
    forced_type: MechanismType | None = None,
    excluded_type: MechanismType | None = None,
) -> list[MechanismType]:
    """
    Mechanism types candidates may take.

    A forced type wins over an exclusion; otherwise all six minus the
    excluded one.
    """
    if forced_type is not None:
        if forced_type not in MECHANISM_TYPES:
            raise ValueError(f'Unknown forced type: {forced_type!r}')
        return [forced_type]
    return [t for t in MECHANISM_TYPES if t != excluded_type]


def _target_frame(target_path: TargetPath | None, default_scale: float) -> tuple[float, float, float]:
    """(cx, cy, scale) of the target region."""
    if target_path is None or len(target_path) == 0:
        return 0.0, 0.0, default_scale
    bounds = get_bounds(target_path.positions_array)
    return bounds.cx, bounds.cy, bounds.size


def synthesize_config(
    rng: np.random.Generator,
    target_path: TargetPath | None = None,
    forced_type: MechanismType | None = None,
    excluded_type: MechanismType | None = None,
    synthesis_config: SynthesisConfig | None = None,
) -> MechanismConfig:
    """
    Create a random, plausibly sized mechanism near the target.

    Args:
        rng: Random generator (the only randomness source)
        target_path: Target curve; scale and centre default to 100 and the
            origin when absent
        forced_type: Only ever produce this type
        excluded_type: Never produce this type (ignored when forced_type is set)
        synthesis_config: Length factors and ranges

    Returns:
        New MechanismConfig with lengths clamped and five-bars repaired
    """
    cfg = synthesis_config or SynthesisConfig()
    cx, cy, scale = _target_frame(target_path, cfg.default_scale)

    def s(factor: float) -> float:
        return scale * factor * (0.5 + rng.random())

    types = allowed_types(forced_type, excluded_type)
    mech_type = types[int(rng.integers(len(types)))]

    factors = cfg.length_factors
    config = MechanismConfig(
        mech_type=mech_type,
        id=new_mechanism_id(rng),
        anchor_x=cx + (rng.random() - 0.5) * scale * cfg.anchor_spread,
        anchor_y=cy + (rng.random() - 0.5) * scale * cfg.anchor_spread,
        ground_angle=rng.random() * 360.0,
        ground_length=s(factors['ground_length']),
        crank_length=s(factors['crank_length']),
        coupler_length=s(factors['coupler_length']),
        rocker_length=s(factors['rocker_length']),
        slider_offset=0.0,
        coupler_point_dist=s(factors['coupler_point_dist']),
        coupler_point_angle=rng.random() * 360.0,
        speed1=1.0,
        speed2=1.0,
        rod_length=s(factors['rod_length']),
        phase=rng.random() * 2 * math.pi,
    )

    if mech_type == 'yoke':
        config.slider_offset = (rng.random() - 0.5) * s(cfg.slider_factor)
    elif mech_type == 'piston':
        config.slider_offset = (rng.random() - 0.5) * s(cfg.slider_factor)
        config.coupler_length = abs(config.slider_offset) + config.crank_length + s(cfg.piston_margin_factor)
    elif mech_type == 'quick-return':
        config.slider_offset = (rng.random() - 0.5) * s(cfg.quick_return_slider_factor)
        config.ground_length = max(s(cfg.quick_return_ground_factor), config.crank_length + cfg.quick_return_min_gap)
        config.rocker_length = s(cfg.quick_return_rocker_factor)
    elif mech_type == '5bar':
        _init_five_bar(config, rng, cx, cy, s, cfg)

    clamp_link_lengths(config)
    return enforce_five_bar_constraints(config)


def _init_five_bar(config: MechanismConfig, rng: np.random.Generator, cx: float, cy: float, s, cfg: SynthesisConfig) -> None:
    direction = 1.0 if rng.random() > 0.5 else -1.0
    config.speed1 = 1.0
    config.speed2 = config.speed1 * direction + (rng.random() - 0.5) * cfg.five_bar_speed_jitter

    factors = cfg.five_bar_factors
    config.ground_length = s(factors['ground_length'])
    config.crank_length = s(factors['crank_length'])
    config.rocker_length = s(factors['rocker_length'])

    # Arms sized to reach from the anchor to the target centre
    arm = math.hypot(cx - config.anchor_x, cy - config.anchor_y) * (1.0 + rng.random() * cfg.five_bar_arm_spread)
    config.coupler_length = arm
    config.rod_length = arm
    config.coupler_point_dist = rng.random() * s(cfg.length_factors['coupler_point_dist'])


def place_seed_variations(
    seed: MechanismConfig,
    rng: np.random.Generator,
    target_path: TargetPath | None = None,
    placement_config: SeedPlacementConfig | None = None,
) -> list[MechanismConfig]:
    """
    Randomized placements of a template mechanism across the target region.

    Each copy gets a new id, an anchor within +-2 path sizes of the target
    centre, a uniform ground angle, and a uniform rescale so that
    crank + coupler + rocker spans 0.5x to 2.5x the path size. Link lengths
    are clamped and five-bars repaired afterwards.

    Args:
        seed: Template configuration (not modified)
        rng: Random generator
        target_path: Target curve; a 200-unit region at the origin when absent
        placement_config: Count and spread settings

    Returns:
        List of placement_config.count configurations
    """
    cfg = placement_config or SeedPlacementConfig()
    if target_path is not None and len(target_path) > 0:
        bounds = get_bounds(target_path.positions_array)
        cx, cy = bounds.cx, bounds.cy
        path_size = bounds.size or DEFAULT_PATH_SIZE
    else:
        cx, cy, path_size = 0.0, 0.0, DEFAULT_PATH_SIZE

    variations = []
    for _ in range(cfg.count):
        cand = seed.copy(id=new_mechanism_id(rng))
        cand.anchor_x = cx + (rng.random() - 0.5) * path_size * cfg.position_spread
        cand.anchor_y = cy + (rng.random() - 0.5) * path_size * cfg.position_spread
        cand.ground_angle = rng.random() * 360.0

        current_size = cand.crank_length + cand.coupler_length + cand.rocker_length
        target_size = path_size * (cfg.size_min + rng.random() * cfg.size_span)
        cand.scale(target_size / max(cfg.min_size_divisor, current_size))

        clamp_link_lengths(cand)
        variations.append(enforce_five_bar_constraints(cand))

    logger.debug(f'Placed {len(variations)} variations of {seed.mech_type} template (path size {path_size:.1f})')
    return variations
