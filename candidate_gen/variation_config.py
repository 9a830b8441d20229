"""
variation_config.py - Tuning dataclasses for candidate synthesis and variation.

Configuration objects:
    SynthesisConfig      - Length factors and ranges for fresh random candidates
    MutationConfig       - Probabilities and magnitudes of each mutation step
    SeedPlacementConfig  - Randomized placement of a template mechanism

All defaults reproduce the tuning the optimizer was calibrated against.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from dataclasses import field

# Floor applied to link lengths after every generation/mutation step
MIN_LINK_LENGTH = 5.0


@dataclass
class SynthesisConfig:
    """
    Parameters for synthesize_config().

    Each length is drawn as scale * factor * (0.5 + U), where scale is the
    larger side of the target's bounding box.

    Attributes:
        default_scale: Scale used when no target path is given
        anchor_spread: Anchor lies within +-anchor_spread/2 * scale of the centre
        length_factors: Base factor per length field
        slider_factor: Slider offset factor (yoke, piston)
        piston_margin_factor: Extra coupler reach for pistons
        quick_return_slider_factor: Pivot offset factor for quick-returns
        quick_return_ground_factor: Ground factor for quick-returns
        quick_return_min_gap: Ground is at least crank + this
        quick_return_rocker_factor: Slotted arm factor
        five_bar_factors: Ground/crank/rocker factors for five-bars
        five_bar_speed_jitter: speed2 = +-1 + (U - 0.5) * jitter
        five_bar_arm_spread: Arm length multiplier in [1, 1 + spread)
    """
    default_scale: float = 100.0
    anchor_spread: float = 3.0
    length_factors: dict[str, float] = field(default_factory=lambda: {
        'ground_length': 0.8,
        'crank_length': 0.3,
        'coupler_length': 1.0,
        'rocker_length': 0.8,
        'coupler_point_dist': 0.5,
        'rod_length': 1.0,
    })
    slider_factor: float = 0.5
    piston_margin_factor: float = 0.5
    quick_return_slider_factor: float = 1.0
    quick_return_ground_factor: float = 0.5
    quick_return_min_gap: float = 10.0
    quick_return_rocker_factor: float = 1.5
    five_bar_factors: dict[str, float] = field(default_factory=lambda: {
        'ground_length': 0.6,
        'crank_length': 0.3,
        'rocker_length': 0.3,
    })
    five_bar_speed_jitter: float = 0.2
    five_bar_arm_spread: float = 0.4


@dataclass
class MutationConfig:
    """
    Parameters for mutate_config().

    Absolute magnitudes are full spans: a value moves by (U - 0.5) * span * T.
    Relative magnitudes move v by v * relative * T * (2U - 1).

    Attributes:
        structural_prob: Chance of switching variant (needs T > structural_min_temp)
        structural_min_temp: Temperature below which the variant is frozen
        scale_prob: Chance of a global rescale
        scale_span: Rescale factor is 1 + (U - 0.5) * scale_span * T
        position_prob: Chance for each of anchor x, anchor y, ground angle
        position_span: Anchor span (units)
        ground_angle_span: Ground angle span (degrees)
        dimension_prob: Chance for each length
        dimension_relative: Relative length noise
        phase_prob: Chance of a five-bar phase change
        phase_span: Phase span (radians)
        speed_prob: Chance of a five-bar speed2 nudge
        speed_jitter: speed2 jitter span
        speed_tolerance: speed2 stays within this of +-speed1
        slider_prob, slider_span: Slider offset mutation
        point_angle_prob, point_angle_span: Coupler-point angle mutation (degrees)
    """
    structural_prob: float = 0.15
    structural_min_temp: float = 0.3
    scale_prob: float = 0.15
    scale_span: float = 0.5
    position_prob: float = 0.7
    position_span: float = 150.0
    ground_angle_span: float = 60.0
    dimension_prob: float = 0.7
    dimension_relative: float = 0.2
    phase_prob: float = 0.6
    phase_span: float = math.pi * 0.5
    speed_prob: float = 0.3
    speed_jitter: float = 0.05
    speed_tolerance: float = 0.1
    slider_prob: float = 0.7
    slider_span: float = 30.0
    point_angle_prob: float = 0.7
    point_angle_span: float = 60.0


@dataclass
class SeedPlacementConfig:
    """
    Parameters for place_seed_variations().

    Attributes:
        count: Number of placements generated from the template
        position_spread: Anchor lies within +-position_spread/2 * path size
        size_min: Smallest crank+coupler+rocker, as a multiple of path size
        size_span: Size range above size_min
        min_size_divisor: Floor on the template's own size when rescaling
    """
    count: int = 500
    position_spread: float = 4.0
    size_min: float = 0.5
    size_span: float = 2.0
    min_size_divisor: float = 10.0
