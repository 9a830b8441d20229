"""
Shared utilities for demo scripts and the API.

This module provides:
- Built-in preset mechanisms (demo/presets.json)
- Formatted output helpers
"""
from __future__ import annotations

import json
from pathlib import Path

from configs.paths import PRESETS_FILE
from linkage_tools.mechanism import MechanismConfig

# =============================================================================
# PRESET REGISTRY
# =============================================================================


def load_presets(path: Path | str | None = None) -> dict[str, MechanismConfig]:
    """
    Load the built-in preset mechanisms.

    Args:
        path: Preset JSON file (default: demo/presets.json)

    Returns:
        Ordered mapping preset name -> MechanismConfig
    """
    preset_file = Path(path) if path is not None else PRESETS_FILE
    with open(preset_file, encoding='utf-8') as f:
        data = json.load(f)
    return {
        entry['name']: MechanismConfig.from_dict(entry['mechanism'])
        for entry in data['presets']
    }


def load_preset(name: str, path: Path | str | None = None) -> MechanismConfig:
    """
    Load one preset by name.

    Raises:
        ValueError: If name is unknown
    """
    presets = load_presets(path)
    if name not in presets:
        raise ValueError(f"Unknown preset '{name}'. Available: {list(presets)}")
    return presets[name]


# =============================================================================
# OUTPUT HELPERS
# =============================================================================

def print_section(title: str, width: int = 70):
    """Print a formatted section header."""
    print('\n' + '=' * width)
    print(f'  {title}')
    print('=' * width)


def print_mechanism_info(config: MechanismConfig, score: float | None = None):
    """Print a summary of a mechanism configuration."""
    print(f'\nMechanism: {config.mech_type} (id={config.id})')
    print(f'  Anchor: ({config.anchor_x:.1f}, {config.anchor_y:.1f}), ground angle {config.ground_angle:.1f} deg')
    print(
        f'  Lengths: crank={config.crank_length:.1f} ground={config.ground_length:.1f} '
        f'coupler={config.coupler_length:.1f} rocker={config.rocker_length:.1f}',
    )
    print(f'  Coupler point: dist={config.coupler_point_dist:.1f} angle={config.coupler_point_angle:.1f} deg')
    if config.mech_type == '5bar':
        print(f'  Gears: speed1={config.speed1:.3f} speed2={config.speed2:.3f} rod={config.rod_length:.1f}')
    if score is not None:
        print(f'  Score: {score:.4f}')
