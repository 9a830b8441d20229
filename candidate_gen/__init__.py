"""
candidate_gen - Random candidates and variation operators for path fitting.

Main components:
    Config classes:
        - SynthesisConfig: Length factors for fresh candidates
        - MutationConfig: Probabilities and magnitudes of mutation steps
        - SeedPlacementConfig: Placement spread for template seeding

    Core functions:
        - synthesize_config(): Random mechanism sized to a target path
        - place_seed_variations(): Randomized placements of a template
        - mutate_config(): Temperature-scaled perturbation
        - enforce_five_bar_constraints(): Five-bar arm repair
        - clamp_link_lengths(): Minimum link length floor

Basic usage:
    >>> import numpy as np
    >>> from candidate_gen import synthesize_config, mutate_config
    >>> rng = np.random.default_rng(42)
    >>> parent = synthesize_config(rng, target_path)
    >>> child = mutate_config(parent, temperature=0.5, rng=rng)
"""
from __future__ import annotations

from .mutation import mutate_config
from .repair import clamp_link_lengths
from .repair import enforce_five_bar_constraints
from .sampling import allowed_types
from .sampling import new_mechanism_id
from .sampling import place_seed_variations
from .sampling import synthesize_config
from .variation_config import MIN_LINK_LENGTH
from .variation_config import MutationConfig
from .variation_config import SeedPlacementConfig
from .variation_config import SynthesisConfig

__all__ = [
    # Configuration
    'SynthesisConfig',
    'MutationConfig',
    'SeedPlacementConfig',
    'MIN_LINK_LENGTH',
    # Core functions
    'synthesize_config',
    'place_seed_variations',
    'mutate_config',
    'enforce_five_bar_constraints',
    'clamp_link_lengths',
    'allowed_types',
    'new_mechanism_id',
]
