"""
Optimizer implementations for mechanism path fitting.

Each optimizer follows a consistent interface:
- Takes a target path, the current mechanism and OptimizationOptions
- Returns OptimizationResult

Available optimizers:
- evolutionary: Monte-Carlo seeding followed by an annealed genetic search
  over mechanism type and dimensions
"""
from __future__ import annotations

from optimizers.evolutionary import EvolutionConfig
from optimizers.evolutionary import optimize_path
from optimizers.evolutionary import OptimizerState
from optimizers.evolutionary import PathOptimizer

# Registry of available optimizers for the API
AVAILABLE_OPTIMIZERS = {
    'evolutionary': {
        'function': optimize_path,
        'description': 'Monte-Carlo seeding plus annealed evolutionary search',
        'package': 'numpy',
        'gradient': False,
        'global': True,
    },
}

__all__ = [
    'EvolutionConfig',
    'OptimizerState',
    'PathOptimizer',
    'optimize_path',
    'AVAILABLE_OPTIMIZERS',
]
