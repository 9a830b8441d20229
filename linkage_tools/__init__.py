"""
linkage_tools - Planar mechanism solving and path scoring.

Key components:
  - MechanismConfig: Flat parameter record for all six mechanism variants
  - build_linkage / solve_linkage: Closed-form position analysis
  - sample_curve: Effector curve over one or more drive revolutions
  - evaluate_fitness: Curve-matching score against a target path

Example usage:
    from linkage_tools import MechanismConfig, TargetPath, evaluate_fitness

    config = MechanismConfig(mech_type='4bar', crank_length=40)
    target = TargetPath(positions=drawn_points)
    score = evaluate_fitness(config, target)
"""
from __future__ import annotations

from linkage_tools.kinematic import CurveSample
from linkage_tools.kinematic import sample_curve
from linkage_tools.kinematic import simulate
from linkage_tools.kinematic import solve_linkage
from linkage_tools.mechanism import build_linkage
from linkage_tools.mechanism import JointState
from linkage_tools.mechanism import JointTrajectory
from linkage_tools.mechanism import LENGTH_FIELDS
from linkage_tools.mechanism import MECHANISM_TYPES
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.optimization_types import GenerationReport
from linkage_tools.optimization_types import OptimizationOptions
from linkage_tools.optimization_types import OptimizationResult
from linkage_tools.optimization_types import ScoredCandidate
from linkage_tools.optimization_types import TargetPath
from linkage_tools.trajectory_scoring import chamfer_distance
from linkage_tools.trajectory_scoring import evaluate_fitness
from linkage_tools.trajectory_utils import get_bounds
from linkage_tools.trajectory_utils import thin_drawn_path

__all__ = [
    # Configuration and solver
    'MechanismConfig',
    'MECHANISM_TYPES',
    'LENGTH_FIELDS',
    'build_linkage',
    'solve_linkage',
    'JointState',
    'JointTrajectory',
    # Sampling and scoring
    'CurveSample',
    'sample_curve',
    'simulate',
    'chamfer_distance',
    'evaluate_fitness',
    # Data types
    'TargetPath',
    'ScoredCandidate',
    'OptimizationOptions',
    'GenerationReport',
    'OptimizationResult',
    # Path utilities
    'get_bounds',
    'thin_drawn_path',
]
