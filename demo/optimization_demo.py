"""
optimization_demo.py - Demo script for mechanism path fitting.

This script demonstrates the full optimization workflow:
1. Build a target path (a circle, or the curve of a preset mechanism)
2. Score the starting mechanism against it
3. Run the evolutionary optimizer, optionally seeded by a preset template
4. Report convergence and save the best mechanism to user/demo/

=============================================================================
HYPERPARAMETERS AND CONSTANTS
=============================================================================

Evolution Parameters:
- POPULATION_SIZE: Candidates per generation (higher = more exploration, slower)
- N_GENERATIONS: Generation budget (ignored when DURATION_SECONDS > 0)
- PRE_COMPUTE_SIZE: Random candidates scored during seeding

Target:
- TARGET: 'circle' for a circle of CIRCLE_RADIUS, or the name of a preset
  whose own curve becomes the target (an achievable target)

Options:
- EXCLUDED_TYPE: Mechanism type the search may not use
- SEED_PRESET: Preset used as seedMechanism (None for no template)

=============================================================================
"""
from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from configs.logging_config import get_logger  # noqa: E402
from configs.paths import USER_DIR  # noqa: E402
from demo.helpers import load_preset  # noqa: E402
from demo.helpers import print_mechanism_info  # noqa: E402
from demo.helpers import print_section  # noqa: E402
from linkage_tools.kinematic import sample_curve  # noqa: E402
from linkage_tools.mechanism import MechanismConfig  # noqa: E402
from linkage_tools.optimization_types import OptimizationOptions  # noqa: E402
from linkage_tools.optimization_types import TargetPath  # noqa: E402
from linkage_tools.trajectory_scoring import evaluate_fitness  # noqa: E402
from linkage_tools.trajectory_utils import circle_path  # noqa: E402
from linkage_tools.trajectory_utils import print_curve_info  # noqa: E402
from optimizers.evolutionary import EvolutionConfig  # noqa: E402
from optimizers.evolutionary import optimize_path  # noqa: E402

logger = get_logger(__name__)


# =============================================================================
# CONSTANTS AND HYPERPARAMETERS
# =============================================================================

# --- Random Seed (set for reproducibility, or None for random) ---
RANDOM_SEED = 42

# --- Target ---
TARGET = 'circle'          # 'circle' or a preset name, e.g. 'Crank-Rocker'
CIRCLE_RADIUS = 100.0
N_TARGET_POINTS = 60

# --- Evolution Parameters ---
POPULATION_SIZE = 100
N_GENERATIONS = 100
PRE_COMPUTE_SIZE = 2000
DURATION_SECONDS = 0.0     # > 0 switches to a wall-clock budget

# --- Options ---
EXCLUDED_TYPE = 'crank'    # Exclude the trivial exact answer for circles
SEED_PRESET = None         # e.g. 'Two-Gear Drawing Machine'

# --- Output ---
OUTPUT_DIR = USER_DIR / 'demo'
TIMESTAMP = datetime.now().strftime('%Y%m%d_%H%M%S')


def build_target() -> TargetPath:
    if TARGET == 'circle':
        return TargetPath(positions=circle_path(CIRCLE_RADIUS, N_TARGET_POINTS))
    preset = load_preset(TARGET)
    curve = sample_curve(preset, N_TARGET_POINTS)
    return TargetPath.from_array(curve.points)


def main():
    print_section('MECHANISM PATH FITTING DEMO')

    # =========================================================================
    # Step 1: Target
    # =========================================================================
    print_section('Step 1: Build Target Path')
    target = build_target()
    print_curve_info(target.positions, name=f'Target ({TARGET})')

    # =========================================================================
    # Step 2: Starting mechanism
    # =========================================================================
    print_section('Step 2: Score Starting Mechanism')
    current = MechanismConfig(mech_type=EXCLUDED_TYPE or '4bar')
    initial_score = evaluate_fitness(current, target)
    print_mechanism_info(current, initial_score)

    # =========================================================================
    # Step 3: Optimize
    # =========================================================================
    print_section('Step 3: Run Optimization')
    options = OptimizationOptions(
        exclude_current=EXCLUDED_TYPE is not None,
        seed_mechanism=load_preset(SEED_PRESET) if SEED_PRESET else None,
        duration_seconds=DURATION_SECONDS,
    )
    config = EvolutionConfig(
        population_size=POPULATION_SIZE,
        n_generations=N_GENERATIONS,
        pre_compute_size=PRE_COMPUTE_SIZE,
        seed=RANDOM_SEED,
    )

    def on_generation(report):
        if report.generation % 10 == 0:
            print(
                f'  gen {report.generation:3d}: best={report.best_score:10.3f} '
                f'global={report.global_best_score:10.3f} T={report.temperature:.3f} '
                f'({report.best_config.mech_type})',
            )

    result = optimize_path(target, current=current, options=options, config=config, on_generation=on_generation)

    # =========================================================================
    # Step 4: Results
    # =========================================================================
    print_section('Step 4: Analyze Results')
    print(f'Generations: {result.generations}  Evaluations: {result.evaluations}')
    print(f'Seeded best: {result.initial_score:.4f}  Final best: {result.best_score:.4f}')
    print(f'Improvement: {result.improvement_pct:.1f}%  Elapsed: {result.elapsed_seconds:.1f}s')
    if result.best_config is not None:
        print_mechanism_info(result.best_config, result.best_score)

    # =========================================================================
    # Step 5: Save
    # =========================================================================
    print_section('Step 5: Save Results')
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    result_file = OUTPUT_DIR / f'optimization_result_{TIMESTAMP}.json'
    with open(result_file, 'w') as f:
        json.dump({'target': target.to_dict(), 'result': result.to_dict()}, f, indent=2)
    print(f'Saved result to: {result_file}')
    logger.info(f'Demo finished with best score {result.best_score:.4f}')

    print_section('OPTIMIZATION QUALITY ASSESSMENT')
    if result.best_score < 50:
        print('\nEXCELLENT: score < 50 - the curve retraces the target closely')
    elif result.best_score < 500:
        print('\nGOOD: score < 500 - recognisably the same shape')
    elif result.best_score < 1e8:
        print('\nMODERATE: valid mechanism, but the shape is off')
    else:
        print('\nPOOR: no mechanism that completes a full revolution was found')


if __name__ == '__main__':
    main()
