from __future__ import annotations

import logging
import math
import time

import numpy as np
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from candidate_gen.sampling import synthesize_config
from configs.appconfig import MIN_TARGET_POINTS
from configs.link_models import MechanismModel
from configs.link_models import OptimizationOptionsModel
from configs.link_models import TargetPathModel
from configs.paths import LOG_FILE
from demo.helpers import load_presets
from linkage_tools.kinematic import get_loops
from linkage_tools.kinematic import sample_curve
from linkage_tools.kinematic import solve_linkage
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.optimization_types import TargetPath
from linkage_tools.trajectory_scoring import evaluate_fitness
from linkage_tools.trajectory_scoring import INVALID_THRESHOLD
from linkage_tools.trajectory_scoring import scoring_resolution
from linkage_tools.trajectory_utils import analyze_curve
from linkage_tools.trajectory_utils import DEFAULT_MIN_SPACING
from linkage_tools.trajectory_utils import thin_drawn_path
from optimizers.evolutionary import EvolutionConfig
from optimizers.evolutionary import PathOptimizer

logger = logging.getLogger(__name__)

app = FastAPI(title='Mechanim API')

# Simple CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.get('/')
def root():
    return {'message': 'Mechanim API is running'}


@app.get('/status')
def get_status():
    return {
        'status': 'operational',
        'message': 'Mechanim backend is running successfully',
    }


def sanitize_for_json(obj):
    """
    Recursively sanitize an object for JSON serialization.

    Converts inf/-inf to string "Infinity"/"-Infinity" and nan to null.
    This prevents JSON serialization errors.
    """
    if isinstance(obj, dict):
        return {k: sanitize_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [sanitize_for_json(item) for item in obj]
    elif isinstance(obj, bool) or obj is None or isinstance(obj, str):
        return obj
    elif isinstance(obj, float):
        if math.isinf(obj):
            return 'Infinity' if obj > 0 else '-Infinity'
        elif math.isnan(obj):
            return None
        return obj
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif hasattr(obj, '__float__'):  # numpy types
        val = float(obj)
        if math.isinf(val):
            return 'Infinity' if val > 0 else '-Infinity'
        elif math.isnan(val):
            return None
        return val
    return obj


def _error(message: str, error_type: str = 'exception') -> dict:
    return {'status': 'error', 'error_type': error_type, 'message': message}


def config_from_request(request: dict) -> MechanismConfig:
    """
    Convert frontend mechanism data to a MechanismConfig.

    This is the SINGLE conversion point for all endpoints. The mechanism may
    be nested under 'mechanism' or be the request itself.

    Raises:
        ValueError: If the payload is not a valid mechanism
    """
    data = request.get('mechanism', request)
    if not isinstance(data, dict):
        raise ValueError(f'Invalid request: expected mechanism dict, got {type(data).__name__}')
    return MechanismModel.model_validate(data).to_config()


def target_from_request(request: dict) -> TargetPath:
    """Extract the drawn target path ('target_path' or 'points')."""
    points = request.get('target_path', request.get('points'))
    if isinstance(points, dict):
        points = points.get('positions', points.get('points'))
    return TargetPathModel(points=points).to_target_path()


@app.post('/solve-linkage')
def solve_linkage_endpoint(request: dict):
    """
    Joint positions of one mechanism at one drive angle.

    Request body:
        {
            "mechanism": {"type": "4bar", "crankLength": 50, ...},
            "angle": 0.785          # Drive angle in radians (default 0)
        }

    Returns:
        {
            "status": "success",
            "state": {"p1": [x, y], "p2": ..., "j1": ..., "j2": ...,
                      "effector": ..., "isValid": true, "aux": ...}
        }
    """
    try:
        config = config_from_request(request)
        angle = float(request.get('angle', 0.0))
        state = solve_linkage(config, angle)
        return sanitize_for_json({
            'status': 'success',
            'state': state.to_dict(),
        })
    except Exception as e:
        logger.exception('Error solving linkage')
        return _error(f'Failed to solve linkage: {e}')


@app.post('/compute-curve')
def compute_curve(request: dict):
    """
    Effector curve of a mechanism (for trace rendering and export).

    Request body:
        {
            "mechanism": {...},
            "resolution": 120       # Samples per revolution (default: scoring resolution)
        }

    Returns:
        {
            "status": "success",
            "points": [[x, y], ...],
            "valid_fraction": 1.0,
            "n_samples": 120,
            "loops": 1,
            "execution_time_ms": 0.4
        }
    """
    try:
        start_time = time.perf_counter()
        config = config_from_request(request)
        resolution = int(request.get('resolution', scoring_resolution(config)))
        curve = sample_curve(config, resolution)
        execution_time_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(f'Computed {curve.n_samples} samples for {config.mech_type} in {execution_time_ms:.2f}ms')
        return sanitize_for_json({
            'status': 'success',
            'points': curve.to_list(),
            'valid_fraction': curve.valid_fraction,
            'n_samples': curve.n_samples,
            'loops': get_loops(config),
            'execution_time_ms': execution_time_ms,
        })
    except Exception as e:
        logger.exception('Error computing curve')
        return _error(f'Failed to compute curve: {e}')


@app.post('/evaluate-fitness')
def evaluate_fitness_endpoint(request: dict):
    """
    Score a mechanism against a drawn path.

    Request body:
        {
            "mechanism": {...},
            "target_path": [[x, y], ...]
        }

    Returns:
        {"status": "success", "score": 123.4, "is_valid": true}
    """
    try:
        config = config_from_request(request)
        target = target_from_request(request)
        if len(target) == 0:
            return _error('Target path is empty', error_type='precondition')
        score = evaluate_fitness(config, target)
        return sanitize_for_json({
            'status': 'success',
            'score': score,
            'is_valid': score < INVALID_THRESHOLD,
        })
    except Exception as e:
        logger.exception('Error evaluating fitness')
        return _error(f'Failed to evaluate fitness: {e}')


@app.post('/prepare-path')
def prepare_path(request: dict):
    """
    Thin a freehand gesture and describe it.

    Request body:
        {
            "points": [[x, y], ...] or [{"x": .., "y": ..}, ...],
            "min_spacing": 5.0
        }

    Returns:
        {
            "status": "success",
            "target_path": {"positions": [[x, y], ...], "n_points": 42},
            "original_points": 157,
            "output_points": 42,
            "analysis": {...}
        }
    """
    try:
        raw = target_from_request(request)
        min_spacing = float(request.get('min_spacing', DEFAULT_MIN_SPACING))
        thinned = TargetPath(positions=thin_drawn_path(raw.positions, min_spacing))

        response = {
            'status': 'success',
            'target_path': thinned.to_dict(),
            'original_points': len(raw),
            'output_points': len(thinned),
            'analysis': analyze_curve(thinned.positions_array) if len(thinned) else None,
        }
        return sanitize_for_json(response)
    except Exception as e:
        logger.exception('Error preparing path')
        return _error(f'Failed to prepare path: {e}')


@app.post('/synthesize-mechanism')
def synthesize_mechanism(request: dict):
    """
    Random mechanisms sized to a target region.

    Request body:
        {
            "target_path": [[x, y], ...],   # Optional
            "forced_type": "5bar",          # Optional
            "excluded_type": "crank",       # Optional
            "count": 1,
            "seed": 42                      # Optional
        }

    Returns:
        {"status": "success", "mechanisms": [{...}, ...]}
    """
    try:
        target = target_from_request(request)
        count = int(request.get('count', 1))
        if count < 1:
            raise ValueError(f'count must be >= 1, got {count}')
        rng = np.random.default_rng(request.get('seed'))
        mechanisms = [
            synthesize_config(
                rng,
                target if len(target) else None,
                forced_type=request.get('forced_type'),
                excluded_type=request.get('excluded_type'),
            ).to_dict()
            for _ in range(count)
        ]
        return sanitize_for_json({'status': 'success', 'mechanisms': mechanisms})
    except Exception as e:
        logger.exception('Error synthesizing mechanism')
        return _error(f'Failed to synthesize mechanism: {e}')


@app.post('/optimize-path')
def optimize_path_endpoint(request: dict):
    """
    Fit the selected mechanism to a drawn path.

    Request body:
        {
            "mechanism": {...},              # Currently selected mechanism (required)
            "target_path": [[x, y], ...],    # At least MIN_TARGET_POINTS points
            "options": {
                "forcedType": null,
                "excludeCurrent": false,
                "seedMechanism": null,
                "durationSeconds": 0
            },
            "seed": 42,                      # Optional
            "n_generations": 100,            # Optional
            "population_size": 100,          # Optional
            "pre_compute_size": 2000,        # Optional
            "include_reports": true          # Optional
        }

    Returns:
        {
            "status": "success",
            "result": {OptimizationResult.to_dict()},
            "reports": [{GenerationReport.to_dict()}, ...],
            "execution_time_ms": 1234.5
        }
    """
    try:
        if not request.get('mechanism'):
            return _error('No mechanism selected to optimize', error_type='precondition')
        target = target_from_request(request)
        if len(target) < MIN_TARGET_POINTS:
            return _error(
                f'Draw a path first: at least {MIN_TARGET_POINTS} points are required, got {len(target)}',
                error_type='precondition',
            )

        current = config_from_request(request)
        options = OptimizationOptionsModel.model_validate(request.get('options') or {}).to_options()
        evolution_config = EvolutionConfig(
            n_generations=int(request.get('n_generations', 100)),
            population_size=int(request.get('population_size', 100)),
            pre_compute_size=int(request.get('pre_compute_size', 2000)),
            seed=request.get('seed'),
        )

        reports = []
        optimizer = PathOptimizer(
            target,
            current=current,
            options=options,
            config=evolution_config,
            on_generation=reports.append,
        )

        start_time = time.perf_counter()
        result = optimizer.run()
        execution_time_ms = (time.perf_counter() - start_time) * 1000

        response = {
            'status': 'success' if result.success else 'error',
            'message': result.error or f'Best score {result.best_score:.4f} after {result.generations} generations',
            'result': result.to_dict(),
            'execution_time_ms': execution_time_ms,
        }
        if request.get('include_reports', True):
            response['reports'] = [r.to_dict() for r in reports]
        return sanitize_for_json(response)
    except Exception as e:
        logger.exception('Error optimizing path')
        return _error(f'Optimization failed: {e}')


@app.get('/presets')
def get_presets():
    """Built-in template mechanisms usable as seedMechanism."""
    try:
        presets = load_presets()
        return {
            'status': 'success',
            'presets': [
                {'name': name, 'mechanism': config.to_dict()}
                for name, config in presets.items()
            ],
        }
    except Exception as e:
        logger.exception('Error loading presets')
        return _error(f'Failed to load presets: {e}')


@app.get('/logs/backend')
def get_backend_log(lines: int = 500, offset: int = 0):
    """
    Get the most recent lines from the backend log file.

    Args:
        lines: Number of lines to return (default: 500)
        offset: Number of lines to skip from the end (default: 0)

    Returns:
        {
            "status": "success",
            "content": "...",
            "total_lines": 1234,
            "lines_returned": 500
        }
    """
    try:
        if not LOG_FILE.exists():
            return {
                'status': 'success',
                'content': '(No log file found yet)',
                'total_lines': 0,
                'lines_returned': 0,
            }

        with open(LOG_FILE, encoding='utf-8') as f:
            all_lines = f.readlines()

        total_lines = len(all_lines)

        # Get the requested range from the end
        if offset > 0:
            end_idx = max(0, total_lines - offset)
            start_idx = max(0, end_idx - lines)
            selected_lines = all_lines[start_idx:end_idx]
        else:
            start_idx = max(0, total_lines - lines)
            selected_lines = all_lines[start_idx:]

        return {
            'status': 'success',
            'content': ''.join(selected_lines),
            'total_lines': total_lines,
            'lines_returned': len(selected_lines),
        }

    except Exception as e:
        return _error(f'Failed to read log file: {e}')


@app.delete('/logs/backend')
def clear_backend_log():
    """Clear the backend log file."""
    try:
        if LOG_FILE.exists():
            with open(LOG_FILE, 'w', encoding='utf-8') as f:
                f.write('')

        return {
            'status': 'success',
            'message': 'Log file cleared',
        }

    except Exception as e:
        return _error(f'Failed to clear log file: {e}')
