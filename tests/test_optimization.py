"""
Tests for the evolutionary path optimizer.

Tests verify that:
- The global best never gets worse (monotone convergence history)
- Generation reports are emitted once per generation
- Fixed-generation, timed and cancelled runs stop where they should
- Forced and excluded types hold for every reported candidate
- Results keep the identity of the mechanism they replace
- A circle is fitted well without using a plain crank
"""
from __future__ import annotations

import itertools

import numpy as np
import pytest

from candidate_gen import SeedPlacementConfig
from candidate_gen import SynthesisConfig
from demo.helpers import load_preset
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.optimization_types import OptimizationOptions
from linkage_tools.optimization_types import OptimizationResult
from linkage_tools.optimization_types import ScoredCandidate
from linkage_tools.optimization_types import TargetPath
from linkage_tools.trajectory_utils import circle_path
from optimizers import AVAILABLE_OPTIMIZERS
from optimizers.evolutionary import EvolutionConfig
from optimizers.evolutionary import optimize_path
from optimizers.evolutionary import OptimizerState
from optimizers.evolutionary import PathOptimizer


@pytest.fixture
def circle_target():
    """Circle of radius 100 at the origin, 60 points."""
    return TargetPath(positions=circle_path(100.0, 60))


@pytest.fixture
def small_config():
    """Fast settings for behavioural tests."""
    return EvolutionConfig(population_size=20, pre_compute_size=100, n_generations=5, seed=1)


@pytest.fixture
def current_mechanism():
    return MechanismConfig(mech_type='4bar', id='my-mech', color='#ff0000')


class TestEvolutionConfig:
    """Tests for EvolutionConfig derived sizes."""

    def test_elites_round_up(self):
        assert EvolutionConfig(population_size=100).n_elites == 15
        assert EvolutionConfig(population_size=10).n_elites == 2

    def test_survivors(self):
        assert EvolutionConfig(population_size=100).n_survivors == 50
        assert EvolutionConfig(population_size=1).n_survivors == 1

    def test_invalid_population(self):
        with pytest.raises(ValueError):
            EvolutionConfig(population_size=0)


class TestTemperature:
    """Tests for the annealing schedule."""

    def test_schedule(self, circle_target):
        optimizer = PathOptimizer(circle_target, config=EvolutionConfig(n_generations=100))
        assert optimizer.temperature(0.0) == pytest.approx(1.0)
        optimizer.generation = 25
        assert optimizer.temperature(0.0) == pytest.approx(0.5)
        optimizer.generation = 100
        assert optimizer.temperature(0.0) == pytest.approx(0.05)

    def test_timed_schedule(self, circle_target):
        optimizer = PathOptimizer(circle_target, options=OptimizationOptions(duration_seconds=4.0))
        assert optimizer.temperature(1.0) == pytest.approx(0.5)
        assert optimizer.temperature(10.0) == pytest.approx(0.05)


class TestBreeding:
    """Tests for one breeding step."""

    def test_elites_carried_unchanged(self, circle_target, small_config):
        optimizer = PathOptimizer(circle_target, config=small_config)
        configs = [MechanismConfig(mech_type='crank', crank_length=10.0 + i) for i in range(20)]
        ranked = [ScoredCandidate(c, float(i)) for i, c in enumerate(configs)]

        next_gen = optimizer._breed(ranked, temperature=0.5)
        assert len(next_gen) == small_config.population_size
        for i in range(small_config.n_elites):
            assert next_gen[i] is configs[i]


class TestFixedGenerationRun:
    """Tests for a run with a generation budget."""

    def test_runs_all_generations(self, circle_target, small_config):
        result = optimize_path(circle_target, config=small_config)
        assert isinstance(result, OptimizationResult)
        assert result.success
        assert result.generations == 5
        assert len(result.convergence_history) == 5
        assert not result.cancelled

    def test_evaluation_count(self, circle_target, small_config):
        """Seeding batch plus one population per generation."""
        result = optimize_path(circle_target, config=small_config)
        assert result.evaluations == 100 + 5 * 20

    def test_current_mechanism_seeds(self, circle_target, small_config, current_mechanism):
        """Current mechanism and its mutations join the seeding batch."""
        result = optimize_path(circle_target, current=current_mechanism, config=small_config)
        assert result.evaluations == 1 + small_config.current_mutations + 100 + 5 * 20

    def test_history_monotone(self, circle_target, small_config):
        result = optimize_path(circle_target, config=small_config)
        history = result.convergence_history
        assert all(b <= a for a, b in zip(history, history[1:]))
        assert history[0] <= result.initial_score
        assert result.best_score == history[-1]

    def test_reports(self, circle_target, small_config):
        reports = []
        result = optimize_path(circle_target, config=small_config, on_generation=reports.append)
        assert [r.generation for r in reports] == list(range(result.generations))
        assert [r.global_best_score for r in reports] == result.convergence_history
        assert all(r.best_score >= r.global_best_score for r in reports)
        assert reports[0].temperature == pytest.approx(1.0)
        temperatures = [r.temperature for r in reports]
        assert temperatures == sorted(temperatures, reverse=True)

    def test_seeded_runs_reproduce(self, circle_target, small_config):
        a = optimize_path(circle_target, config=small_config)
        b = optimize_path(circle_target, config=small_config)
        assert a.best_score == b.best_score
        assert a.best_config == b.best_config

    def test_threaded_scoring_matches_inline(self, circle_target, small_config):
        inline = optimize_path(circle_target, config=small_config)
        threaded_config = EvolutionConfig(population_size=20, pre_compute_size=100, n_generations=5, seed=1, n_workers=4)
        threaded = optimize_path(circle_target, config=threaded_config)
        assert threaded.best_score == inline.best_score
        assert threaded.convergence_history == inline.convergence_history

    def test_run_twice_raises(self, circle_target, small_config):
        optimizer = PathOptimizer(circle_target, config=small_config)
        optimizer.run()
        assert optimizer.state is OptimizerState.DONE
        with pytest.raises(RuntimeError):
            optimizer.run()

    def test_empty_target_raises(self):
        with pytest.raises(ValueError):
            PathOptimizer([])

    def test_accepts_plain_points(self, small_config):
        result = optimize_path(circle_path(80.0, 30), config=small_config)
        assert result.success

    def test_result_to_dict(self, circle_target, small_config):
        data = optimize_path(circle_target, config=small_config).to_dict()
        assert data['success'] is True
        assert data['best_config']['type'] in ('crank', '4bar', 'piston', 'yoke', 'quick-return', '5bar')
        assert len(data['convergence_history']) == 5


class TestSeedingFallback:
    """Seeding when no candidate assembles at every drive angle."""

    @pytest.fixture
    def unreachable_config(self):
        """Ground links ~100x the path size: no four-bar can close."""
        factors = dict(SynthesisConfig().length_factors)
        factors['ground_length'] = 100.0
        return EvolutionConfig(
            population_size=10, pre_compute_size=30, n_generations=2, seed=2,
            synthesis=SynthesisConfig(length_factors=factors),
        )

    def test_population_filled_from_invalid_pool(self, circle_target, unreachable_config):
        optimizer = PathOptimizer(
            circle_target, options=OptimizationOptions(forced_type='4bar'), config=unreachable_config,
        )
        population = optimizer.seed_population()
        assert len(population) == 10
        assert optimizer.best_config is not None
        assert optimizer.best_score >= 1e9

    def test_run_reports_invalid_best(self, circle_target, unreachable_config):
        result = optimize_path(
            circle_target, options=OptimizationOptions(forced_type='4bar'), config=unreachable_config,
        )
        assert result.success
        assert result.best_config is not None
        assert result.best_config.mech_type == '4bar'
        assert result.best_score >= 1e9
        assert result.generations == 2


class TestStopping:
    """Tests for cancellation and the wall-clock budget."""

    def test_cancel_after_reports(self, circle_target):
        reports = []
        config = EvolutionConfig(population_size=20, pre_compute_size=100, n_generations=50, seed=1)
        result = optimize_path(
            circle_target,
            config=config,
            on_generation=reports.append,
            should_stop=lambda: len(reports) >= 3,
        )
        assert result.cancelled
        assert result.generations == 3
        assert len(reports) == 3
        assert result.best_config is not None

    def test_timed_budget(self, circle_target, small_config):
        """Fake clock advancing one second per read: a 5 s budget allows 4 generations."""
        ticks = itertools.count()
        reports = []
        optimizer = PathOptimizer(
            circle_target,
            options=OptimizationOptions(duration_seconds=5.0),
            config=small_config,
            on_generation=reports.append,
            clock=lambda: float(next(ticks)),
        )
        result = optimizer.run()
        assert result.generations == 4
        assert not result.cancelled
        assert [r.elapsed_seconds for r in reports] == [1.0, 2.0, 3.0, 4.0]

    def test_timed_budget_ignores_generation_count(self, circle_target):
        ticks = itertools.count()
        config = EvolutionConfig(population_size=10, pre_compute_size=20, n_generations=2, seed=3)
        optimizer = PathOptimizer(
            circle_target,
            options=OptimizationOptions(duration_seconds=6.0),
            config=config,
            clock=lambda: float(next(ticks)),
        )
        assert optimizer.run().generations == 5


class TestTypeOptions:
    """Tests for forced/excluded types and template seeding."""

    def test_forced_type(self, circle_target, small_config, current_mechanism):
        reports = []
        result = optimize_path(
            circle_target,
            current=current_mechanism,
            options=OptimizationOptions(forced_type='5bar'),
            config=small_config,
            on_generation=reports.append,
        )
        assert result.best_config.mech_type == '5bar'
        assert all(r.best_config.mech_type == '5bar' for r in reports)

    def test_exclude_current(self, circle_target, small_config):
        current = MechanismConfig(mech_type='crank', crank_length=100.0)
        reports = []
        result = optimize_path(
            circle_target,
            current=current,
            options=OptimizationOptions(exclude_current=True),
            config=small_config,
            on_generation=reports.append,
        )
        assert result.best_config.mech_type != 'crank'
        assert all(r.best_config.mech_type != 'crank' for r in reports)
        # The current mechanism itself is not scored
        assert result.evaluations == 100 + 5 * 20

    def test_seed_mechanism(self, circle_target):
        config = EvolutionConfig(
            population_size=20, pre_compute_size=50, n_generations=3, seed=5,
            placement=SeedPlacementConfig(count=30),
        )
        options = OptimizationOptions(seed_mechanism=load_preset('Crank-Rocker'))
        result = optimize_path(circle_target, options=options, config=config)
        assert result.evaluations == 30 + 50 + 3 * 20

    def test_unknown_forced_type(self):
        with pytest.raises(ValueError):
            OptimizationOptions(forced_type='gearbox')

    def test_negative_duration(self):
        with pytest.raises(ValueError):
            OptimizationOptions(duration_seconds=-1.0)


class TestIdentity:
    """Results replace the current mechanism in place."""

    def test_result_keeps_current_identity(self, circle_target, small_config, current_mechanism):
        reports = []
        result = optimize_path(circle_target, current=current_mechanism, config=small_config, on_generation=reports.append)
        assert result.best_config.id == 'my-mech'
        assert result.best_config.color == '#ff0000'
        assert all(r.best_config.id == 'my-mech' for r in reports)

    def test_without_current_keeps_generated_id(self, circle_target, small_config):
        result = optimize_path(circle_target, config=small_config)
        assert result.best_config.id != 'my-mech'
        assert len(result.best_config.id) == 9


class TestRegistry:
    def test_evolutionary_registered(self):
        assert AVAILABLE_OPTIMIZERS['evolutionary']['function'] is optimize_path


class TestCircleFit:
    """End-to-end: fit a circle with every type except the plain crank."""

    def test_circle_without_crank(self, circle_target):
        """
        Any non-crank type may win. A quick-return whose second pivot lies
        inside the crank circle traces an exact circle, and piston coupler
        points can trace near-circles, so only the crank is ruled out.
        """
        current = MechanismConfig(mech_type='crank', crank_length=100.0)
        result = optimize_path(
            circle_target,
            current=current,
            options=OptimizationOptions(exclude_current=True),
            config=EvolutionConfig(seed=0),
        )
        assert result.success
        assert result.best_config.mech_type != 'crank'
        assert result.best_score < 500
        assert result.generations == 100
        assert np.isfinite(result.best_score)
