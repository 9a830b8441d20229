"""
Tests for trajectory scoring functions.

Tests verify that:
- Chamfer distance is zero for identical sets and ignores point order
- Closure penalty only applies beyond the gap limit
- Locking mechanisms rank below every shape mismatch
- Edge cases are handled properly
"""
from __future__ import annotations

import numpy as np
import pytest

from linkage_tools.mechanism import MechanismConfig
from linkage_tools.optimization_types import TargetPath
from linkage_tools.trajectory_scoring import chamfer_distance
from linkage_tools.trajectory_scoring import CLOSURE_WEIGHT
from linkage_tools.trajectory_scoring import closure_penalty
from linkage_tools.trajectory_scoring import evaluate_fitness
from linkage_tools.trajectory_scoring import INVALID_PENALTY
from linkage_tools.trajectory_scoring import INVALID_THRESHOLD
from linkage_tools.trajectory_scoring import scoring_resolution
from linkage_tools.trajectory_utils import circle_path


@pytest.fixture
def circle_target():
    """Circle of radius 100 at the origin, 60 points."""
    return TargetPath(positions=circle_path(100.0, 60))


class TestChamferDistance:
    """Tests for chamfer_distance."""

    def test_identical_sets(self):
        pts = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
        assert chamfer_distance(pts, pts) == 0.0

    def test_order_invariant(self):
        a = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
        b = [(1.0, 1.0), (0.0, 0.0), (0.0, 1.0), (1.0, 0.0)]
        assert chamfer_distance(a, b) == pytest.approx(0.0)

    def test_single_points(self):
        """Squared distance counted once per direction."""
        assert chamfer_distance([(0.0, 0.0)], [(3.0, 4.0)]) == pytest.approx(50.0)

    def test_symmetric(self):
        a = [(0.0, 0.0), (2.0, 0.0), (5.0, 1.0)]
        b = [(1.0, 1.0), (4.0, 4.0)]
        assert chamfer_distance(a, b) == pytest.approx(chamfer_distance(b, a))

    def test_always_non_negative(self):
        rng = np.random.default_rng(3)
        for _ in range(10):
            a = rng.normal(size=(15, 2)) * 50
            b = rng.normal(size=(7, 2)) * 50
            assert chamfer_distance(a, b) >= 0

    def test_accepts_target_path(self, circle_target):
        assert chamfer_distance(circle_target.positions, circle_target) == 0.0

    def test_empty_set_raises(self):
        with pytest.raises(ValueError):
            chamfer_distance([], [(0.0, 0.0)])


class TestClosurePenalty:
    """Tests for closure_penalty."""

    def test_closed_curve(self):
        assert closure_penalty([(0.0, 0.0), (10.0, 10.0), (5.0, 0.0)]) == 0.0

    def test_open_curve(self):
        """Gap 10 -> squared 100 > 50."""
        assert closure_penalty([(0.0, 0.0), (10.0, 0.0)]) == pytest.approx(100.0 * CLOSURE_WEIGHT)

    def test_single_point(self):
        assert closure_penalty([(1.0, 1.0)]) == 0.0


class TestEvaluateFitness:
    """Tests for evaluate_fitness."""

    def test_exact_match(self, circle_target):
        """A crank of the target radius retraces the circle sample for sample."""
        config = MechanismConfig(mech_type='crank', crank_length=100.0)
        assert evaluate_fitness(config, circle_target) < 1e-9

    def test_shape_mismatch_is_finite(self, circle_target):
        config = MechanismConfig(mech_type='crank', crank_length=60.0)
        score = evaluate_fitness(config, circle_target)
        assert 0 < score < INVALID_THRESHOLD
        # Every point is 40 off in both directions
        assert score == pytest.approx(2 * 40.0 ** 2)

    def test_locked_mechanism_penalized(self, circle_target):
        config = MechanismConfig(mech_type='4bar', ground_length=1000.0)
        assert evaluate_fitness(config, circle_target) == pytest.approx(2 * INVALID_PENALTY)

    def test_partial_lock_ranks_below_any_mismatch(self, circle_target):
        """A four-bar that locks for part of its cycle."""
        partial = MechanismConfig(mech_type='4bar', crank_length=80, ground_length=180, coupler_length=120, rocker_length=100)
        far_away = MechanismConfig(mech_type='crank', crank_length=10.0, anchor_x=5000.0)
        partial_score = evaluate_fitness(partial, circle_target)
        assert INVALID_PENALTY <= partial_score < 2 * INVALID_PENALTY
        assert evaluate_fitness(far_away, circle_target) < partial_score

    def test_five_bar_resolution(self):
        assert scoring_resolution(MechanismConfig(mech_type='5bar')) == 120
        assert scoring_resolution(MechanismConfig(mech_type='4bar')) == 60

    def test_empty_target_raises(self):
        with pytest.raises(ValueError):
            evaluate_fitness(MechanismConfig(), TargetPath(positions=[]))
