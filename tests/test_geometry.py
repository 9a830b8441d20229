"""
Tests for link/tools.py geometry primitives.

Tests verify that:
- Circle intersection returns both assembly branches
- Unreachable, nested and concentric circles have no solution
- Near-tangent circles still assemble (CIRCLE_EPSILON)
- The array form agrees with the scalar form
"""
from __future__ import annotations

import math

import numpy as np
import pytest

from link.tools import CIRCLE_EPSILON
from link.tools import from_track_frame
from link.tools import get_cart_distance
from link.tools import intersect_circles
from link.tools import intersect_circles_array
from link.tools import polar_point
from link.tools import to_track_frame


class TestIntersectCircles:
    """Tests for intersect_circles."""

    def test_two_solutions(self):
        """Radii 5 and 5, centres 8 apart: the 3-4-5 triangle."""
        p = intersect_circles((0, 0), 5.0, (8, 0), 5.0)
        assert p is not None
        assert p.x == pytest.approx(4.0)
        assert p.y == pytest.approx(-3.0)

    def test_flip_selects_other_branch(self):
        p = intersect_circles((0, 0), 5.0, (8, 0), 5.0, flip=True)
        assert p.x == pytest.approx(4.0)
        assert p.y == pytest.approx(3.0)

    def test_solution_lies_on_both_circles(self):
        p = intersect_circles((1, 2), 7.0, (6, -3), 4.0)
        assert p is not None
        assert get_cart_distance((1, 2), p) == pytest.approx(7.0)
        assert get_cart_distance((6, -3), p) == pytest.approx(4.0)

    def test_too_far_apart(self):
        assert intersect_circles((0, 0), 1.0, (10, 0), 1.0) is None

    def test_nested(self):
        assert intersect_circles((0, 0), 10.0, (1, 0), 2.0) is None

    def test_concentric(self):
        """Same centre never has a single solution, even with equal radii."""
        assert intersect_circles((3, 3), 5.0, (3, 3), 5.0) is None

    def test_near_tangent_within_epsilon(self):
        """Distance slightly above r0 + r1 still assembles."""
        d = 10.0 + CIRCLE_EPSILON / 2
        p = intersect_circles((0, 0), 5.0, (d, 0), 5.0)
        assert p is not None
        assert p.x == pytest.approx(d / 2)
        assert not math.isnan(p.y)

    def test_beyond_epsilon(self):
        assert intersect_circles((0, 0), 5.0, (10.0 + 2 * CIRCLE_EPSILON, 0), 5.0) is None


class TestIntersectCirclesArray:
    """Tests for the vectorized form."""

    def test_matches_scalar(self):
        rng = np.random.default_rng(0)
        c0 = rng.uniform(-50, 50, size=(40, 2))
        c1 = rng.uniform(-50, 50, size=(40, 2))
        points, valid = intersect_circles_array(c0, 30.0, c1, 25.0)

        for i in range(40):
            p = intersect_circles(c0[i], 30.0, c1[i], 25.0)
            assert valid[i] == (p is not None)
            if p is not None:
                assert points[i, 0] == pytest.approx(p.x)
                assert points[i, 1] == pytest.approx(p.y)

    def test_invalid_rows_are_nan(self):
        c0 = np.array([[0.0, 0.0], [0.0, 0.0]])
        c1 = np.array([[8.0, 0.0], [100.0, 0.0]])
        points, valid = intersect_circles_array(c0, 5.0, c1, 5.0)
        assert valid.tolist() == [True, False]
        assert np.all(np.isnan(points[1]))

    def test_broadcasts_single_centre(self):
        c0 = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])
        points, valid = intersect_circles_array(c0, 5.0, (8.0, 0.0), 5.0)
        assert points.shape == (3, 2)
        assert np.all(valid)


class TestFrames:
    """Tests for polar_point and the track frame transforms."""

    def test_polar_point(self):
        p = polar_point((1.0, 1.0), 2.0, math.pi / 2)
        assert p.x == pytest.approx(1.0)
        assert p.y == pytest.approx(3.0)

    def test_track_frame_round_trip(self):
        pts = np.array([[10.0, 5.0], [-3.0, 7.5], [0.0, 0.0]])
        local = to_track_frame(pts, (2.0, -1.0), 0.7)
        back = from_track_frame(local, (2.0, -1.0), 0.7)
        np.testing.assert_allclose(back, pts, atol=1e-12)

    def test_track_frame_axis(self):
        """A point along the rotated axis has local y == 0."""
        angle = math.radians(30)
        pt = np.array([[math.cos(angle) * 10, math.sin(angle) * 10]])
        local = to_track_frame(pt, (0.0, 0.0), angle)
        assert local[0, 0] == pytest.approx(10.0)
        assert local[0, 1] == pytest.approx(0.0, abs=1e-12)
