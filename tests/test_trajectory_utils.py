"""
Tests for trajectory_utils.py target path helpers.
"""
from __future__ import annotations

import math

import numpy as np
import pytest

from linkage_tools.optimization_types import TargetPath
from linkage_tools.trajectory_utils import analyze_curve
from linkage_tools.trajectory_utils import circle_path
from linkage_tools.trajectory_utils import get_bounds
from linkage_tools.trajectory_utils import thin_drawn_path


class TestGetBounds:
    """Tests for get_bounds."""

    def test_rectangle(self):
        bounds = get_bounds([(0, 0), (40, 10), (10, -10)])
        assert bounds.w == 40.0
        assert bounds.h == 20.0
        assert bounds.cx == 20.0
        assert bounds.cy == 0.0
        assert bounds.size == 40.0

    def test_single_point(self):
        bounds = get_bounds([(3, 4)])
        assert bounds == (0.0, 0.0, 3.0, 4.0)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            get_bounds([])


class TestThinDrawnPath:
    """Tests for thin_drawn_path."""

    def test_minimum_spacing(self):
        thinned = thin_drawn_path([(0, 0), (1, 0), (6, 0), (8, 0), (12, 0)], min_spacing=5.0)
        assert thinned == [(0.0, 0.0), (6.0, 0.0), (12.0, 0.0)]

    def test_spacing_is_strict(self):
        """A point exactly min_spacing away is dropped."""
        thinned = thin_drawn_path([(0, 0), (5, 0), (10.5, 0)], min_spacing=5.0)
        assert thinned == [(0.0, 0.0), (10.5, 0.0)]

    def test_consecutive_kept_points_are_spaced(self):
        rng = np.random.default_rng(11)
        gesture = np.cumsum(rng.normal(size=(300, 2)) * 2, axis=0)
        thinned = thin_drawn_path(gesture, min_spacing=5.0)
        assert thinned[0] == (float(gesture[0, 0]), float(gesture[0, 1]))
        for a, b in zip(thinned, thinned[1:]):
            assert math.hypot(b[0] - a[0], b[1] - a[1]) > 5.0

    def test_empty(self):
        assert thin_drawn_path([]) == []

    def test_negative_spacing_raises(self):
        with pytest.raises(ValueError):
            thin_drawn_path([(0, 0)], min_spacing=-1.0)


class TestCirclePath:
    """Tests for circle_path."""

    def test_radius_and_count(self):
        pts = np.array(circle_path(50.0, 24, center=(10.0, -5.0)))
        assert pts.shape == (24, 2)
        radii = np.hypot(pts[:, 0] - 10.0, pts[:, 1] + 5.0)
        np.testing.assert_allclose(radii, 50.0)

    def test_starts_at_angle_zero(self):
        assert circle_path(100.0, 4)[0] == pytest.approx((100.0, 0.0))


class TestAnalyzeCurve:
    """Tests for analyze_curve."""

    def test_square(self):
        stats = analyze_curve([(0, 0), (10, 0), (10, 10), (0, 10), (0, 0)])
        assert stats['n_points'] == 5
        assert stats['total_path_length'] == pytest.approx(40.0)
        assert stats['is_closed'] is True
        assert stats['bounding_box']['width'] == 10.0
        assert stats['avg_segment_length'] == pytest.approx(10.0)

    def test_open_line(self):
        stats = analyze_curve([(0, 0), (10, 0), (20, 0)])
        assert stats['is_closed'] is False
        assert stats['closure_gap'] == pytest.approx(20.0)


class TestTargetPath:
    """Tests for TargetPath."""

    def test_from_array_caches(self):
        arr = np.array([[0.0, 1.0], [2.0, 3.0]])
        target = TargetPath.from_array(arr)
        assert len(target) == 2
        assert target.positions == [(0.0, 1.0), (2.0, 3.0)]
        assert target.positions_array is target.positions_array

    def test_lists_become_tuples(self):
        target = TargetPath(positions=[[1, 2], [3, 4]])
        assert target.positions[0] == (1.0, 2.0)
        assert target.to_dict()['n_points'] == 2
