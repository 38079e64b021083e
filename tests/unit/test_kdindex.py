"""
Unit tests for the static k-d tree
"""

import pytest
import numpy as np
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from geocache.kdindex import StaticKDIndex


def brute_nearest_k(points, q, k):
    d2 = ((points - q) ** 2).sum(axis=1)
    order = np.lexsort((np.arange(len(points)), d2))
    return [(int(i), float(d2[i])) for i in order[:k]]


class TestStaticKDIndex:
    """Test cases for StaticKDIndex"""

    @pytest.mark.parametrize("node_size", [1, 4, 64])
    def test_nearest_matches_brute_force(self, node_size):
        """Nearest neighbour agrees with a linear scan for random queries"""
        rng = np.random.default_rng(7)
        pts = rng.uniform(-1, 1, size=(500, 3))
        idx = StaticKDIndex(pts, node_size=node_size)

        for q in rng.uniform(-1.2, 1.2, size=(50, 3)):
            row, d2 = idx.nearest(q)
            exp_row, exp_d2 = brute_nearest_k(pts, q, 1)[0]
            assert row == exp_row
            assert d2 == pytest.approx(exp_d2)

    def test_nearest_k_sorted_and_exact(self):
        """k nearest come back closest first and equal a linear scan"""
        rng = np.random.default_rng(11)
        pts = rng.normal(size=(300, 2))
        idx = StaticKDIndex(pts, node_size=8)
        q = np.array([0.1, -0.2])

        got = idx.nearest_k(q, 10)
        assert [r for r, _ in got] == [r for r, _ in brute_nearest_k(pts, q, 10)]
        dists = [d for _, d in got]
        assert dists == sorted(dists)

    def test_ties_resolve_to_lowest_row(self):
        """Duplicate points resolve to the lowest original index"""
        pts = np.array([[5.0, 5.0], [1.0, 1.0], [0.0, 0.0], [1.0, 1.0], [1.0, 1.0]])
        idx = StaticKDIndex(pts, node_size=1)
        assert idx.nearest([1.0, 1.0]) == (1, 0.0)
        assert [r for r, _ in idx.nearest_k([1.0, 1.0], 3)] == [1, 3, 4]

    def test_exact_point_hit(self):
        """Querying an indexed point returns it at distance zero"""
        pts = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        idx = StaticKDIndex(pts)
        assert idx.nearest([0.0, 1.0, 0.0]) == (2, 0.0)

    def test_empty_index(self):
        """Empty index answers (-1, inf) and no neighbours"""
        idx = StaticKDIndex(np.empty((0, 3)))
        row, d2 = idx.nearest([0.0, 0.0, 0.0])
        assert row == -1
        assert d2 == float("inf")
        assert idx.nearest_k([0.0, 0.0, 0.0], 5) == []
        assert len(idx) == 0

    def test_k_larger_than_size(self):
        """Asking for more neighbours than points returns all of them"""
        pts = np.array([[0.0, 0.0], [3.0, 0.0], [1.0, 0.0]])
        idx = StaticKDIndex(pts)
        assert [r for r, _ in idx.nearest_k([0.0, 0.0], 10)] == [0, 2, 1]

    def test_deterministic_and_input_untouched(self):
        """Repeated queries agree and the caller's array is not reordered"""
        rng = np.random.default_rng(3)
        pts = rng.uniform(size=(200, 3))
        before = pts.copy()
        idx = StaticKDIndex(pts, node_size=4)
        q = np.array([0.5, 0.5, 0.5])
        assert idx.nearest(q) == idx.nearest(q)
        np.testing.assert_array_equal(pts, before)

    def test_invalid_shapes(self):
        """Non-2D input and a zero node size are rejected"""
        with pytest.raises(ValueError):
            StaticKDIndex(np.zeros((2, 2, 2)))
        with pytest.raises(ValueError):
            StaticKDIndex(np.zeros((4, 2)), node_size=0)
