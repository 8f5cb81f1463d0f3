"""
Tests for clustering quality scores.
"""

import numpy as np
import pytest

from affinity_propagation.algorithms.metrics import (
    adjusted_rand_index,
    silhouette_score_precomputed,
)


# ------------------------------------------------------------------
# Adjusted Rand index
# ------------------------------------------------------------------


def test_ari_identical_up_to_relabeling():
    """Test ARI of identical partitions."""
    assert adjusted_rand_index([0, 0, 1, 1, 2], [5, 5, 3, 3, 9]) == pytest.approx(1.0)


def test_ari_known_value():
    """Test ARI against a known value."""
    # Standard textbook example
    a = [0, 0, 0, 1, 1, 1]
    b = [0, 0, 1, 1, 2, 2]
    assert adjusted_rand_index(a, b) == pytest.approx(0.24242424, abs=1e-6)


def test_ari_is_symmetric():
    """Test that ARI is symmetric."""
    rng = np.random.default_rng(0)
    a = rng.integers(0, 4, size=50)
    b = rng.integers(0, 3, size=50)
    assert adjusted_rand_index(a, b) == pytest.approx(adjusted_rand_index(b, a))


def test_ari_degenerate_inputs():
    """Test ARI on trivial inputs."""
    assert adjusted_rand_index([3], [1]) == 1.0
    assert adjusted_rand_index([0, 0, 0], [1, 1, 1]) == 1.0


def test_ari_shape_mismatch():
    """Test ARI with mismatched lengths."""
    with pytest.raises(ValueError, match="differ in shape"):
        adjusted_rand_index([0, 1], [0, 1, 1])


# ------------------------------------------------------------------
# Silhouette
# ------------------------------------------------------------------


def _abs_dist(values):
    x = np.asarray(values, dtype=float)
    return np.abs(x[:, None] - x[None, :])


def test_silhouette_known_value():
    """Test silhouette against a hand computation."""
    dist = _abs_dist([0.0, 1.0, 10.0, 11.0])
    labels = np.array([0, 0, 1, 1])
    # Point 0: a = 1, b = mean(10, 11) = 10.5
    expected = np.mean([1 - 1 / 10.5, 1 - 1 / 9.5, 1 - 1 / 9.5, 1 - 1 / 10.5])
    assert silhouette_score_precomputed(labels, dist) == pytest.approx(expected)


def test_silhouette_singleton_scores_zero():
    """Test that singletons score zero."""
    dist = _abs_dist([0.0, 1.0, 10.0])
    labels = np.array([0, 0, 1])
    expected = np.mean([1 - 1 / 10.0, 1 - 1 / 9.0, 0.0])
    assert silhouette_score_precomputed(labels, dist) == pytest.approx(expected)


def test_silhouette_single_cluster_is_zero():
    """Test silhouette with one cluster."""
    dist = _abs_dist([0.0, 1.0, 2.0])
    assert silhouette_score_precomputed(np.zeros(3, dtype=int), dist) == 0.0


def test_silhouette_ignores_unassigned():
    """Test that unassigned points are ignored."""
    dist = _abs_dist([0.0, 1.0, 10.0, 11.0, 500.0])
    with_noise = silhouette_score_precomputed(np.array([0, 0, 1, 1, -1]), dist)
    without = silhouette_score_precomputed(np.array([0, 0, 1, 1]), dist[:4, :4])
    assert with_noise == pytest.approx(without)
