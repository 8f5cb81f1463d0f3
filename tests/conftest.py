"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import numpy as np
import pytest

from affinity_propagation.config import AffinityPropagationConfig


@pytest.fixture
def two_pair_similarity():
    """
    Similarity matrix for two tight pairs, {0, 1} and {2, 3}.

    Point 1 prefers 0 more strongly than 0 prefers 1, so 0 is the natural
    exemplar of the first pair; the second pair mirrors the first. Cross-pair
    similarity is low. The diagonal is left at 0 and replaced by the median
    preference (-20) during fitting.

    The pairs are deliberately asymmetric (-4 vs -1). With an exactly
    symmetric pair and noise disabled, both members stay tied and the
    messages oscillate without converging.
    """
    return np.array(
        [
            [0.0, -4.0, -20.0, -20.0],
            [-1.0, 0.0, -20.0, -20.0],
            [-20.0, -20.0, 0.0, -4.0],
            [-20.0, -20.0, -1.0, 0.0],
        ]
    )


@pytest.fixture
def two_pair_data():
    """Feature rows paired with ``two_pair_similarity`` (used for centroids)."""
    return np.array([[0.0, 0.0], [0.5, 0.0], [10.0, 10.0], [10.5, 10.0]])


@pytest.fixture
def noiseless_config():
    """Configuration without tie-breaking noise, for deterministic runs."""
    return AffinityPropagationConfig(add_noise=False, random_state=0)


@pytest.fixture
def blobs():
    """Three well-separated 2-D blobs of 8 points each, with true labels."""
    rng = np.random.default_rng(42)
    centers = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    X = np.vstack([c + rng.standard_normal((8, 2)) * 0.2 for c in centers])
    y = np.repeat(np.arange(3), 8)
    return X, y
