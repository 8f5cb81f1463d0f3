"""
Pairwise distances and similarities between feature rows.

Affinity propagation maximizes similarity, so the default similarity is the
negated pairwise distance.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..config import METRICS

Array2D = np.ndarray


def _as_rows(X: Array2D, name: str) -> Array2D:
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError(f"{name} must be 2-D (n_samples, n_features), got {X.shape}")
    return X


def cross_distances(
    X: Array2D, Y: Optional[Array2D] = None, metric: str = "euclidean"
) -> Array2D:
    """
    Distances between every row of *X* and every row of *Y*.

    Args:
        X: Feature rows of shape (n, d)
        Y: Feature rows of shape (m, d); defaults to *X*
        metric: "euclidean", "sqeuclidean" or "cosine"

    Returns:
        (n, m) distance matrix

    Raises:
        ValueError: If the inputs are not 2-D, their widths differ, or the
            metric is unknown
    """
    if metric not in METRICS:
        raise ValueError(f"metric must be one of {METRICS}, got {metric!r}")
    X = _as_rows(X, "X")
    Y = X if Y is None else _as_rows(Y, "Y")
    if X.shape[1] != Y.shape[1]:
        raise ValueError(
            f"Feature dimensions differ: {X.shape[1]} vs {Y.shape[1]}"
        )

    if metric == "cosine":
        X_norm = X / np.maximum(np.linalg.norm(X, axis=1, keepdims=True), 1e-12)
        Y_norm = Y / np.maximum(np.linalg.norm(Y, axis=1, keepdims=True), 1e-12)
        return np.clip(1.0 - (X_norm @ Y_norm.T), 0.0, 2.0)

    # ||x - y||² = ||x||² + ||y||² - 2·x·y
    X_sq = np.sum(X ** 2, axis=1)
    Y_sq = np.sum(Y ** 2, axis=1)
    dist = X_sq[:, None] + Y_sq[None, :] - 2.0 * (X @ Y.T)
    np.maximum(dist, 0.0, out=dist)
    if metric == "euclidean":
        np.sqrt(dist, out=dist)
    return dist


def pairwise_distances(X: Array2D, metric: str = "euclidean") -> Array2D:
    """Symmetric (n, n) distance matrix of the rows of *X*, zero diagonal."""
    dist = cross_distances(X, None, metric)
    np.fill_diagonal(dist, 0.0)
    return dist


def pairwise_similarity(X: Array2D, metric: str = "euclidean") -> Array2D:
    """Negated pairwise distances of the rows of *X* (higher = more similar)."""
    return -pairwise_distances(X, metric)
