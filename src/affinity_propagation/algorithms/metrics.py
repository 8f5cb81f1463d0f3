"""
Clustering quality scores.

Adjusted Rand index against reference labels and the silhouette score from a
precomputed distance matrix.
"""

from __future__ import annotations

import numpy as np

from .exemplars import UNASSIGNED


def _comb2(x: np.ndarray) -> float:
    return float((x * (x - 1) / 2.0).sum())


def adjusted_rand_index(labels_a: np.ndarray, labels_b: np.ndarray) -> float:
    """
    Compute Adjusted Rand Index between two clusterings.

    Returns 1.0 for identical partitions (up to relabeling), ~0.0 for random
    agreement.

    Raises:
        ValueError: If the label arrays differ in length
    """
    labels_a = np.asarray(labels_a)
    labels_b = np.asarray(labels_b)
    if labels_a.shape != labels_b.shape:
        raise ValueError(
            f"Label arrays differ in shape: {labels_a.shape} vs {labels_b.shape}"
        )
    n = labels_a.size
    if n < 2:
        return 1.0

    _, a = np.unique(labels_a, return_inverse=True)
    _, b = np.unique(labels_b, return_inverse=True)
    contingency = np.zeros((a.max() + 1, b.max() + 1), dtype=np.int64)
    np.add.at(contingency, (a.reshape(-1), b.reshape(-1)), 1)

    sum_comb = _comb2(contingency)
    sum_comb_a = _comb2(contingency.sum(axis=1))
    sum_comb_b = _comb2(contingency.sum(axis=0))
    comb_n = n * (n - 1) / 2.0

    expected_index = (sum_comb_a * sum_comb_b) / comb_n
    max_index = 0.5 * (sum_comb_a + sum_comb_b)
    denom = max_index - expected_index
    if denom == 0:
        return 1.0
    return float((sum_comb - expected_index) / denom)


def silhouette_score_precomputed(labels: np.ndarray, dist: np.ndarray) -> float:
    """
    Mean silhouette coefficient from a precomputed distance matrix.

    Points labeled ``UNASSIGNED`` are ignored. Returns 0.0 when fewer than two
    clusters remain. Points alone in their cluster score 0.
    """
    labels = np.asarray(labels)
    keep = labels != UNASSIGNED
    labels = labels[keep]
    dist = np.asarray(dist)[np.ix_(keep, keep)]

    unique = np.unique(labels)
    if unique.size < 2:
        return 0.0

    # Mean distance from every point to every cluster
    member = labels[:, None] == unique[None, :]  # (n, K)
    sizes = member.sum(axis=0)
    totals = dist @ member.astype(np.float64)  # (n, K)

    own = np.searchsorted(unique, labels)
    rows = np.arange(labels.size)
    own_size = sizes[own]

    sil = np.zeros(labels.size, dtype=np.float64)
    multi = own_size > 1
    a = np.zeros(labels.size)
    a[multi] = totals[rows, own][multi] / (own_size[multi] - 1)

    means = totals / sizes[None, :]
    means[rows, own] = np.inf
    b = means.min(axis=1)

    denom = np.maximum(a, b)
    ok = multi & (denom > 0)
    sil[ok] = (b[ok] - a[ok]) / denom[ok]
    return float(np.mean(sil))
