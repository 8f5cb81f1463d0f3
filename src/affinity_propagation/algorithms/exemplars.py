"""
Exemplar extraction and labeling.

Turns the final availability and responsibility matrices into a refined
exemplar set and dense cluster labels.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

Array2D = np.ndarray

UNASSIGNED = -1


@dataclass
class ExemplarAssignment:
    """Labels and exemplars produced from converged messages."""

    labels: np.ndarray  # (n,) dense ids in [0, K), or UNASSIGNED when K == 0
    exemplar_indices: np.ndarray  # (K,) point index of each cluster's exemplar

    @property
    def n_clusters(self) -> int:
        return int(self.exemplar_indices.size)


def find_exemplars(A: Array2D, R: Array2D) -> np.ndarray:
    """Indices ``i`` with ``A[i, i] + R[i, i] > 0``, ascending."""
    return np.flatnonzero((np.diagonal(A) + np.diagonal(R)) > 0)


def assign_to_exemplars(S: Array2D, exemplars: np.ndarray) -> np.ndarray:
    """
    Assign each point to the exemplar it is most similar to.

    Returns:
        (n,) positions into *exemplars*; ties go to the lowest position.
        Every exemplar is assigned to itself.
    """
    c = np.argmax(S[:, exemplars], axis=1)
    c[exemplars] = np.arange(exemplars.size)
    return c


def refine_exemplars(S: Array2D, c: np.ndarray, exemplars: np.ndarray) -> np.ndarray:
    """
    Re-pick each cluster's exemplar as the member with the largest total
    similarity to the other members of its cluster.
    """
    refined = exemplars.copy()
    for k in range(exemplars.size):
        members = np.flatnonzero(c == k)
        within = S[np.ix_(members, members)]
        refined[k] = members[np.argmax(within.sum(axis=0))]
    return refined


def relabel(raw_labels: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Map exemplar point indices to dense ids in order of first appearance.

    Args:
        raw_labels: (n,) exemplar point index per point

    Returns:
        Tuple of:
        - labels: (n,) dense ids in [0, K)
        - exemplar_indices: (K,) exemplar point index per id
    """
    uniq, first_seen, inverse = np.unique(
        raw_labels, return_index=True, return_inverse=True
    )
    order = np.argsort(first_seen, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(order.size)
    return rank[inverse.reshape(-1)], uniq[order]


def extract_assignment(S: Array2D, A: Array2D, R: Array2D) -> ExemplarAssignment:
    """
    Build the final clustering from the message matrices.

    Steps: pick points with positive self-evidence, assign every point to its
    most similar exemplar, refine each cluster's exemplar, reassign against
    the refined set, then relabel densely.

    Args:
        S: Similarity matrix used for labeling, shape (n, n)
        A: Final availability matrix
        R: Final responsibility matrix

    Returns:
        ExemplarAssignment; when no exemplar exists every label is UNASSIGNED
    """
    n = S.shape[0]
    exemplars = find_exemplars(A, R)
    if exemplars.size == 0:
        return ExemplarAssignment(
            labels=np.full(n, UNASSIGNED, dtype=int),
            exemplar_indices=np.empty(0, dtype=int),
        )

    c = assign_to_exemplars(S, exemplars)
    refined = refine_exemplars(S, c, exemplars)
    c = assign_to_exemplars(S, refined)
    labels, exemplar_indices = relabel(refined[c])
    return ExemplarAssignment(
        labels=labels.astype(int), exemplar_indices=exemplar_indices.astype(int)
    )
