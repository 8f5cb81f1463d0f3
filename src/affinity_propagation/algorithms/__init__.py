"""
Algorithm core - affinity propagation and its building blocks.

Each stage of the algorithm lives in its own module so it can be reused and
tested on its own: similarity preparation, message passing, the convergence
window, and exemplar extraction.
"""

from .affinity_propagation import (
    AffinityPropagation,
    AffinityPropagationResult,
    IterationRecord,
)
from .convergence import ConvergenceTracker
from .exemplars import UNASSIGNED, ExemplarAssignment, extract_assignment
from .messages import MessageState, step
from .metrics import adjusted_rand_index, silhouette_score_precomputed
from .parallel import multiply
from .preparation import PreparedSimilarity, median_preference, prepare_similarity
from .similarity import cross_distances, pairwise_distances, pairwise_similarity

__all__ = [
    # Estimator
    "AffinityPropagation",
    "AffinityPropagationResult",
    "IterationRecord",
    # Stages
    "PreparedSimilarity",
    "median_preference",
    "prepare_similarity",
    "MessageState",
    "step",
    "ConvergenceTracker",
    "ExemplarAssignment",
    "extract_assignment",
    "UNASSIGNED",
    # Collaborators
    "multiply",
    "cross_distances",
    "pairwise_distances",
    "pairwise_similarity",
    # Scores
    "adjusted_rand_index",
    "silhouette_score_precomputed",
]
