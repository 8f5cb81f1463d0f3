"""
Similarity preparation for affinity propagation.

Writes the preference onto the diagonal of the similarity matrix and,
optionally, adds a vanishing Gaussian perturbation so that exact ties in
per-row maxima cannot make the message passing oscillate.
"""

from __future__ import annotations

import time
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..utils.logging_config import get_logger
from .parallel import multiply

logger = get_logger(__name__)

Array2D = np.ndarray

EPS = np.finfo(np.float64).eps
TINY = np.finfo(np.float64).tiny


@dataclass
class PreparedSimilarity:
    """Similarity matrix ready for message passing."""

    matrix: Array2D  # Preference on the diagonal, noise added if enabled
    pristine: Optional[Array2D]  # Noise-free matrix, None when not kept
    preference: float
    noise_added: bool = False


def check_similarity(S: Array2D) -> Array2D:
    """
    Validate a similarity matrix and return it as a float64 array.

    Raises:
        ValueError: If the matrix is empty, not square or not finite
    """
    S = np.asarray(S, dtype=np.float64)
    if S.ndim != 2 or S.shape[0] != S.shape[1]:
        raise ValueError(f"Similarity matrix must be square (n, n), got {S.shape}")
    if S.shape[0] == 0:
        raise ValueError("Similarity matrix must contain at least one point")
    if not np.all(np.isfinite(S)):
        raise ValueError("Similarity matrix contains NaN or infinite values")
    return S


def median_preference(S: Array2D) -> float:
    """
    Median of the strictly upper-triangular entries of *S*.

    A single point has no off-diagonal entries; its preference is 0.0.
    """
    n = S.shape[0]
    upper = S[np.triu_indices(n, k=1)]
    if upper.size == 0:
        return 0.0
    return float(np.median(upper))


def gaussian_noise(
    S: Array2D,
    random_state: int,
    *,
    policy: str = "auto",
    max_workers: Optional[int] = None,
    executor: Optional[Executor] = None,
) -> Array2D:
    """
    Build the tie-breaking perturbation for *S*.

    The similarity matrix is scaled by machine epsilon (plus a tiny offset so
    an all-zero matrix still gets perturbed) and multiplied by an n x n
    standard normal matrix drawn from *random_state*.

    Returns:
        Perturbation of the same shape as *S*
    """
    n = S.shape[0]
    rng = np.random.default_rng(random_state)
    tiny_scaled = S * EPS + TINY * 100

    t0 = time.perf_counter()
    noise = rng.standard_normal((n, n))
    logger.info("Gaussian noise matrix computed in %.3fs", time.perf_counter() - t0)

    t0 = time.perf_counter()
    logger.info("Multiplying scaling matrix by noise matrix (%dx%d)", n, n)
    product = multiply(
        tiny_scaled, noise, policy, max_workers=max_workers, executor=executor
    )
    logger.info("Matrix product computed in %.3fs", time.perf_counter() - t0)
    return product


def prepare_similarity(
    S: Array2D,
    *,
    preference: Optional[float] = None,
    add_noise: bool = True,
    random_state: int = 0,
    policy: str = "auto",
    max_workers: Optional[int] = None,
    executor: Optional[Executor] = None,
    keep_pristine: bool = True,
) -> PreparedSimilarity:
    """
    Prepare a similarity matrix for message passing.

    Args:
        S: Square similarity matrix (higher = more similar). Not modified.
        preference: Diagonal value; defaults to the median off-diagonal
            similarity.
        add_noise: Whether to add the tie-breaking perturbation.
        random_state: Seed for the Gaussian noise.
        policy: Execution policy for the noise matrix multiply.
        max_workers: Pool size for a parallel multiply.
        executor: Existing executor for a parallel multiply.
        keep_pristine: Keep a noise-free copy next to the noisy matrix. When
            False the noise is added in place and ``pristine`` is None.

    Returns:
        PreparedSimilarity holding the matrix to iterate on and, if kept, a
        noise-free copy

    Raises:
        ValueError: If *S* is not a finite square matrix
    """
    matrix = check_similarity(S).copy()

    if preference is None:
        t0 = time.perf_counter()
        preference = median_preference(matrix)
        logger.info(
            "Computed preference (%s) in %.3fs", preference, time.perf_counter() - t0
        )
    np.fill_diagonal(matrix, preference)

    if not add_noise:
        return PreparedSimilarity(
            matrix=matrix, pristine=matrix, preference=float(preference)
        )

    noise = gaussian_noise(
        matrix,
        random_state,
        policy=policy,
        max_workers=max_workers,
        executor=executor,
    )
    pristine = matrix.copy() if keep_pristine else None
    matrix += noise
    return PreparedSimilarity(
        matrix=matrix,
        pristine=pristine,
        preference=float(preference),
        noise_added=True,
    )
