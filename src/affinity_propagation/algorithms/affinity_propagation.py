"""
Affinity propagation estimator.

Clusters points by exchanging responsibility and availability messages over
a dense similarity matrix until the set of self-selected exemplars stops
changing, then labels every point with its exemplar's cluster.

Example:
    >>> model = AffinityPropagation(AffinityPropagationConfig(damping=0.9))
    >>> model.fit(X)
    >>> model.labels_, model.cluster_centers_indices_
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ..config import AffinityPropagationConfig, config as global_config
from ..exceptions import ModelNotFitError
from ..utils.logging_config import get_logger
from .convergence import ConvergenceTracker
from .exemplars import UNASSIGNED, extract_assignment
from .messages import MessageState, step
from .metrics import adjusted_rand_index, silhouette_score_precomputed
from .preparation import prepare_similarity
from .similarity import cross_distances, pairwise_distances, pairwise_similarity

logger = get_logger(__name__)

Array2D = np.ndarray

UNFIT = "unfit"
FITTING = "fitting"
FIT = "fit"


@dataclass
class IterationRecord:
    """Diagnostics for one message-passing iteration."""

    iteration: int
    num_active: int
    stable: bool
    iteration_seconds: float
    wall_seconds: float


@dataclass
class AffinityPropagationResult:
    """Everything a completed fit produced."""

    labels: np.ndarray
    exemplar_indices: np.ndarray
    centroids: List[np.ndarray]
    availability: Array2D
    responsibility: Array2D
    converged: bool
    n_iter: int
    num_active: int  # Exemplar count from the last iteration's mask
    preference: float
    data: Array2D
    iteration_log: List[IterationRecord] = field(default_factory=list)

    @property
    def n_clusters(self) -> int:
        return int(self.exemplar_indices.size)


class AffinityPropagation:
    """Exemplar-based clustering by affinity propagation.

    The number of clusters is not fixed in advance; it follows from the
    preference (diagonal of the similarity matrix) and the data.

    ``fit`` runs at most once per instance. Concurrent callers wait for the
    in-flight fit and observe the same result; calls after completion return
    immediately.
    """

    def __init__(
        self,
        config: Optional[AffinityPropagationConfig] = None,
        *,
        executor: Optional[Executor] = None,
    ) -> None:
        """
        Args:
            config: Validated model settings. Defaults to
                ``config.get_model_config()`` (environment overrides applied).
            executor: Optional executor for the parallel noise multiply.

        Raises:
            ConfigurationError: If the default settings from the environment
                are invalid
        """
        self.config = config if config is not None else global_config.get_model_config()
        self._executor = executor

        self._lock = threading.Lock()
        self._state = UNFIT
        self._pending: Optional[threading.Event] = None
        self._error: Optional[BaseException] = None
        self._result: Optional[AffinityPropagationResult] = None

        if not self.config.add_noise:
            logger.warning(
                "Not adding Gaussian noise to the similarity matrix can keep "
                "affinity propagation from converging"
            )

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def fit(
        self, data: Array2D, similarity: Optional[Array2D] = None
    ) -> "AffinityPropagation":
        """
        Fit the model.

        Args:
            data: Feature rows of shape (n_samples, n_features), used for
                centroids and prediction.
            similarity: Optional precomputed (n_samples, n_samples) similarity
                matrix (higher = more similar). When omitted, the negated
                pairwise distance under ``config.metric`` is used.

        Returns:
            Self

        Raises:
            ValueError: If the inputs have incompatible shapes or non-finite
                similarities
            ModelNotFitError: If a concurrent fit this call waited on failed
        """
        with self._lock:
            if self._state == FIT:
                return self
            if self._state == FITTING:
                pending = self._pending
                owner = False
            else:
                self._state = FITTING
                self._error = None
                pending = self._pending = threading.Event()
                owner = True

        if not owner:
            pending.wait()
            with self._lock:
                if self._state != FIT:
                    raise ModelNotFitError(
                        "Concurrent fit failed; model is not fit"
                    ) from self._error
            return self

        try:
            result = self._fit(data, similarity)
        except BaseException as e:
            with self._lock:
                self._state = UNFIT
                self._error = e
            raise
        else:
            with self._lock:
                self._result = result
                self._state = FIT
        finally:
            pending.set()
        return self

    def fit_predict(
        self, data: Array2D, similarity: Optional[Array2D] = None
    ) -> np.ndarray:
        """Fit the model and return the labels of *data*."""
        return self.fit(data, similarity).labels_

    def _fit(
        self, data: Array2D, similarity: Optional[Array2D]
    ) -> AffinityPropagationResult:
        cfg = self.config
        X = np.array(data, dtype=np.float64)
        if X.ndim != 2 or X.shape[0] == 0:
            raise ValueError(
                f"data must be 2-D with at least one row, got shape {X.shape}"
            )
        n = X.shape[0]

        try:
            t_start = time.perf_counter()
            if similarity is None:
                S = pairwise_similarity(X, cfg.metric)
                logger.info(
                    "Completed similarity computations in %.3fs",
                    time.perf_counter() - t_start,
                )
            else:
                S = np.asarray(similarity, dtype=np.float64)
                if S.shape != (n, n):
                    raise ValueError(
                        f"similarity must have shape ({n}, {n}) to match data, "
                        f"got {S.shape}"
                    )

            prepared = prepare_similarity(
                S,
                preference=cfg.preference,
                add_noise=cfg.add_noise,
                random_state=cfg.random_state,
                policy=cfg.execution_policy,
                max_workers=cfg.max_workers,
                executor=self._executor,
                keep_pristine=not cfg.retain_noise_for_labeling,
            )
            del S

            state = MessageState.zeros(n)
            tracker = ConvergenceTracker(n, cfg.convergence_iter)
            iteration_log: List[IterationRecord] = []
            converged = False
            num_active = 0
            t_loop = time.perf_counter()

            t = 0
            for t in range(cfg.max_iter):
                t_iter = time.perf_counter()
                mask = step(prepared.matrix, state, cfg.damping)
                tracker.record(t, mask)
                num_active = int(mask.sum())
                converged = tracker.has_converged(t, num_active)

                now = time.perf_counter()
                iteration_log.append(
                    IterationRecord(
                        iteration=t,
                        num_active=num_active,
                        stable=converged,
                        iteration_seconds=now - t_iter,
                        wall_seconds=now - t_start,
                    )
                )
                logger.debug("Iteration %d: %d active exemplars", t, num_active)
                if converged:
                    break
            n_iter = t + 1

            if converged:
                logger.info(
                    "Converged after %d iteration%s in %.3fs",
                    n_iter,
                    "" if n_iter == 1 else "s",
                    time.perf_counter() - t_loop,
                )
            else:
                logger.warning(
                    "Affinity propagation did not converge after %d iterations",
                    n_iter,
                )

            logger.info("Labeling clusters from availability and responsibility matrices")
            labeling_matrix = (
                prepared.matrix if cfg.retain_noise_for_labeling else prepared.pristine
            )
            assignment = extract_assignment(
                labeling_matrix, state.availability, state.responsibility
            )
            preference = prepared.preference
            del prepared, labeling_matrix
        except (MemoryError, RecursionError) as e:
            logger.error(
                "Ran out of resources while fitting affinity propagation (n=%d): %s",
                n,
                e,
            )
            raise

        k = assignment.n_clusters
        for matrix in (state.availability, state.responsibility):
            matrix.setflags(write=False)
        logger.info("%d cluster%s identified", k, "" if k == 1 else "s")
        logger.info("Fit completed in %.3fs", time.perf_counter() - t_start)

        return AffinityPropagationResult(
            labels=assignment.labels,
            exemplar_indices=assignment.exemplar_indices,
            centroids=[X[i].copy() for i in assignment.exemplar_indices],
            availability=state.availability,
            responsibility=state.responsibility,
            converged=converged,
            n_iter=n_iter,
            num_active=num_active,
            preference=preference,
            data=X,
            iteration_log=iteration_log,
        )

    # ------------------------------------------------------------------
    # Fitted state
    # ------------------------------------------------------------------

    @property
    def is_fit(self) -> bool:
        with self._lock:
            return self._state == FIT

    def _fitted(self) -> AffinityPropagationResult:
        with self._lock:
            if self._state != FIT or self._result is None:
                raise ModelNotFitError("Model has not been fit. Call fit() first.")
            return self._result

    @property
    def labels_(self) -> np.ndarray:
        """Cluster id per point in [0, K), or -1 everywhere when K == 0."""
        return self._fitted().labels.copy()

    @property
    def cluster_centers_indices_(self) -> np.ndarray:
        """Point index of each cluster's exemplar, ordered by cluster id."""
        return self._fitted().exemplar_indices.copy()

    @property
    def cluster_centers_(self) -> List[np.ndarray]:
        """Feature row of each cluster's exemplar, ordered by cluster id."""
        return [row.copy() for row in self._fitted().centroids]

    @property
    def n_clusters_(self) -> int:
        return self._fitted().n_clusters

    @property
    def availability_matrix_(self) -> Array2D:
        return self._fitted().availability.copy()

    @property
    def responsibility_matrix_(self) -> Array2D:
        return self._fitted().responsibility.copy()

    @property
    def converged_(self) -> bool:
        return self._fitted().converged

    @property
    def n_iter_(self) -> int:
        """Number of message-passing iterations executed."""
        return self._fitted().n_iter

    @property
    def num_active_(self) -> int:
        """Active exemplar count seen by the final iteration."""
        return self._fitted().num_active

    @property
    def preference_(self) -> float:
        return self._fitted().preference

    @property
    def iteration_log_(self) -> List[IterationRecord]:
        return list(self._fitted().iteration_log)

    # ------------------------------------------------------------------
    # Prediction and scoring
    # ------------------------------------------------------------------

    def predict(self, data: Array2D) -> np.ndarray:
        """
        Assign new feature rows to the nearest exemplar.

        Args:
            data: Feature rows of shape (n, n_features)

        Returns:
            Cluster ids of shape (n,); all -1 when the model found no clusters

        Raises:
            ModelNotFitError: If the model has not been fit
            ValueError: If the feature dimension does not match the fit data
        """
        result = self._fitted()
        X = np.asarray(data, dtype=np.float64)
        if X.ndim != 2 or X.shape[1] != result.data.shape[1]:
            raise ValueError(
                f"data must have shape (n, {result.data.shape[1]}), got {X.shape}"
            )
        if result.n_clusters == 0:
            return np.full(X.shape[0], UNASSIGNED, dtype=int)

        dist = cross_distances(X, np.vstack(result.centroids), self.config.metric)
        return np.argmin(dist, axis=1).astype(int)

    def index_affinity_score(self, labels_true: np.ndarray) -> float:
        """Adjusted Rand index of the fitted labels against *labels_true*."""
        return adjusted_rand_index(labels_true, self._fitted().labels)

    def silhouette_score(self) -> float:
        """Mean silhouette of the fitted labels over the fit data."""
        result = self._fitted()
        dist = pairwise_distances(result.data, self.config.metric)
        return silhouette_score_precomputed(result.labels, dist)

    def __repr__(self) -> str:
        return (
            f"AffinityPropagation(damping={self.config.damping}, "
            f"max_iter={self.config.max_iter}, "
            f"convergence_iter={self.config.convergence_iter})"
        )
