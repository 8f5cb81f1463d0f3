"""
Sliding-window convergence test for affinity propagation.

Each iteration records which points currently select themselves as
exemplars. Once the window is full, the run is stable when no point changed
state inside the window.
"""

from __future__ import annotations

import numpy as np


class ConvergenceTracker:
    """Circular history of exemplar masks, one column per iteration."""

    def __init__(self, n_samples: int, window: int) -> None:
        if n_samples <= 0:
            raise ValueError(f"n_samples must be > 0, got {n_samples}")
        if window <= 0:
            raise ValueError(f"window must be > 0, got {window}")
        self.n_samples = n_samples
        self.window = window
        self._history = np.zeros((n_samples, window), dtype=bool)

    def record(self, iteration: int, mask: np.ndarray) -> None:
        """Store *mask* in column ``iteration % window``."""
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != (self.n_samples,):
            raise ValueError(
                f"mask must have shape ({self.n_samples},), got {mask.shape}"
            )
        self._history[:, iteration % self.window] = mask

    def is_stable(self) -> bool:
        """True when every point was always or never an exemplar in the window."""
        counts = self._history.sum(axis=1)
        return bool(np.all((counts == 0) | (counts == self.window)))

    def has_converged(self, iteration: int, num_active: int) -> bool:
        """
        Decide whether the run can stop after *iteration* (0-based).

        The check only applies once ``iteration >= window``; convergence also
        requires at least one active exemplar.
        """
        if iteration < self.window:
            return False
        return num_active > 0 and self.is_stable()

    @property
    def history(self) -> np.ndarray:
        """Copy of the (n_samples, window) mask history."""
        return self._history.copy()
