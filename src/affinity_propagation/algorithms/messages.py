"""
Responsibility / availability message passing.

One call to ``step`` performs a full damped update of both message matrices
and reports which points currently select themselves as exemplars.

Buffer ownership per iteration:
- ``responsibility`` and ``availability`` hold the messages of the previous
  iteration on entry and of the current iteration on exit.
- ``scratch`` is owned by whichever update is running and holds no state
  between updates.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

Array2D = np.ndarray

# Stand-in second-best value for rows with a single candidate
SIGNED_MIN = -np.finfo(np.float64).max


@dataclass
class MessageState:
    """Message matrices carried across iterations."""

    responsibility: Array2D
    availability: Array2D
    scratch: Array2D

    @classmethod
    def zeros(cls, n: int) -> "MessageState":
        """Zero-initialized state for *n* points."""
        return cls(
            responsibility=np.zeros((n, n)),
            availability=np.zeros((n, n)),
            scratch=np.empty((n, n)),
        )

    @property
    def n_samples(self) -> int:
        return self.responsibility.shape[0]


def update_responsibility(S: Array2D, state: MessageState, damping: float) -> None:
    """
    Damped responsibility update, in place on ``state.responsibility``.

    ``r(i, k) = s(i, k) - max_{k' != k} (a(i, k') + s(i, k'))``: every column
    is measured against the row maximum of ``A + S`` except the row's own
    argmax, which is measured against the second-highest value.
    """
    n = state.n_samples
    rows = np.arange(n)
    tmp = state.scratch

    np.add(state.availability, S, out=tmp)
    best = np.argmax(tmp, axis=1)  # First index wins ties
    best_val = tmp[rows, best].copy()
    tmp[rows, best] = -np.inf
    second_val = np.maximum(tmp.max(axis=1), SIGNED_MIN)

    with np.errstate(over="ignore"):
        np.subtract(S, best_val[:, None], out=tmp)
        tmp[rows, best] = S[rows, best] - second_val
        tmp *= 1.0 - damping
        state.responsibility *= damping
        state.responsibility += tmp


def update_availability(state: MessageState, damping: float) -> None:
    """
    Damped availability update, in place on ``state.availability``.

    Off-diagonal: ``a(i, k) = min(0, r(k, k) + sum_{i' not in {i, k}} max(0, r(i', k)))``.
    Diagonal: ``a(k, k) = sum_{i' != k} max(0, r(i', k))``.
    """
    R = state.responsibility
    tmp = state.scratch

    np.maximum(R, 0.0, out=tmp)
    np.fill_diagonal(tmp, 0.0)
    support = tmp.sum(axis=0)  # Positive responsibility from other points
    column_totals = support + np.diagonal(R)

    # Negated availability: own clamped contribution minus the column total
    tmp -= column_totals[None, :]
    np.maximum(tmp, 0.0, out=tmp)
    np.fill_diagonal(tmp, -support)

    tmp *= 1.0 - damping
    state.availability *= damping
    state.availability -= tmp


def exemplar_mask(state: MessageState) -> np.ndarray:
    """Boolean vector: ``a(i, i) + r(i, i) > 0`` for each point."""
    return (np.diagonal(state.availability) + np.diagonal(state.responsibility)) > 0


def step(S: Array2D, state: MessageState, damping: float) -> np.ndarray:
    """
    Run one message-passing iteration.

    Args:
        S: Prepared similarity matrix of shape (n, n)
        state: Message matrices, updated in place
        damping: Weight kept from the previous messages, in [0.5, 1)

    Returns:
        Boolean exemplar mask of shape (n,)
    """
    update_responsibility(S, state, damping)
    update_availability(state, damping)
    return exemplar_mask(state)
