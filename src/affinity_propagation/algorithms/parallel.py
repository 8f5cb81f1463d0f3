"""
Dense matrix multiplication with an explicit execution policy.

``multiply`` splits the left operand into row blocks and computes them on a
thread pool (numpy releases the GIL inside ``matmul``). When the pool refuses
work, the product is recomputed serially; callers never see the rejection.
"""

from __future__ import annotations

import os
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

import numpy as np

from ..config import EXECUTION_POLICIES
from ..exceptions import ParallelExecutionRejected
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

# "auto" runs serially below this many rows
AUTO_PARALLEL_MIN_ROWS = 512


def _check_operands(a: np.ndarray, b: np.ndarray) -> None:
    if a.ndim != 2 or b.ndim != 2:
        raise ValueError(f"Operands must be 2-D, got {a.shape} and {b.shape}")
    if a.shape[1] != b.shape[0]:
        raise ValueError(
            f"Dimension mismatch: cannot multiply {a.shape} by {b.shape}"
        )


def multiply_serial(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Multiply ``a @ b`` on the calling thread."""
    _check_operands(a, b)
    return a @ b


def _row_blocks(n_rows: int, n_blocks: int) -> list[tuple[int, int]]:
    n_blocks = max(1, min(n_blocks, n_rows))
    edges = np.linspace(0, n_rows, n_blocks + 1).astype(int)
    return [(int(lo), int(hi)) for lo, hi in zip(edges[:-1], edges[1:]) if hi > lo]


def _multiply_block(
    a: np.ndarray, b: np.ndarray, out: np.ndarray, lo: int, hi: int
) -> None:
    # Blocks cover disjoint row ranges of ``out``
    np.matmul(a[lo:hi], b, out=out[lo:hi])


def multiply_parallel(
    a: np.ndarray,
    b: np.ndarray,
    *,
    max_workers: Optional[int] = None,
    executor: Optional[Executor] = None,
) -> np.ndarray:
    """
    Multiply ``a @ b`` with row blocks computed on a thread pool.

    Args:
        a: Left operand of shape (n, k)
        b: Right operand of shape (k, m)
        max_workers: Pool size when no executor is given (defaults to CPU count)
        executor: Existing executor to submit blocks to. It is not shut down.

    Returns:
        Product of shape (n, m)

    Raises:
        ValueError: If the operand shapes are incompatible
        ParallelExecutionRejected: If the executor refuses a block
    """
    _check_operands(a, b)
    workers = max_workers or os.cpu_count() or 1
    out = np.empty((a.shape[0], b.shape[1]), dtype=np.result_type(a, b))
    blocks = _row_blocks(a.shape[0], workers)

    owned = executor is None
    pool = ThreadPoolExecutor(max_workers=workers) if owned else executor
    try:
        try:
            futures = [
                pool.submit(_multiply_block, a, b, out, lo, hi) for lo, hi in blocks
            ]
        except RuntimeError as e:
            # Executors raise RuntimeError once shut down or saturated
            raise ParallelExecutionRejected(str(e)) from e
        for future in futures:
            future.result()
    finally:
        if owned:
            pool.shutdown(wait=True)
    return out


def multiply(
    a: np.ndarray,
    b: np.ndarray,
    policy: str = "auto",
    *,
    max_workers: Optional[int] = None,
    executor: Optional[Executor] = None,
) -> np.ndarray:
    """
    Multiply two dense matrices under an execution policy.

    Policies:
    - "serial": always multiply on the calling thread.
    - "parallel": use the thread pool, retrying serially if it rejects work.
    - "auto": use the thread pool only for operands with at least
      ``AUTO_PARALLEL_MIN_ROWS`` rows (or when an executor is supplied),
      with the same serial fallback.

    Args:
        a: Left operand of shape (n, k)
        b: Right operand of shape (k, m)
        policy: Execution policy
        max_workers: Pool size for the parallel path
        executor: Existing executor for the parallel path

    Returns:
        Product of shape (n, m)

    Raises:
        ValueError: If the policy is unknown or the shapes are incompatible
    """
    if policy not in EXECUTION_POLICIES:
        raise ValueError(
            f"policy must be one of {EXECUTION_POLICIES}, got {policy!r}"
        )

    use_parallel = policy == "parallel" or (
        policy == "auto"
        and (executor is not None or a.shape[0] >= AUTO_PARALLEL_MIN_ROWS)
    )
    if not use_parallel:
        return multiply_serial(a, b)

    t0 = time.perf_counter()
    try:
        product = multiply_parallel(a, b, max_workers=max_workers, executor=executor)
    except ParallelExecutionRejected as e:
        logger.warning(
            "Parallel matrix multiply rejected (%s); falling back to serial", e
        )
        return multiply_serial(a, b)
    logger.debug(
        "Parallel matrix multiply %s x %s finished in %.3fs",
        a.shape,
        b.shape,
        time.perf_counter() - t0,
    )
    return product
