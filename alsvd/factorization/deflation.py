"""
Alternating least squares update for a single rank, with deflation against lower ranks.

Rank k is fit while columns 0..k-1 of U and V are held fixed. Each iteration
solves for V[:, k] given U[:, k], then for U[:, k] given V[:, k]; before each
division the projection onto every lower-rank column is subtracted. For k = 0
there is nothing to deflate and the update is the plain rank-1 ALS step.
"""

import logging
import numpy as np
from typing import Dict, Optional, Sequence

from ..config import DIV_OFFSET
from ..matrix.backends import MatrixBackend
from .cancellation import CancellationToken
from .convergence import correlation

logger = logging.getLogger(__name__)


def update_v(backend: MatrixBackend, u: np.ndarray, v: np.ndarray, k: int,
             l1_v: float = 0.0, threads: int = 1,
             div_offset: float = DIV_OFFSET) -> None:
    """Solve V[:, k] given U, deflate against V[:, :k], and scale it to unit norm."""
    u_k = u[:, k]
    a = np.dot(u_k, u_k) + div_offset

    v_k = backend.transpose_product(u_k, threads)
    if l1_v > 0:
        v_k -= l1_v
    if k > 0:
        v_k -= v[:, :k] @ (u[:, :k].T @ u_k)
    v_k /= a

    v_k /= np.linalg.norm(v_k) + div_offset
    v[:, k] = v_k


def update_u(backend: MatrixBackend, u: np.ndarray, v: np.ndarray, k: int,
             l1_u: float = 0.0, threads: int = 1, symmetric: bool = False,
             div_offset: float = DIV_OFFSET) -> float:
    """
    Solve U[:, k] given V, deflate against U[:, :k], and scale it to unit norm.

    Returns
    -------
    float
        Norm of U[:, k] before scaling.
    """
    v_k = v[:, k]
    a = np.dot(v_k, v_k) + div_offset

    u_k = backend.product(v_k, threads, symmetric=symmetric)
    if l1_u > 0:
        u_k -= l1_u
    if k > 0:
        u_k -= u[:, :k] @ (v[:, :k].T @ v_k)
    u_k /= a

    d = float(np.linalg.norm(u_k))
    u[:, k] = u_k / (d + div_offset)
    return d


def fit_rank(backend: MatrixBackend, u: np.ndarray, v: np.ndarray, k: int,
             maxit: int = 100, tol: float = 1e-4,
             L1: Sequence[float] = (0.0, 0.0), threads: int = 1,
             symmetric: bool = False, div_offset: float = DIV_OFFSET,
             cancel_token: Optional[CancellationToken] = None,
             verbose: bool = False) -> Dict:
    """
    Fit column *k* of U and V in place.

    Parameters
    ----------
    backend : MatrixBackend
        Input matrix A.
    u, v : np.ndarray
        Factor matrices (rows x rank, cols x rank). Columns below *k* must
        already be fit.
    k : int
        Zero-based rank index to fit.
    maxit : int
        Iteration budget for this rank.
    tol : float
        The loop stops once the correlation between consecutive U[:, k]
        estimates drops below *tol*.
    L1 : sequence of float
        (U penalty, V penalty); each is applied only when positive.
    threads : int
        Thread count for the products against A (0 = all cores).
    symmetric : bool
        A is exactly symmetric (``backend.is_symmetric()``), so row products
        can reuse column products.
    div_offset : float
        Added to every denominator.
    cancel_token : CancellationToken, optional
        Polled once per iteration; raises FitCancelled when triggered.
    verbose : bool
        Log iteration lines at INFO instead of DEBUG. Non-convergence is
        always logged at WARNING.

    Returns
    -------
    dict
        Record with keys 'rank', 'iter', 'tol', 'converged' and 'tol_history'.
    """
    level = logging.INFO if verbose else logging.DEBUG

    d = 1.0
    tol_ = 1.0
    tol_history = []
    iteration = 0
    while iteration < maxit:
        u_prev = u[:, k].copy()

        update_v(backend, u, v, k, l1_v=L1[1], threads=threads, div_offset=div_offset)
        d = update_u(backend, u, v, k, l1_u=L1[0], threads=threads,
                     symmetric=symmetric, div_offset=div_offset)
        iteration += 1

        tol_ = correlation(u[:, k], u_prev)
        tol_history.append(tol_)
        logger.log(level, "%4d | %8.2e", iteration, tol_)

        if tol_ < tol:
            break
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(rank=k, iteration=iteration)

    # undo the per-iteration unit scaling
    u[:, k] *= d

    converged = bool(tol_ < tol)
    if tol_ > tol and iteration == maxit:
        logger.warning("rank %d: convergence not reached in %d iterations "
                       "(actual tol = %4.2e, target tol = %4.2e)",
                       k, iteration, tol_, tol)

    return {
        'rank': k,
        'iter': iteration,
        'tol': tol_,
        'converged': converged,
        'tol_history': tol_history,
    }
