"""
Mean squared reconstruction error of U·diag(D)·Vᵀ against A.

The reconstruction is built one column block at a time and each block's
squared error is reduced independently, so the full product is never
materialized and blocks can run on a thread pool.
"""

import numpy as np
from typing import Optional

from ..exceptions import ConfigurationError
from ..matrix.backends import MatrixBackend
from ..matrix.mask import MaskMatrix
from ..parallel import map_blocks


def _residual_block(backend: MatrixBackend, ud: np.ndarray, v: np.ndarray,
                    start: int, stop: int):
    actual = backend.column_block(start, stop)
    return ud @ v[start:stop].T - actual, actual


def total_squared_loss(backend: MatrixBackend, u: np.ndarray, d: np.ndarray, v: np.ndarray,
                       mask_zeros: bool = False, mask: Optional[MaskMatrix] = None,
                       threads: int = 1) -> float:
    """
    Sum of squared reconstruction errors over the applicable entries.

    With *mask_zeros* only entries where A is nonzero count; with *mask* the
    masked entries are left out. Otherwise every entry counts.
    """
    ud = u * d

    def block_loss(start, stop):
        residual, actual = _residual_block(backend, ud, v, start, stop)
        if mask_zeros:
            residual = residual[actual != 0]
        elif mask is not None:
            residual[mask.block(start, stop)] = 0.0
        return float(np.sum(residual ** 2))

    return sum(map_blocks(block_loss, backend.n_cols, threads, schedule='dynamic'))


def masked_squared_loss(backend: MatrixBackend, u: np.ndarray, d: np.ndarray, v: np.ndarray,
                        mask: MaskMatrix, threads: int = 1) -> float:
    """Sum of squared reconstruction errors over masked entries only."""
    ud = u * d

    def block_loss(start, stop):
        residual, _ = _residual_block(backend, ud, v, start, stop)
        return float(np.sum(residual[mask.block(start, stop)] ** 2))

    return sum(map_blocks(block_loss, backend.n_cols, threads, schedule='dynamic'))


def n_applicable(backend: MatrixBackend, mask_zeros: bool = False,
                 mask: Optional[MaskMatrix] = None) -> int:
    """Number of entries the ordinary loss is averaged over."""
    n_total = backend.n_rows * backend.n_cols
    if mask is not None:
        return n_total - mask.n_masked
    if mask_zeros:
        return backend.n_nonzero()
    return n_total


def mse(backend: MatrixBackend, u: np.ndarray, d: np.ndarray, v: np.ndarray,
        mask_zeros: bool = False, mask: Optional[MaskMatrix] = None,
        threads: int = 1) -> float:
    """
    Mean squared error of the model over the applicable entries of A.

    Parameters
    ----------
    backend : MatrixBackend
        Input matrix A.
    u, d, v : np.ndarray
        Factors; the reconstruction is ``u @ diag(d) @ v.T``.
    mask_zeros : bool
        Only score entries where A is nonzero.
    mask : MaskMatrix, optional
        Entries to leave out of the score.
    threads : int
        Thread count for the per-column accumulation.

    Returns
    -------
    float
        MSE, or NaN when no entry is applicable.
    """
    if mask_zeros and mask is not None:
        raise ConfigurationError("mask_zeros and a masking matrix cannot both be active")

    n = n_applicable(backend, mask_zeros, mask)
    if n == 0:
        return np.nan
    return total_squared_loss(backend, u, d, v, mask_zeros, mask, threads) / n


def mse_masked(backend: MatrixBackend, u: np.ndarray, d: np.ndarray, v: np.ndarray,
               mask: Optional[MaskMatrix], threads: int = 1) -> float:
    """
    Mean squared error over the masked entries only.

    Masked entries that are implicit zeros in a sparse A are scored against 0.
    """
    if mask is None:
        raise ConfigurationError("'mse_masked' can only be run when a masking matrix has been specified")
    if mask.n_masked == 0:
        return np.nan
    return masked_squared_loss(backend, u, d, v, mask, threads) / mask.n_masked
