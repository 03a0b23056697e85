"""
Mask generation for held-out evaluation (MCAR and MNAR patterns).

Masks are returned as sparse CSC boolean matrices, ready for
``SVD.mask_matrix``.
"""

import numpy as np
import scipy.sparse as sp
from typing import Tuple


def create_mcar_mask(shape: Tuple[int, int], mask_rate: float, seed: int = None) -> sp.csc_matrix:
    """
    Mask entries Completely At Random.

    Parameters
    ----------
    shape : tuple
        (rows, cols) of the matrix to mask
    mask_rate : float
        Proportion of entries to mask (0 to 1)
    seed : int, optional
        Random seed

    Returns
    -------
    mask : sp.csc_matrix
        Boolean mask (True = masked)
    """
    if seed is not None:
        np.random.seed(seed)

    n_rows, n_cols = shape
    mask = np.random.rand(n_rows, n_cols) < mask_rate
    return sp.csc_matrix(mask)


def create_mnar_mask(X, mask_rate: float, seed: int = None,
                     threshold_quantile: float = 0.7) -> sp.csc_matrix:
    """
    Mask entries Not At Random: larger values are more likely to be masked.

    Parameters
    ----------
    X : np.ndarray or scipy.sparse matrix
        Complete data
    mask_rate : float
        Target proportion of masked entries
    seed : int, optional
        Random seed
    threshold_quantile : float
        Quantile per column above which entries are favoured for masking

    Returns
    -------
    mask : sp.csc_matrix
        Boolean mask (True = masked)
    """
    if seed is not None:
        np.random.seed(seed)

    X = X.toarray() if sp.issparse(X) else np.asarray(X, dtype=float)
    n_rows, n_cols = X.shape
    mask = np.zeros((n_rows, n_cols), dtype=bool)

    for col in range(n_cols):
        threshold = np.quantile(X[:, col], threshold_quantile)
        spread = np.std(X[:, col])
        if spread == 0:
            prob = np.full(n_rows, mask_rate)
        else:
            # logistic curve centred on the column threshold
            prob = 1 / (1 + np.exp(-5 * (X[:, col] - threshold) / spread))
            prob = prob * (mask_rate * 2)
        prob = np.clip(prob, 0, 1)

        mask[:, col] = np.random.rand(n_rows) < prob

    # pull the overall rate back within 20% of target
    current_rate = mask.sum() / mask.size
    if current_rate > mask_rate * 1.2:
        masked = np.where(mask)
        n_remove = int((current_rate - mask_rate) * mask.size)
        if n_remove > 0:
            remove = np.random.choice(len(masked[0]), min(n_remove, len(masked[0])), replace=False)
            mask[masked[0][remove], masked[1][remove]] = False
    elif current_rate < mask_rate * 0.8:
        remaining = np.where(~mask)
        n_add = int((mask_rate - current_rate) * mask.size)
        if n_add > 0:
            add = np.random.choice(len(remaining[0]), min(n_add, len(remaining[0])), replace=False)
            mask[remaining[0][add], remaining[1][add]] = True

    return sp.csc_matrix(mask)


def generate_mask(X, mechanism: str, mask_rate: float, seed: int = None, **kwargs) -> sp.csc_matrix:
    """
    Generate a mask with the given mechanism ('MCAR' or 'MNAR').

    Parameters
    ----------
    X : np.ndarray or scipy.sparse matrix
        Complete data
    mechanism : str
        Masking mechanism
    mask_rate : float
        Proportion of entries to mask
    seed : int, optional
        Random seed
    **kwargs : dict
        Additional parameters for specific mechanisms
    """
    mechanism = mechanism.upper()

    if mechanism == 'MCAR':
        return create_mcar_mask(X.shape, mask_rate, seed)
    elif mechanism == 'MNAR':
        return create_mnar_mask(X, mask_rate, seed, **kwargs)
    else:
        raise ValueError(f"Unknown mechanism: {mechanism}. Use 'MCAR' or 'MNAR'.")


def get_mask_statistics(mask) -> dict:
    """Summary counts of a mask."""
    mask = sp.csc_matrix(mask)
    mask.eliminate_zeros()
    per_column = np.diff(mask.indptr)

    stats = {
        'total_masked': int(mask.nnz),
        'mask_rate': mask.nnz / (mask.shape[0] * mask.shape[1]),
        'masked_per_column': per_column,
        'columns_with_masked': int((per_column > 0).sum()),
    }

    return stats
