"""
Test matrices: synthetic low-rank data and loading matrices from disk.
"""

import numpy as np
import pandas as pd
import scipy.sparse as sp
from pathlib import Path


def make_low_rank(n_rows: int, n_cols: int, rank: int, noise: float = 0.0,
                  seed: int = None, density: float = None, sparse: bool = False):
    """
    Build A = W·Hᵀ (+ Gaussian noise) with non-negative uniform factors.

    Parameters
    ----------
    n_rows, n_cols : int
        Shape of A.
    rank : int
        Inner dimension of W·Hᵀ.
    noise : float
        Standard deviation of additive noise.
    seed : int, optional
        Random seed.
    density : float, optional
        If given, keep only this fraction of entries (the rest set to zero).
    sparse : bool
        Return a scipy.sparse CSC matrix instead of an ndarray.
    """
    rng = np.random.RandomState(seed)
    W = rng.rand(n_rows, rank)
    H = rng.rand(n_cols, rank)
    A = W @ H.T
    if noise > 0:
        A = A + noise * rng.randn(n_rows, n_cols)
    if density is not None:
        A[rng.rand(n_rows, n_cols) >= density] = 0.0

    if sparse:
        return sp.csc_matrix(A)
    return A


def make_symmetric(n: int, rank: int, seed: int = None, sparse: bool = False):
    """Build a symmetric positive semi-definite A = W·Wᵀ of shape (n, n)."""
    rng = np.random.RandomState(seed)
    W = rng.rand(n, rank)
    A = W @ W.T
    # BLAS does not promise bitwise symmetry
    A = (A + A.T) / 2
    if sparse:
        return sp.csc_matrix(A)
    return A


def load_matrix(path: str):
    """
    Load a matrix from disk by extension.

    ``.npz`` is read as a scipy.sparse matrix, ``.npy`` as a dense array and
    ``.csv`` through pandas (header row, no index column).
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Matrix file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.npz':
        return sp.load_npz(path).tocsc()
    elif suffix == '.npy':
        return np.load(path)
    elif suffix == '.csv':
        return pd.read_csv(path).values.astype(float)
    else:
        raise ValueError(f"Unsupported matrix format: {suffix}. Use .npz, .npy or .csv.")
