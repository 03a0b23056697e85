"""
Random initialization of factor matrices.
"""

import numpy as np
from typing import List, Optional


def random_matrix(rows: int, cols: int, seed: Optional[int] = 0) -> np.ndarray:
    """Uniform [0, 1) matrix of shape (rows, cols), reproducible for a given seed."""
    rng = np.random.RandomState(seed)
    return rng.rand(rows, cols)


def random_inits(rows: int, k: int, n: int, seed: Optional[int] = 0) -> List[np.ndarray]:
    """
    Build *n* candidate initial U matrices for restart fitting.

    Candidate i is drawn with seed ``seed + i`` so every candidate can be
    regenerated on its own.
    """
    base = 0 if seed is None else seed
    return [random_matrix(rows, k, base + i) for i in range(n)]
