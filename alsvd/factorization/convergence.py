"""
Convergence measure for ALS iterations.
"""

import numpy as np


def correlation(x: np.ndarray, y: np.ndarray) -> float:
    """
    Pearson correlation coefficient of two vectors.

    Returns NaN when either vector has zero variance.
    """
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    if x.shape != y.shape:
        raise ValueError(f"Vectors must have equal length, got {x.size} and {y.size}")

    xc = x - x.mean()
    yc = y - y.mean()
    denom = np.sqrt(np.dot(xc, xc) * np.dot(yc, yc))
    if denom == 0:
        return np.nan
    return float(np.dot(xc, yc) / denom)
