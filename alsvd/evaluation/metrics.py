"""
Scores for how well U·diag(D)·Vᵀ reproduces the entries of A.
"""

import numpy as np
import scipy.sparse as sp
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score as sklearn_r2
from typing import Dict, Tuple


def _finite_pairs(actual: np.ndarray, estimate: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    keep = np.isfinite(actual) & np.isfinite(estimate)
    return actual[keep], estimate[keep]


def rmse(actual: np.ndarray, estimate: np.ndarray) -> float:
    """
    Root mean squared error between matrix entries and their reconstruction.

    Parameters
    ----------
    actual : np.ndarray
        Entries of A (any shape; compared element-wise)
    estimate : np.ndarray
        Reconstructed entries, same shape as *actual*

    Returns
    -------
    float
        RMSE over the finite pairs, NaN if there are none
    """
    actual, estimate = _finite_pairs(actual, estimate)
    if actual.size == 0:
        return np.nan
    return float(np.sqrt(mean_squared_error(actual, estimate)))


def mae(actual: np.ndarray, estimate: np.ndarray) -> float:
    """Mean absolute error over the finite pairs."""
    actual, estimate = _finite_pairs(actual, estimate)
    if actual.size == 0:
        return np.nan
    return float(mean_absolute_error(actual, estimate))


def relative_error(actual: np.ndarray, estimate: np.ndarray) -> float:
    """
    ‖actual − estimate‖ / ‖actual‖ (Frobenius norm when given whole matrices).

    NaN when there are no finite pairs or *actual* is all zeros.
    """
    actual, estimate = _finite_pairs(actual, estimate)
    scale = np.linalg.norm(actual)
    if actual.size == 0 or scale == 0:
        return np.nan
    return float(np.linalg.norm(actual - estimate) / scale)


def r2_score(actual: np.ndarray, estimate: np.ndarray) -> float:
    """Share of the variance in the entries explained by the reconstruction."""
    actual, estimate = _finite_pairs(actual, estimate)
    if actual.size < 2:
        return np.nan
    return float(sklearn_r2(actual, estimate))


METRICS = {
    'rmse': rmse,
    'mae': mae,
    'relative_error': relative_error,
    'r2': r2_score,
}


def calculate_metrics(actual: np.ndarray, estimate: np.ndarray,
                      metrics: list = None) -> Dict[str, float]:
    """
    Evaluate several metrics on the same entries.

    Parameters
    ----------
    actual, estimate : np.ndarray
        Matrix entries and their reconstruction
    metrics : list, optional
        Names from METRICS (case-insensitive). Default: ['rmse', 'mae']

    Returns
    -------
    dict
        Metric name -> value
    """
    if metrics is None:
        metrics = ['rmse', 'mae']

    results = {}
    for name in metrics:
        name = name.lower()
        if name not in METRICS:
            raise ValueError(f"Unknown metric '{name}'. Use one of {sorted(METRICS)}.")
        results[name] = METRICS[name](actual, estimate)
    return results


def calculate_reconstruction_error(A, model, mask=None, metrics: list = None) -> Dict[str, float]:
    """
    Score a fitted model's reconstruction of A.

    Parameters
    ----------
    A : np.ndarray or scipy.sparse matrix
        Input matrix
    model : SVD
        Fitted model
    mask : np.ndarray or scipy.sparse matrix, optional
        If given, only these entries are scored (held-out evaluation)
    metrics : list, optional
        List of metrics to calculate

    Returns
    -------
    results : dict
        Dictionary with metric values
    """
    A_dense = A.toarray() if sp.issparse(A) else np.asarray(A, dtype=float)
    A_hat = model.reconstruct()

    if mask is None:
        return calculate_metrics(A_dense.ravel(), A_hat.ravel(), metrics)

    mask = mask.toarray() if sp.issparse(mask) else np.asarray(mask)
    mask = mask.astype(bool)
    return calculate_metrics(A_dense[mask], A_hat[mask], metrics)
