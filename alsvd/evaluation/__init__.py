"""
Evaluation metrics and plots for factorization results.
"""

from .metrics import (
    METRICS,
    calculate_metrics,
    calculate_reconstruction_error,
    mae,
    r2_score,
    relative_error,
    rmse,
)
from .visualization import plot_convergence, plot_rank_mse

__all__ = [
    'METRICS',
    'calculate_metrics',
    'rmse',
    'mae',
    'relative_error',
    'r2_score',
    'calculate_reconstruction_error',
    'plot_convergence',
    'plot_rank_mse',
]
