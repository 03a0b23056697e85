"""
ALS factorization engine.
"""

from .svd import SVD
from .deflation import fit_rank, update_u, update_v
from .convergence import correlation
from .cancellation import CancellationToken
from .loss import mse, mse_masked

__all__ = [
    'SVD',
    'fit_rank',
    'update_u',
    'update_v',
    'correlation',
    'CancellationToken',
    'mse',
    'mse_masked',
]
