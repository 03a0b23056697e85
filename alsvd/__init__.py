"""
alsvd: low-rank factorization of dense and sparse matrices by alternating least squares.

Fits A ≈ U·diag(D)·Vᵀ one rank at a time, with L1 penalties, masking of zeros
or of a given entry pattern, and restart-based model selection by MSE.
"""

__version__ = '0.1.0'

from . import matrix
from . import factorization
from . import data
from . import evaluation
from .exceptions import FactorizationError, ConfigurationError, FitCancelled
from .factorization import SVD, CancellationToken

__all__ = [
    'matrix',
    'factorization',
    'data',
    'evaluation',
    'SVD',
    'CancellationToken',
    'FactorizationError',
    'ConfigurationError',
    'FitCancelled',
]
