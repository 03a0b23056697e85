"""
Matrix abstractions: dense/sparse backends, mask matrices, random initialization.
"""

from .backends import MatrixBackend, DenseBackend, SparseBackend, as_backend
from .mask import MaskMatrix
from .initialization import random_matrix, random_inits

__all__ = [
    'MatrixBackend',
    'DenseBackend',
    'SparseBackend',
    'as_backend',
    'MaskMatrix',
    'random_matrix',
    'random_inits',
]
