"""
Data utilities: synthetic matrices and mask generation.
"""

from .masking import create_mcar_mask, create_mnar_mask, generate_mask, get_mask_statistics
from .synthetic import make_low_rank, make_symmetric, load_matrix

__all__ = [
    'create_mcar_mask',
    'create_mnar_mask',
    'generate_mask',
    'get_mask_statistics',
    'make_low_rank',
    'make_symmetric',
    'load_matrix',
]
