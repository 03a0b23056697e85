"""
Mask matrix: a sparse rows x cols pattern of entries set aside from the ordinary loss.
"""

import numpy as np
import scipy.sparse as sp
from typing import Tuple


class MaskMatrix:
    """
    Sparse mask held in CSC form; any nonzero entry marks (row, col) as masked.

    Parameters
    ----------
    M : np.ndarray or scipy.sparse matrix
        Boolean or numeric mask. Explicit zeros are dropped.
    """

    def __init__(self, M):
        if sp.issparse(M):
            csc = sp.csc_matrix(M, copy=True)
        else:
            csc = sp.csc_matrix(np.asarray(M) != 0)
        csc.eliminate_zeros()
        csc.sort_indices()
        csc.data = np.ones_like(csc.data, dtype=bool)
        self.M = csc

    @property
    def shape(self) -> Tuple[int, int]:
        return self.M.shape

    @property
    def n_masked(self) -> int:
        """Number of masked entries."""
        return int(self.M.nnz)

    def masked_rows(self, j: int) -> np.ndarray:
        """Sorted row indices masked in column *j*."""
        return self.M.indices[self.M.indptr[j]:self.M.indptr[j + 1]]

    def block(self, start: int, stop: int) -> np.ndarray:
        """Dense boolean mask for columns start..stop-1."""
        return self.M[:, start:stop].toarray()

    def is_appx_symmetric(self) -> bool:
        """Square, and the first row's pattern equals the first column's."""
        if self.shape[0] != self.shape[1]:
            return False
        first_row = self.M.tocsr()[0, :].toarray().ravel()
        first_col = self.M[:, 0].toarray().ravel()
        return bool(np.array_equal(first_row, first_col))

    def __repr__(self):
        return f"MaskMatrix(shape={self.shape}, n_masked={self.n_masked})"
