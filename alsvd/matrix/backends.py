"""
Dense and sparse backends behind one capability interface.

The fitter and loss code only ever ask a backend for products against A,
dense column blocks, nonzero counts and per-column row listings, so the ALS
algorithm is written once for both storage types.
"""

from abc import ABC, abstractmethod
import numpy as np
import pandas as pd
import scipy.sparse as sp
from typing import Tuple

from ..parallel import map_blocks


class MatrixBackend(ABC):
    """Abstract read-only view of the input matrix A."""

    def __init__(self, name: str = "MatrixBackend"):
        self.name = name

    @property
    @abstractmethod
    def shape(self) -> Tuple[int, int]:
        pass

    @property
    def n_rows(self) -> int:
        return self.shape[0]

    @property
    def n_cols(self) -> int:
        return self.shape[1]

    @abstractmethod
    def col_dot(self, u: np.ndarray, start: int, stop: int) -> np.ndarray:
        """
        Dot products of *u* with columns start..stop-1 of A.

        Parameters
        ----------
        u : np.ndarray
            Vector of length n_rows.
        start, stop : int
            Column range.

        Returns
        -------
        np.ndarray
            Vector of length stop - start.
        """
        pass

    @abstractmethod
    def row_dot(self, v: np.ndarray, start: int, stop: int) -> np.ndarray:
        """Dot products of *v* (length n_cols) with rows start..stop-1 of A."""
        pass

    @abstractmethod
    def column_block(self, start: int, stop: int) -> np.ndarray:
        """Dense copy of columns start..stop-1, implicit zeros filled in."""
        pass

    @abstractmethod
    def n_nonzero(self) -> int:
        pass

    @abstractmethod
    def nonzero_rows(self, j: int) -> np.ndarray:
        """Sorted row indices of the nonzero entries in column *j*."""
        pass

    @abstractmethod
    def first_row_and_column(self) -> Tuple[np.ndarray, np.ndarray]:
        pass

    @abstractmethod
    def to_dense(self) -> np.ndarray:
        pass

    @abstractmethod
    def is_symmetric(self) -> bool:
        """Exact check that A equals its transpose, over every entry."""
        pass

    def zero_rows(self, j: int) -> np.ndarray:
        """Sorted row indices where column *j* is zero (explicit or implicit)."""
        return np.setdiff1d(np.arange(self.n_rows), self.nonzero_rows(j), assume_unique=True)

    def is_appx_symmetric(self) -> bool:
        """
        Cheap symmetry probe: A is square and its first row equals its first column.

        This does not scan the whole matrix.
        """
        if self.n_rows != self.n_cols:
            return False
        row, col = self.first_row_and_column()
        return bool(np.array_equal(row, col))

    def transpose_product(self, u: np.ndarray, threads: int = 1) -> np.ndarray:
        """Aᵀ·u, computed over column blocks."""
        blocks = map_blocks(lambda s, e: self.col_dot(u, s, e), self.n_cols, threads)
        return np.concatenate(blocks)

    def product(self, v: np.ndarray, threads: int = 1, symmetric: bool = False) -> np.ndarray:
        """
        A·v, computed over row blocks.

        With *symmetric* set, rows equal columns and the column products are
        used instead, which avoids building a row-major copy of a sparse A.
        Only pass it once is_symmetric() has confirmed A == Aᵀ.
        """
        if symmetric:
            return self.transpose_product(v, threads)
        blocks = map_blocks(lambda s, e: self.row_dot(v, s, e), self.n_rows, threads)
        return np.concatenate(blocks)

    def __repr__(self):
        return f"{self.name}(shape={self.shape})"


class DenseBackend(MatrixBackend):
    """Backend over a dense numpy array (or DataFrame)."""

    def __init__(self, A):
        super().__init__(name="DenseBackend")
        if isinstance(A, pd.DataFrame):
            A = A.values
        self.A = np.asarray(A, dtype=float)
        if self.A.ndim != 2:
            raise ValueError(f"A must be two-dimensional, got {self.A.ndim} dimensions")

    @property
    def shape(self) -> Tuple[int, int]:
        return self.A.shape

    def col_dot(self, u, start, stop):
        return self.A[:, start:stop].T @ u

    def row_dot(self, v, start, stop):
        return self.A[start:stop] @ v

    def column_block(self, start, stop):
        return self.A[:, start:stop]

    def n_nonzero(self):
        return int(np.count_nonzero(self.A))

    def nonzero_rows(self, j):
        return np.flatnonzero(self.A[:, j])

    def first_row_and_column(self):
        return self.A[0, :], self.A[:, 0]

    def to_dense(self):
        return self.A.copy()

    def is_symmetric(self):
        if self.n_rows != self.n_cols:
            return False
        return bool(np.array_equal(self.A, self.A.T))


class SparseBackend(MatrixBackend):
    """
    Backend over a scipy.sparse matrix, held in CSC form.

    A CSR copy for row products is built on first use only.
    """

    def __init__(self, A):
        super().__init__(name="SparseBackend")
        csc = sp.csc_matrix(A, dtype=float, copy=True)
        csc.eliminate_zeros()
        csc.sort_indices()
        self.A = csc
        self._csr = None

    @property
    def shape(self) -> Tuple[int, int]:
        return self.A.shape

    @property
    def csr(self) -> sp.csr_matrix:
        if self._csr is None:
            self._csr = self.A.tocsr()
        return self._csr

    def col_dot(self, u, start, stop):
        block = self.A if (start, stop) == (0, self.n_cols) else self.A[:, start:stop]
        return block.T @ u

    def row_dot(self, v, start, stop):
        block = self.csr if (start, stop) == (0, self.n_rows) else self.csr[start:stop]
        return block @ v

    def column_block(self, start, stop):
        return self.A[:, start:stop].toarray()

    def n_nonzero(self):
        return int(self.A.nnz)

    def nonzero_rows(self, j):
        return self.A.indices[self.A.indptr[j]:self.A.indptr[j + 1]]

    def first_row_and_column(self):
        return self.csr[0, :].toarray().ravel(), self.A[:, 0].toarray().ravel()

    def to_dense(self):
        return self.A.toarray()

    def is_symmetric(self):
        if self.n_rows != self.n_cols:
            return False
        return (self.A != self.A.T).nnz == 0


def as_backend(A) -> MatrixBackend:
    """
    Wrap *A* in the matching backend.

    Parameters
    ----------
    A : np.ndarray, pd.DataFrame, scipy.sparse matrix or MatrixBackend

    Returns
    -------
    MatrixBackend
    """
    if isinstance(A, MatrixBackend):
        return A
    if sp.issparse(A):
        return SparseBackend(A)
    return DenseBackend(A)
