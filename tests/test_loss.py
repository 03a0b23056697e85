"""Tests for the dense/sparse MSE evaluators."""

import unittest

import numpy as np
import scipy.sparse as sp

from alsvd.exceptions import ConfigurationError
from alsvd.factorization import mse, mse_masked
from alsvd.matrix import DenseBackend, MaskMatrix, SparseBackend


def _problem(seed=0, density=0.4):
    rng = np.random.RandomState(seed)
    A = rng.rand(15, 11)
    A[rng.rand(15, 11) >= density] = 0.0
    u = rng.rand(15, 3)
    v = rng.rand(11, 3)
    d = rng.rand(3) + 0.5
    mask = rng.rand(15, 11) < 0.25
    return A, u, d, v, mask


class TestUnmasked(unittest.TestCase):
    def test_matches_explicit_reconstruction(self):
        A, u, d, v, _ = _problem()
        expected = np.mean((u @ np.diag(d) @ v.T - A) ** 2)
        self.assertAlmostEqual(mse(DenseBackend(A), u, d, v), expected, places=12)

    def test_dense_and_sparse_agree(self):
        A, u, d, v, _ = _problem(seed=1)
        dense = mse(DenseBackend(A), u, d, v)
        sparse = mse(SparseBackend(sp.csc_matrix(A)), u, d, v)
        self.assertAlmostEqual(dense, sparse, places=12)

    def test_threads_agree(self):
        rng = np.random.RandomState(2)
        A = rng.rand(40, 1100)
        u, v, d = rng.rand(40, 2), rng.rand(1100, 2), np.ones(2)
        backend = SparseBackend(sp.csc_matrix(A))
        self.assertAlmostEqual(mse(backend, u, d, v, threads=1),
                               mse(backend, u, d, v, threads=3), places=10)


class TestMaskZeros(unittest.TestCase):
    def test_only_nonzeros_count(self):
        A, u, d, v, _ = _problem(seed=3)
        recon = u @ np.diag(d) @ v.T
        nz = A != 0
        expected = np.sum((recon[nz] - A[nz]) ** 2) / nz.sum()
        self.assertAlmostEqual(mse(DenseBackend(A), u, d, v, mask_zeros=True), expected, places=12)
        self.assertAlmostEqual(mse(SparseBackend(sp.csc_matrix(A)), u, d, v, mask_zeros=True),
                               expected, places=12)

    def test_both_modes_rejected(self):
        A, u, d, v, mask = _problem()
        with self.assertRaises(ConfigurationError):
            mse(DenseBackend(A), u, d, v, mask_zeros=True, mask=MaskMatrix(mask))


class TestMaskMatrix(unittest.TestCase):
    def test_masked_entries_excluded(self):
        A, u, d, v, mask = _problem(seed=4)
        recon = u @ np.diag(d) @ v.T
        expected = np.sum((recon[~mask] - A[~mask]) ** 2) / (~mask).sum()
        for backend in (DenseBackend(A), SparseBackend(sp.csc_matrix(A))):
            self.assertAlmostEqual(mse(backend, u, d, v, mask=MaskMatrix(mask)), expected, places=12)

    def test_mse_masked_scores_implicit_zeros(self):
        A, u, d, v, mask = _problem(seed=5)
        recon = u @ np.diag(d) @ v.T
        expected = np.sum((recon[mask] - A[mask]) ** 2) / mask.sum()
        # some masked entries must be implicit zeros for this to mean anything
        self.assertTrue(np.any(A[mask] == 0))
        for backend in (DenseBackend(A), SparseBackend(sp.csc_matrix(A))):
            self.assertAlmostEqual(mse_masked(backend, u, d, v, MaskMatrix(mask)), expected, places=12)

    def test_masked_and_unmasked_partition_total_loss(self):
        A, u, d, v, mask = _problem(seed=6)
        n_total = A.size
        n_masked = int(mask.sum())
        total = mse(DenseBackend(A), u, d, v) * n_total

        backend = SparseBackend(sp.csc_matrix(A))
        m = MaskMatrix(sp.csc_matrix(mask))
        recombined = (mse(backend, u, d, v, mask=m) * (n_total - n_masked)
                      + mse_masked(backend, u, d, v, m) * n_masked)
        self.assertAlmostEqual(recombined, total, places=7)

    def test_mse_masked_requires_mask(self):
        A, u, d, v, _ = _problem()
        with self.assertRaises(ConfigurationError):
            mse_masked(DenseBackend(A), u, d, v, None)

    def test_empty_mask(self):
        A, u, d, v, _ = _problem()
        empty = MaskMatrix(np.zeros(A.shape, dtype=bool))
        self.assertTrue(np.isnan(mse_masked(DenseBackend(A), u, d, v, empty)))


if __name__ == "__main__":
    unittest.main()
