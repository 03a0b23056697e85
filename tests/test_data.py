"""Tests for synthetic matrices and mask generation."""

import os
import tempfile
import unittest

import numpy as np
import pandas as pd
import scipy.sparse as sp

from alsvd.data import (
    create_mcar_mask,
    create_mnar_mask,
    generate_mask,
    get_mask_statistics,
    load_matrix,
    make_low_rank,
    make_symmetric,
)


class TestSynthetic(unittest.TestCase):
    def test_low_rank(self):
        A = make_low_rank(30, 20, 4, seed=0)
        self.assertEqual(A.shape, (30, 20))
        self.assertEqual(np.linalg.matrix_rank(A), 4)

    def test_reproducible(self):
        np.testing.assert_array_equal(make_low_rank(5, 4, 2, seed=1), make_low_rank(5, 4, 2, seed=1))

    def test_sparse_and_density(self):
        A = make_low_rank(40, 30, 3, seed=2, density=0.2, sparse=True)
        self.assertTrue(sp.issparse(A))
        self.assertLess(A.nnz, 0.35 * 40 * 30)

    def test_symmetric(self):
        S = make_symmetric(12, 3, seed=3)
        np.testing.assert_array_equal(S, S.T)
        self.assertTrue(sp.issparse(make_symmetric(5, 2, seed=3, sparse=True)))


class TestLoadMatrix(unittest.TestCase):
    def test_formats(self):
        A = make_low_rank(6, 4, 2, seed=4)
        with tempfile.TemporaryDirectory() as tmp:
            np.save(os.path.join(tmp, 'a.npy'), A)
            sp.save_npz(os.path.join(tmp, 'a.npz'), sp.csc_matrix(A))
            pd.DataFrame(A).to_csv(os.path.join(tmp, 'a.csv'), index=False)

            np.testing.assert_allclose(load_matrix(os.path.join(tmp, 'a.npy')), A)
            np.testing.assert_allclose(load_matrix(os.path.join(tmp, 'a.npz')).toarray(), A)
            np.testing.assert_allclose(load_matrix(os.path.join(tmp, 'a.csv')), A)

    def test_missing_and_unknown(self):
        with self.assertRaises(FileNotFoundError):
            load_matrix('/nonexistent/matrix.npy')
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'a.txt')
            open(path, 'w').close()
            with self.assertRaises(ValueError):
                load_matrix(path)


class TestMasks(unittest.TestCase):
    def test_mcar_rate(self):
        M = create_mcar_mask((100, 80), 0.2, seed=0)
        self.assertEqual(M.shape, (100, 80))
        self.assertAlmostEqual(M.nnz / 8000, 0.2, delta=0.03)

    def test_mcar_reproducible(self):
        a = create_mcar_mask((10, 10), 0.3, seed=5).toarray()
        b = create_mcar_mask((10, 10), 0.3, seed=5).toarray()
        np.testing.assert_array_equal(a, b)

    def test_mnar_prefers_large_values(self):
        X = make_low_rank(200, 10, 2, seed=6)
        M = create_mnar_mask(X, 0.2, seed=6).toarray()
        self.assertGreater(X[M].mean(), X[~M].mean())
        rate = M.sum() / M.size
        self.assertTrue(0.1 <= rate <= 0.3)

    def test_generate_mask(self):
        X = make_low_rank(20, 10, 2, seed=7)
        self.assertEqual(generate_mask(X, 'mcar', 0.1, seed=7).shape, X.shape)
        self.assertEqual(generate_mask(sp.csc_matrix(X), 'MNAR', 0.1, seed=7).shape, X.shape)
        with self.assertRaises(ValueError):
            generate_mask(X, 'MAR', 0.1)

    def test_statistics(self):
        M = np.zeros((4, 3), dtype=bool)
        M[0, 0] = M[1, 0] = M[2, 2] = True
        stats = get_mask_statistics(M)
        self.assertEqual(stats['total_masked'], 3)
        self.assertAlmostEqual(stats['mask_rate'], 0.25)
        np.testing.assert_array_equal(stats['masked_per_column'], [2, 0, 1])
        self.assertEqual(stats['columns_with_masked'], 2)


if __name__ == "__main__":
    unittest.main()
