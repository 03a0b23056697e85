"""Tests for reconstruction metrics and plots."""

import os
import tempfile
import unittest

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import scipy.sparse as sp

from alsvd import SVD
from alsvd.data import make_low_rank
from alsvd.evaluation import (
    calculate_metrics,
    calculate_reconstruction_error,
    mae,
    plot_convergence,
    plot_rank_mse,
    r2_score,
    relative_error,
    rmse,
)


class _FixedModel:
    def __init__(self, A_hat):
        self.A_hat = A_hat

    def reconstruct(self):
        return self.A_hat


class TestMetrics(unittest.TestCase):
    def test_basic_values(self):
        y_true = np.array([1.0, 2.0, 3.0, 4.0])
        y_pred = np.array([1.0, 2.0, 3.0, 6.0])
        self.assertAlmostEqual(rmse(y_true, y_pred), 1.0)
        self.assertAlmostEqual(mae(y_true, y_pred), 0.5)
        self.assertAlmostEqual(relative_error(y_true, y_pred), 2.0 / np.sqrt(30.0))
        self.assertAlmostEqual(r2_score(y_true, y_true), 1.0)

    def test_relative_error_of_matrices(self):
        A = make_low_rank(6, 5, 2, seed=1)
        self.assertAlmostEqual(relative_error(A, A), 0.0)
        self.assertAlmostEqual(relative_error(A, np.zeros_like(A)), 1.0)
        self.assertTrue(np.isnan(relative_error(np.zeros(3), np.ones(3))))

    def test_nan_pairs_ignored(self):
        y_true = np.array([1.0, np.nan, 3.0])
        y_pred = np.array([1.0, 5.0, 4.0])
        self.assertAlmostEqual(mae(y_true, y_pred), 0.5)
        self.assertTrue(np.isnan(rmse(np.array([np.nan]), np.array([1.0]))))
        self.assertTrue(np.isnan(r2_score(np.array([1.0]), np.array([1.0]))))

    def test_calculate_metrics(self):
        y = np.array([1.0, 2.0, 3.0])
        results = calculate_metrics(y, y, ['RMSE', 'r2'])
        self.assertEqual(set(results), {'rmse', 'r2'})
        self.assertAlmostEqual(results['rmse'], 0.0)
        with self.assertRaises(ValueError):
            calculate_metrics(y, y, ['mape'])

    def test_reconstruction_error_on_mask(self):
        A = np.arange(12, dtype=float).reshape(4, 3)
        A_hat = A.copy()
        A_hat[0, 0] += 2.0
        mask = np.zeros((4, 3), dtype=bool)
        mask[0, 0] = mask[3, 2] = True

        full = calculate_reconstruction_error(A, _FixedModel(A_hat))
        held_out = calculate_reconstruction_error(sp.csc_matrix(A), _FixedModel(A_hat), sp.csc_matrix(mask))
        self.assertAlmostEqual(full['mae'], 2.0 / 12)
        self.assertAlmostEqual(held_out['mae'], 1.0)
        self.assertAlmostEqual(held_out['rmse'], np.sqrt(2.0))


class TestPlots(unittest.TestCase):
    def test_plot_convergence(self):
        model = SVD(make_low_rank(12, 10, 2, seed=0), k=2, seed=0)
        model.maxit = 5
        model.fit()
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'convergence.png')
            fig = plot_convergence(model.history_, save_path=path, show=False)
            self.assertTrue(os.path.exists(path))
        self.assertEqual(len(fig.axes[0].lines), 2)
        plt.close(fig)

    def test_plot_rank_mse(self):
        summary = pd.DataFrame({
            'dataset': ['a'] * 4,
            'backend': ['dense', 'dense', 'sparse', 'sparse'],
            'rank': [1, 2, 1, 2],
            'mse': [0.5, 0.2, 0.5, 0.2],
        })
        fig = plot_rank_mse(summary, show=False)
        self.assertEqual(fig.axes[0].get_xlabel(), 'Rank')
        plt.close(fig)


if __name__ == "__main__":
    unittest.main()
