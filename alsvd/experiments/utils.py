"""
Utilities for experiment management.
"""

import pickle
import pandas as pd
from pathlib import Path
from typing import Dict


def load_results(results_dir: str) -> Dict:
    """Load experimental results from directory."""
    results_path = Path(results_dir) / 'results.pkl'

    with open(results_path, 'rb') as f:
        results = pickle.load(f)

    return results


def load_summary(results_dir: str) -> pd.DataFrame:
    """Load summary CSV."""
    summary_path = Path(results_dir) / 'summary.csv'
    return pd.read_csv(summary_path)


def best_ranks(summary: pd.DataFrame, metric: str = 'mse') -> pd.DataFrame:
    """Lowest mean *metric* rank per dataset and backend."""
    means = (summary.dropna(subset=[metric])
             .groupby(['dataset', 'backend', 'rank'], as_index=False)[metric].mean())
    idx = means.groupby(['dataset', 'backend'])[metric].idxmin()
    return means.loc[idx].reset_index(drop=True)
