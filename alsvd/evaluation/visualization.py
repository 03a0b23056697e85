"""
Visualization utilities for fits and experiment summaries.
"""

import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from typing import Dict, List

logger = logging.getLogger(__name__)


def plot_convergence(history: List[Dict], save_path: str = None,
                     figsize: tuple = (10, 6), show: bool = True):
    """
    Plot the tolerance trace of every rank of a fit.

    Parameters
    ----------
    history : list of dict
        ``SVD.history_`` (one record per rank with a 'tol_history' list)
    save_path : str, optional
        Path to save the figure
    figsize : tuple
        Figure size
    show : bool
        Call ``plt.show()``
    """
    fig, ax = plt.subplots(figsize=figsize)

    for record in history:
        tols = np.asarray(record['tol_history'], dtype=float)
        iterations = np.arange(1, len(tols) + 1)
        ax.plot(iterations, tols, marker='.', linewidth=1.5, label=f"rank {record['rank'] + 1}")

    ax.set_xlabel('Iteration')
    ax.set_ylabel('Correlation with previous U column')
    ax.set_title('ALS Convergence')
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')
        logger.info(f"Convergence plot saved to {save_path}")

    if show:
        plt.show()

    return fig


def plot_rank_mse(summary: pd.DataFrame, metric: str = 'mse', save_path: str = None,
                  figsize: tuple = (10, 6), show: bool = True):
    """
    Plot a metric against rank, one line per dataset/backend pair.

    Parameters
    ----------
    summary : pd.DataFrame
        Experiment summary with 'rank', 'dataset', 'backend' and *metric* columns
    metric : str
        Column to plot
    save_path : str, optional
        Path to save the figure
    figsize : tuple
        Figure size
    show : bool
        Call ``plt.show()``
    """
    df = summary.dropna(subset=[metric]).copy()
    df['series'] = df['dataset'] + ' / ' + df['backend']

    fig, ax = plt.subplots(figsize=figsize)

    sns.lineplot(data=df, x='rank', y=metric, hue='series', marker='o', ax=ax)
    ax.set_xlabel('Rank')
    ax.set_ylabel(metric.upper())
    ax.set_title(f'{metric.upper()} by Rank')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')
        logger.info(f"Rank plot saved to {save_path}")

    if show:
        plt.show()

    return fig
