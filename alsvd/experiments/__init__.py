"""
Experiment runner and result utilities.
"""

from .run_experiments import run_experiments, run_single_experiment, create_summary
from .utils import load_results, load_summary, best_ranks

__all__ = [
    'run_experiments',
    'run_single_experiment',
    'create_summary',
    'load_results',
    'load_summary',
    'best_ranks',
]
