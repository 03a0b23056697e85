"""
Benchmark runner: fit ALS factorizations over datasets, backends, ranks and seeds.
"""

import yaml
import time
import pickle
import logging
import numpy as np
import pandas as pd
import scipy.sparse as sp
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional

from ..data import generate_mask, load_matrix, make_low_rank, make_symmetric
from ..evaluation import calculate_reconstruction_error
from ..exceptions import FitCancelled
from ..factorization import SVD, CancellationToken
from ..matrix import random_inits


def setup_logging(log_dir: Path, experiment_name: str):
    """Setup logging configuration."""
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"{experiment_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    return logging.getLogger(__name__)


def build_matrix(dataset_config: dict, seed: int):
    """
    Create the input matrix described by a dataset entry.

    Parameters
    ----------
    dataset_config : dict
        Either ``type: synthetic`` (rows, cols, rank, noise, density,
        symmetric) or ``type: file`` (path).
    seed : int
        Seed for synthetic data.
    """
    dataset_type = dataset_config.get('type', 'synthetic')

    if dataset_type == 'file':
        return load_matrix(dataset_config['path'])
    if dataset_type != 'synthetic':
        raise ValueError(f"Unknown dataset type: {dataset_type}")

    if dataset_config.get('symmetric', False):
        return make_symmetric(dataset_config.get('rows', 100), dataset_config.get('rank', 5), seed=seed)

    return make_low_rank(
        dataset_config.get('rows', 100),
        dataset_config.get('cols', 100),
        dataset_config.get('rank', 5),
        noise=dataset_config.get('noise', 0.0),
        seed=seed,
        density=dataset_config.get('density'),
    )


def convert_backend(A, backend: str):
    """Return A as a dense ndarray ('dense') or a CSC matrix ('sparse')."""
    if backend == 'dense':
        return A.toarray() if sp.issparse(A) else np.asarray(A, dtype=float)
    if backend == 'sparse':
        return sp.csc_matrix(A)
    raise ValueError(f"Unknown backend: {backend}. Use 'dense' or 'sparse'.")


def run_single_experiment(A, rank: int, seed: int, n_restarts: int,
                          fit_config: dict, masking_config: dict,
                          metrics: List[str], logger: logging.Logger,
                          cancel_token: Optional[CancellationToken] = None) -> Dict:
    """
    Fit one model and score it.

    Parameters
    ----------
    A : np.ndarray or scipy.sparse matrix
        Input matrix
    rank : int
        Factorization rank
    seed : int
        Seed for the initial U matrices and the mask
    n_restarts : int
        Number of random initial U matrices (1 = a single fit)
    fit_config : dict
        'fit' section passed to SVD
    masking_config : dict
        ``mechanism`` ('zeros', 'MCAR', 'MNAR' or None) and ``rate``
    metrics : list
        Held-out metrics to compute on masked entries
    logger : logging.Logger
        Experiment logger
    cancel_token : CancellationToken, optional
        Forwarded to the model

    Returns
    -------
    dict
        Scores and fit statistics; 'error' is set if the fit failed.
    """
    logger.info(f"Running: shape={A.shape}, rank={rank}, seed={seed}, restarts={n_restarts}")

    result = {
        'mse': np.nan,
        'mse_masked': np.nan,
        'iterations': np.nan,
        'tol': np.nan,
        'best_model': np.nan,
        'time': np.nan,
        'metrics': {m: np.nan for m in metrics},
    }

    try:
        model = SVD(A, k=rank, seed=seed, config={'fit': fit_config},
                    cancel_token=cancel_token)

        mechanism = masking_config.get('mechanism')
        mask = None
        if mechanism == 'zeros':
            model.mask_zeros()
        elif mechanism:
            mask = generate_mask(A, mechanism, masking_config.get('rate', 0.1), seed=seed)
            model.mask_matrix(mask)

        t0 = time.time()
        if n_restarts > 1:
            model.fit_restarts(random_inits(A.shape[0], rank, n_restarts, seed=seed))
        else:
            model.fit()
        result['time'] = time.time() - t0

        result['mse'] = model.mse()
        if mask is not None:
            result['mse_masked'] = model.mse_masked()
            result['metrics'] = calculate_reconstruction_error(A, model, mask, metrics)
        result['iterations'] = sum(record['iter'] for record in model.history_)
        result['tol'] = model.tol_
        result['best_model'] = model.best_model_

        logger.info(f"    MSE: {result['mse']:.4e} ({result['time']:.2f}s)")

    except FitCancelled:
        raise
    except Exception as e:
        logger.error(f"  Error with rank {rank}, seed {seed}: {e}")
        result['error'] = str(e)

    return result


def create_summary(all_results: Dict, metrics: List[str]) -> pd.DataFrame:
    """
    Flatten nested results into one row per run.

    Parameters
    ----------
    all_results : dict
        ``{dataset: {backend: {rank: {seed: result}}}}``
    metrics : list
        Metric names to expand into columns
    """
    rows = []
    for dataset, by_backend in all_results.items():
        for backend, by_rank in by_backend.items():
            for rank, by_seed in by_rank.items():
                for seed, result in by_seed.items():
                    row = {
                        'dataset': dataset,
                        'backend': backend,
                        'rank': rank,
                        'seed': seed,
                        'mse': result['mse'],
                        'mse_masked': result['mse_masked'],
                        'iterations': result['iterations'],
                        'tol': result['tol'],
                        'best_model': result['best_model'],
                        'time': result['time'],
                        'error': result.get('error'),
                    }
                    for metric in metrics:
                        row[metric] = result['metrics'].get(metric, np.nan)
                    rows.append(row)

    return pd.DataFrame(rows)


def run_experiments(config_path: str = 'config/experiment_config.yaml',
                    cancel_token: Optional[CancellationToken] = None):
    """
    Run the full benchmark described by a YAML file.

    Parameters
    ----------
    config_path : str
        Path to experiment configuration file
    cancel_token : CancellationToken, optional
        Stops the whole run between ALS iterations

    Returns
    -------
    (dict, pd.DataFrame)
        Nested results and the flattened summary.
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    experiment_name = f"experiment_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    log_dir = Path(config['experiment']['logs_dir'])
    logger = setup_logging(log_dir, experiment_name)

    logger.info("=" * 80)
    logger.info("Starting ALS factorization experiments")
    logger.info("=" * 80)

    results_dir = Path(config['experiment']['results_dir']) / experiment_name
    results_dir.mkdir(parents=True, exist_ok=True)

    fit_config = config.get('fit', {})
    masking_config = config.get('masking', {})
    metrics = config.get('evaluation', {}).get('metrics', ['rmse', 'mae'])
    backends = config.get('backends', ['dense'])
    ranks = config.get('ranks', [1])
    seeds = config.get('seeds', [0])
    n_restarts = config.get('restarts', 1)

    all_results = {}

    for dataset_config in config['datasets']:
        dataset_name = dataset_config['name']
        logger.info(f"\nProcessing dataset: {dataset_name}")
        all_results[dataset_name] = {}

        for backend in backends:
            all_results[dataset_name][backend] = {}

            for rank in ranks:
                all_results[dataset_name][backend][rank] = {}

                for seed in seeds:
                    try:
                        A = convert_backend(build_matrix(dataset_config, seed), backend)
                    except (OSError, ValueError) as e:
                        logger.error(f"Error building dataset {dataset_name}: {e}")
                        continue

                    all_results[dataset_name][backend][rank][seed] = run_single_experiment(
                        A, rank, seed, n_restarts, fit_config, masking_config,
                        metrics, logger, cancel_token=cancel_token,
                    )

        logger.info(f"Completed dataset: {dataset_name}")

    logger.info("\nSaving results...")

    results_file = results_dir / 'results.pkl'
    with open(results_file, 'wb') as f:
        pickle.dump(all_results, f)
    logger.info(f"Saved complete results to {results_file}")

    summary = create_summary(all_results, metrics)
    summary_file = results_dir / 'summary.csv'
    summary.to_csv(summary_file, index=False)
    logger.info(f"Saved summary to {summary_file}")

    logger.info("\n" + "=" * 80)
    logger.info("Experiments completed successfully!")
    logger.info(f"Results saved to: {results_dir}")
    logger.info("=" * 80)

    return all_results, summary


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Run ALS factorization experiments')
    parser.add_argument('--config', type=str, default='config/experiment_config.yaml',
                        help='Path to experiment config')

    args = parser.parse_args()

    results, summary = run_experiments(args.config)
