"""
Block partitioning over a joblib thread pool.

Every parallel region in the fitter writes a disjoint slice of its output, so
blocks need no locking. numpy releases the GIL inside BLAS calls, which is why
threads (not processes) are used.
"""

import numpy as np
from typing import Callable, List, Tuple
from joblib import Parallel, delayed, effective_n_jobs

# below this many rows/columns a serial pass is cheaper than the pool
MIN_PARALLEL_SIZE = 512


def n_jobs_for(threads: int) -> int:
    """Translate the 'threads' setting (0 = all cores) into joblib's n_jobs."""
    return -1 if threads == 0 else threads


def partition(n: int, threads: int) -> List[Tuple[int, int]]:
    """Split range(n) into contiguous (start, stop) blocks, one per worker."""
    if threads == 1 or n < MIN_PARALLEL_SIZE:
        return [(0, n)]
    n_workers = effective_n_jobs(n_jobs_for(threads))
    n_blocks = max(1, min(n_workers, n))
    bounds = np.linspace(0, n, n_blocks + 1).astype(int)
    return [(int(bounds[i]), int(bounds[i + 1])) for i in range(n_blocks) if bounds[i] < bounds[i + 1]]


def map_blocks(func: Callable[[int, int], object], n: int, threads: int,
               schedule: str = 'static') -> list:
    """
    Apply ``func(start, stop)`` over blocks of range(n) and return results in block order.

    Parameters
    ----------
    func : callable
        Worker receiving block bounds.
    n : int
        Length of the range to partition.
    threads : int
        Worker count; 0 uses all cores, 1 runs serially.
    schedule : str
        'static' gives each worker one contiguous block. 'dynamic' cuts the
        range into four times as many blocks so uneven blocks balance out.
    """
    blocks = partition(n, threads)
    if len(blocks) == 1:
        return [func(*blocks[0])]

    if schedule == 'dynamic':
        bounds = np.linspace(0, n, 4 * len(blocks) + 1).astype(int)
        blocks = [(int(bounds[i]), int(bounds[i + 1]))
                  for i in range(len(bounds) - 1) if bounds[i] < bounds[i + 1]]

    return Parallel(n_jobs=n_jobs_for(threads), prefer='threads')(
        delayed(func)(start, stop) for start, stop in blocks
    )
