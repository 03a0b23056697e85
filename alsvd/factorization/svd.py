"""
Low-rank factorization A ≈ U·diag(D)·Vᵀ by alternating least squares.
"""

import logging
import numpy as np
from typing import Dict, List, Optional, Sequence

from ..config import DIV_OFFSET, load_config, merge_config, validate_config
from ..exceptions import ConfigurationError
from ..matrix.backends import as_backend
from ..matrix.initialization import random_matrix
from ..matrix.mask import MaskMatrix
from . import loss
from .cancellation import CancellationToken
from .deflation import fit_rank

logger = logging.getLogger(__name__)


class SVD:
    """
    Rank-k ALS factorization of a dense or sparse matrix.

    Ranks are fit one at a time in increasing order, each deflated against
    the ranks before it. After all ranks are fit, D holds the norm of every
    U column and U is scaled to unit-norm columns.

    Exactly one of three starting points is used:

    * ``SVD(A, k=5, seed=1)`` draws a random U;
    * ``SVD(A, u=U0)`` starts from a given U;
    * ``SVD(A, u=U0, v=V0)`` starts from a fully specified model.

    Settings (``verbose``, ``maxit``, ``threads``, ``L1``, ``upper_bound``,
    ``tol``) are plain attributes and may be changed before fitting.
    """

    def __init__(self, A, k: Optional[int] = None, seed: Optional[int] = 0,
                 u: Optional[np.ndarray] = None, v: Optional[np.ndarray] = None,
                 config: Optional[Dict] = None, config_path: Optional[str] = None,
                 cancel_token: Optional[CancellationToken] = None,
                 div_offset: float = DIV_OFFSET):
        """
        Parameters
        ----------
        A : np.ndarray, pd.DataFrame or scipy.sparse matrix
            Matrix to factorize.
        k : int, optional
            Rank, when U is to be drawn at random.
        seed : int, optional
            Seed for the random U.
        u : np.ndarray, optional
            Initial U (rows x k).
        v : np.ndarray, optional
            Initial V (cols x k); requires *u*.
        config : dict, optional
            Configuration dictionary (overrides config_path).
        config_path : str, optional
            Path to a YAML configuration file.
        cancel_token : CancellationToken, optional
            Polled once per ALS iteration.
        div_offset : float
            Added to every denominator during fitting.
        """
        backend = as_backend(A)
        rows, cols = backend.shape

        if u is None:
            if v is not None:
                raise ConfigurationError("an initial 'v' can only be given together with 'u'")
            if k is None:
                raise ConfigurationError("either a rank 'k' or an initial 'u' must be provided")
            if k < 1:
                raise ConfigurationError(f"rank 'k' must be at least 1, got {k}")
        else:
            u = np.array(u, dtype=float)
            if u.ndim != 2:
                raise ConfigurationError("'u' must be a two-dimensional matrix")
            if u.shape[0] != rows:
                raise ConfigurationError("number of rows in 'A' and 'u' are not equal!")
            if k is not None and k != u.shape[1]:
                raise ConfigurationError(f"'k' ({k}) does not match the number of columns in 'u' ({u.shape[1]})")
            if v is not None:
                v = np.array(v, dtype=float)
                if v.ndim != 2 or v.shape[0] != cols:
                    raise ConfigurationError("dimensions of 'v' and 'A' are not compatible")
                if v.shape[1] != u.shape[1]:
                    raise ConfigurationError("rank of 'u' and 'v' are not equal!")

        if config is not None:
            config = merge_config(config)
            validate_config(config)
        elif config_path is not None:
            config = load_config(config_path)
        else:
            config = merge_config(None)
        self.config = config

        fit_config = config['fit']
        self.verbose = bool(fit_config['verbose'])
        self.maxit = int(fit_config['maxit'])
        self.threads = int(fit_config['threads'])
        self.L1 = [float(p) for p in fit_config['L1']]
        # stored and exposed, not yet applied by the update rules
        self.upper_bound = float(fit_config['upper_bound'])
        self.tol = float(fit_config['tol'])

        self.A = backend
        self.cancel_token = cancel_token
        self.div_offset = div_offset

        if u is None:
            u = random_matrix(rows, k, seed)
        self.u_ = u
        self.v_ = v if v is not None else np.zeros((cols, u.shape[1]))
        self.d_ = np.ones(u.shape[1])

        self.tol_ = -1.0
        self.iter_ = 0
        self.mse_ = 0.0
        self.best_model_ = 0
        self.rank_ = None
        self.history_: List[Dict] = []
        self.restart_mse_: List[float] = []

        self._mask: Optional[MaskMatrix] = None
        self._mask_zeros = False
        self.symmetric_ = backend.is_appx_symmetric()
        # row products are swapped for column products only after a full check
        self._transpose_products = self.symmetric_ and backend.is_symmetric()

        if config.get('masking', {}).get('mask_zeros', False):
            self.mask_zeros()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @property
    def k(self) -> int:
        return self.u_.shape[1]

    @property
    def masking(self) -> Optional[str]:
        """'zeros', 'matrix' or None."""
        if self._mask_zeros:
            return 'zeros'
        if self._mask is not None:
            return 'matrix'
        return None

    @property
    def mask_(self) -> Optional[MaskMatrix]:
        return self._mask

    def mask_zeros(self) -> 'SVD':
        """Score only the nonzero entries of A in mse()."""
        if self._mask is not None:
            raise ConfigurationError("a masking matrix has already been specified; zeros cannot also be masked")
        if self._mask_zeros:
            raise ConfigurationError("zeros are already masked")
        self._mask_zeros = True
        return self

    def mask_matrix(self, M) -> 'SVD':
        """
        Set aside the entries flagged in *M* from mse(); score them with mse_masked().

        Parameters
        ----------
        M : np.ndarray or scipy.sparse matrix
            rows x cols mask, nonzero = masked.
        """
        if self._mask is not None:
            raise ConfigurationError("a masking function has already been specified")
        mask = M if isinstance(M, MaskMatrix) else MaskMatrix(M)
        if mask.shape != self.A.shape:
            raise ConfigurationError("dimensions of masking matrix and 'A' are not equivalent")
        if self._mask_zeros:
            raise ConfigurationError("you already specified to mask zeros. You cannot also supply a masking matrix.")

        self._mask = mask
        if self.symmetric_:
            self.symmetric_ = mask.is_appx_symmetric()
        return self

    def set_upper_bound(self, upper_bound: float) -> 'SVD':
        """Record an upper limit on solution values (0 or negative = none)."""
        self.upper_bound = float(upper_bound)
        return self

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def _log_level(self) -> int:
        return logging.INFO if self.verbose else logging.DEBUG

    def fit(self) -> 'SVD':
        """Fit every rank in order, then compute D and scale U to unit-norm columns."""
        logger.log(self._log_level(), "%4s | %8s", "iter", "tol")

        self.history_ = []
        for k in range(self.k):
            record = fit_rank(
                self.A, self.u_, self.v_, k,
                maxit=self.maxit, tol=self.tol, L1=self.L1,
                threads=self.threads, symmetric=self._transpose_products,
                div_offset=self.div_offset, cancel_token=self.cancel_token,
                verbose=self.verbose,
            )
            self.history_.append(record)
            self.rank_ = k
            self.iter_ = record['iter']
            self.tol_ = record['tol']

        self.d_ = np.linalg.norm(self.u_, axis=0)
        scaled = self.d_ > 0
        self.u_[:, scaled] /= self.d_[scaled]
        return self

    def fit_restarts(self, u_init: Sequence[np.ndarray]) -> 'SVD':
        """
        Fit once from each initial U and keep the model with the lowest MSE.

        Ties keep the earliest restart. Every candidate is checked before any
        fitting starts.

        Parameters
        ----------
        u_init : sequence of np.ndarray
            Candidate initial U matrices, each rows x k.
        """
        candidates = [np.array(c, dtype=float) for c in u_init]
        if not candidates:
            raise ConfigurationError("'u_init' must contain at least one initial 'u'")
        for i, c in enumerate(candidates):
            if c.ndim != 2 or c.shape[0] != self.A.n_rows:
                raise ConfigurationError(f"dimensions of 'u' (restart {i + 1}) and 'A' are not compatible")
            if c.shape[1] != self.k:
                raise ConfigurationError(f"rank of 'u' (restart {i + 1}) is not equal to rank of 'v'")

        level = self._log_level()
        best = None
        self.restart_mse_ = []
        for i, candidate in enumerate(candidates):
            logger.log(level, "Fitting model %d/%d", i + 1, len(candidates))
            self.u_ = candidate
            self.tol_ = 1.0
            self.iter_ = 0
            self.fit()

            mse_ = self.mse()
            self.restart_mse_.append(mse_)
            logger.log(level, "MSE: %8.4e", mse_)

            if best is None or mse_ < best['mse']:
                best = {
                    'index': i,
                    'u': self.u_.copy(),
                    'v': self.v_.copy(),
                    'd': self.d_.copy(),
                    'tol': self.tol_,
                    'iter': self.iter_,
                    'history': self.history_,
                    'mse': mse_,
                }

        self.best_model_ = best['index']
        self.u_ = best['u']
        self.v_ = best['v']
        self.d_ = best['d']
        self.tol_ = best['tol']
        self.iter_ = best['iter']
        self.history_ = best['history']
        self.mse_ = best['mse']
        return self

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def mse(self) -> float:
        """Mean squared error over the entries not excluded by masking."""
        return loss.mse(self.A, self.u_, self.d_, self.v_,
                        mask_zeros=self._mask_zeros, mask=self._mask,
                        threads=self.threads)

    def mse_masked(self) -> float:
        """Mean squared error over the masked entries only."""
        return loss.mse_masked(self.A, self.u_, self.d_, self.v_,
                               mask=self._mask, threads=self.threads)

    def reconstruct(self) -> np.ndarray:
        """Dense U·diag(D)·Vᵀ."""
        return (self.u_ * self.d_) @ self.v_.T

    def __repr__(self):
        return f"SVD(shape={self.A.shape}, k={self.k}, masking={self.masking})"
