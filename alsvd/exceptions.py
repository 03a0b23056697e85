"""
Exceptions raised by the factorization engine.
"""


class FactorizationError(Exception):
    """Base class for all alsvd errors."""


class ConfigurationError(FactorizationError, ValueError):
    """Invalid model setup: incompatible dimensions, conflicting masks, bad config values."""


class FitCancelled(FactorizationError):
    """
    Raised when a cancellation token is triggered between ALS iterations.

    The factor matrices are left in their last-iterated state and should not
    be treated as a usable result.
    """

    def __init__(self, rank: int, iteration: int):
        self.rank = rank
        self.iteration = iteration
        super().__init__(f"fit cancelled at rank {rank + 1}, iteration {iteration}")
